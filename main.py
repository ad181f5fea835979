#!/usr/bin/env python3
"""
HelpBoard -- command-line client for the community help board.

Usage:
  python main.py signup "Jo Smith" jo@test.com
  python main.py login jo@test.com
  python main.py whoami
  python main.py post "Need a ride" "Airport run on Friday morning" --type request --category physical
  python main.py posts --page 2 --limit 20
  python main.py open /create
  python main.py logout

Passwords are prompted for (never passed on the command line).

Environment variables:
  API_BASE_URL       Server to talk to (default: http://localhost:8000).
  CLIENT_STATE_DIR   Where the session is kept (default: ~/.helpboard).
                     session.json is the client-side mirror; cookies.txt is
                     the cookie jar sent to the server on every request.
"""

import argparse
import getpass
import sys
from http.cookiejar import LWPCookieJar
from pathlib import Path

import requests

from client.api import ApiError, HelpBoardClient
from client.storage import FileStorage
from core.config import get_settings


def _build_client() -> HelpBoardClient:
    settings = get_settings()
    state_dir = Path(settings.client_state_dir).expanduser()
    state_dir.mkdir(parents=True, exist_ok=True)

    jar = LWPCookieJar(str(state_dir / "cookies.txt"))
    if Path(jar.filename).is_file():
        jar.load(ignore_discard=True)
    http = requests.Session()
    http.cookies = jar
    return HelpBoardClient(settings.api_base_url, FileStorage(state_dir / "session.json"), http=http)


def _print_posts(listing: dict) -> None:
    meta = listing["pagination"]
    print(f"\n  Page {meta['page']} of {max(meta['pages'], 1)} ({meta['total']} posts)\n")
    for post in listing["data"]:
        author = post["author"]["name"] if post.get("author") else "unknown"
        print(f"  [{post['type']:<7}] {post['title']}  ({post['category']}, by {author})")
    if meta["hasMore"]:
        print(f"\n  More: python main.py posts --page {meta['page'] + 1}")
    print()


def _print_api_error(exc: ApiError) -> None:
    print(f"  [!] {exc.message} ({exc.code}, {exc.status})")
    errors = (exc.details or {}).get("validationErrors") or {}
    for field, message in errors.items():
        print(f"      {field}: {message}")


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="helpboard",
        description="Offer or request help on a HelpBoard server.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    p = sub.add_parser("signup", help="Create an account and log in")
    p.add_argument("name")
    p.add_argument("email")

    p = sub.add_parser("login", help="Log in with email and password")
    p.add_argument("email")

    sub.add_parser("logout", help="Forget the local session")
    sub.add_parser("whoami", help="Show the account the stored token belongs to")

    p = sub.add_parser("post", help="Create an offer or request")
    p.add_argument("title")
    p.add_argument("description")
    p.add_argument("--type", choices=["offer", "request"], default="offer")
    p.add_argument(
        "--category",
        choices=["physical", "monetary", "goods", "mentoring", "other"],
        default="other",
    )

    p = sub.add_parser("posts", help="List posts, newest first")
    p.add_argument("--page", type=int, default=1)
    p.add_argument("--limit", type=int, default=10)

    p = sub.add_parser("open", help="Navigate to a page path and show where the server sends you")
    p.add_argument("path")

    args = parser.parse_args()
    if not args.command:
        parser.print_help()
        return

    client = _build_client()

    try:
        if args.command == "signup":
            user = client.signup(args.name, args.email, getpass.getpass("Password: "))
            print(f"  Welcome, {user.name} ({user.email}).")
        elif args.command == "login":
            user = client.login(args.email, getpass.getpass("Password: "))
            print(f"  Logged in as {user.name} ({user.email}).")
        elif args.command == "logout":
            client.logout()
            print("  Logged out.")
        elif args.command == "whoami":
            if not client.session.is_authenticated:
                print("  Not logged in.")
                return
            user = client.me()
            print(f"  {user.name} <{user.email}> (id {user.id})")
        elif args.command == "post":
            post = client.create_post(args.title, args.description, args.type, args.category)
            print(f"  Created {post['type']} {post['id']}: {post['title']}")
        elif args.command == "posts":
            _print_posts(client.list_posts(page=args.page, limit=args.limit))
        elif args.command == "open":
            resp = client.open_page(args.path)
            location = resp.headers.get("location")
            print(f"  {resp.status_code}" + (f" -> {location}" if location else ""))
    except ApiError as exc:
        _print_api_error(exc)
        sys.exit(1)
    except requests.RequestException as exc:
        print(f"  [!] Could not reach {client.base_url}: {exc}")
        sys.exit(1)


if __name__ == "__main__":
    main()
