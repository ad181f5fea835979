"""
api/routes/posts.py -- Board post endpoints.

Routes:
  GET  /api/posts?page=&limit=   -- paginated posts, newest first (public)
  POST /api/posts                -- create a post (requires Bearer token)
  GET  /api/posts/{post_id}      -- single post (public)

The create route authenticates before it reads the body: an anonymous caller
gets 401 even when the payload is also invalid.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from api.envelope import Envelope
from api.payload import read_json
from auth.dependencies import get_current_user
from auth.models import User
from auth.validators import Invalid, PostCreate, validate
from core.errors import InternalError
from core.pagination import calculate_pagination, calculate_skip, parse_pagination_params
from posts.models import Post
from posts.store import PostStore

router = APIRouter()


@router.get("/posts")
def list_posts(request: Request) -> JSONResponse:
    """Return one page of posts with author summaries."""
    envelope: Envelope = request.app.state.envelope
    post_store: PostStore = request.app.state.post_store

    page, limit = parse_pagination_params(request.query_params)
    posts = post_store.list_posts(skip=calculate_skip(page, limit), take=limit)
    total = post_store.count_posts()
    return envelope.paginated([p.to_wire() for p in posts], calculate_pagination(total, page, limit))


@router.post("/posts")
async def create_post(request: Request, current_user: User = Depends(get_current_user)) -> JSONResponse:
    """Create an offer or request authored by the current user."""
    envelope: Envelope = request.app.state.envelope
    post_store: PostStore = request.app.state.post_store

    body = await read_json(request)
    result = body if isinstance(body, Invalid) else validate(PostCreate, body)
    if isinstance(result, Invalid):
        return envelope.validation(result.errors)

    data = result.data
    post = Post(
        title=data.title,
        description=data.description,
        type=data.type.value,
        category=data.category.value,
        author_id=current_user.id,
    )
    post_id = await run_in_threadpool(post_store.create_post, post)
    created = await run_in_threadpool(post_store.get_post, post_id)
    if created is None:
        raise InternalError("Post disappeared after insert.")
    return envelope.success(created.to_wire(), "Post created successfully", status=201)


@router.get("/posts/{post_id}")
def get_post(request: Request, post_id: str) -> JSONResponse:
    """Return a single post by id."""
    envelope: Envelope = request.app.state.envelope
    post_store: PostStore = request.app.state.post_store

    post = post_store.get_post(post_id)
    if post is None:
        return envelope.not_found("Post not found")
    return envelope.success(post.to_wire())
