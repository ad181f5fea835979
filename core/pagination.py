"""
core/pagination.py -- Page/limit parsing and pagination metadata.

Pure functions, no I/O. api/routes/posts.py parses the query string with
parse_pagination_params(), queries the store with calculate_skip(), and wraps
the result with calculate_pagination().
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import asdict, dataclass

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100
MIN_PAGE_SIZE = 1
# Keeps the row offset well inside SQLite's signed 64-bit INTEGER range.
MAX_PAGE = 1_000_000


@dataclass(frozen=True)
class PaginationMeta:
    page: int
    limit: int
    total: int
    pages: int
    has_more: bool

    def to_wire(self) -> dict:
        """Return the camelCase shape clients expect (hasMore, not has_more)."""
        data = asdict(self)
        data["hasMore"] = data.pop("has_more")
        return data


def _to_int(raw: str | None, default: int) -> int:
    try:
        return int(raw) if raw is not None else default
    except ValueError:
        return default


def parse_pagination_params(params: Mapping[str, str]) -> tuple[int, int]:
    """Return (page, limit) from query parameters.

    page is clamped to [1, MAX_PAGE]; limit is clamped to [MIN_PAGE_SIZE, MAX_PAGE_SIZE].
    Missing or non-numeric values fall back to the defaults.
    """
    page = min(MAX_PAGE, max(1, _to_int(params.get("page"), 1)))
    limit = min(MAX_PAGE_SIZE, max(MIN_PAGE_SIZE, _to_int(params.get("limit"), DEFAULT_PAGE_SIZE)))
    return page, limit


def calculate_skip(page: int, limit: int) -> int:
    return (page - 1) * limit


def calculate_pagination(total: int, page: int, limit: int) -> PaginationMeta:
    pages = math.ceil(total / limit)
    return PaginationMeta(page=page, limit=limit, total=total, pages=pages, has_more=page < pages)
