"""
api/payload.py -- Read a JSON request body without raising.

Route handlers validate bodies with auth.validators.validate(), which needs the
raw decoded JSON rather than a FastAPI body model. read_json() turns an empty
or undecodable body into the same Invalid result shape validate() produces,
so a handler has exactly one failure branch to render.
"""

from __future__ import annotations

import json
from typing import Any

from fastapi import Request

from auth.validators import Invalid


async def read_json(request: Request) -> Any:
    """Return the decoded body, or Invalid({"body": ...}) if it is not JSON."""
    try:
        return await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return Invalid({"body": "Request body must be valid JSON"})
