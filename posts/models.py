"""
posts/models.py -- Domain dataclasses for board posts.

These are pure data containers with zero logic. Persistence lives in
posts/store.py; input rules (title/description lengths, type and category
enums) live in auth/validators.py alongside the other request schemas.
"""

from dataclasses import dataclass
from typing import Optional

from auth.models import UserSummary


@dataclass
class Post:
    """An offer of help or a request for help.

    author is filled in by the store on reads (joined from users); it is None
    on a Post that has not been written yet.

    id is None before the record is written to the database.
    """

    title: str
    description: str
    type: str  # "offer" | "request"
    category: str  # "physical" | "monetary" | "goods" | "mentoring" | "other"
    author_id: str
    status: str = "active"  # "active" | "completed" | "closed"
    id: Optional[str] = None
    created_at: str = ""  # ISO 8601, set by store on insert
    updated_at: str = ""
    author: Optional[UserSummary] = None

    def to_wire(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "type": self.type,
            "category": self.category,
            "status": self.status,
            "authorId": self.author_id,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "author": (
                {"id": self.author.id, "name": self.author.name, "email": self.author.email} if self.author else None
            ),
        }
