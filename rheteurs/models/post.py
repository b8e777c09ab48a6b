"""Post (exposé) models."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, field_validator

from rheteurs.models.profile import Profile

ALL_CATEGORIES = "all"


class PostCategory(str, Enum):
    """Categories a post can be filed under. Values are stored as-is."""

    FICTION = "Fiction"
    NON_FICTION = "Non-Fiction"
    POETRY = "Poésie"
    PHILOSOPHY = "Philosophie"
    SCIENCE = "Sciences"
    HISTORY = "Histoire"


# Facet offered in the salon, sentinel first
SALON_CATEGORIES: tuple[str, ...] = (
    ALL_CATEGORIES,
    PostCategory.FICTION.value,
    PostCategory.NON_FICTION.value,
    PostCategory.PHILOSOPHY.value,
    PostCategory.POETRY.value,
    PostCategory.HISTORY.value,
)


class Post(BaseModel):
    """
    Core post model. Represents a row in the posts table.

    user_name is a snapshot taken when the post was written; it does not
    follow later profile renames. user_id is NULL for anonymous posts.
    """

    model_config = ConfigDict(extra="ignore")

    id: str
    created_at: datetime
    title: str
    book_title: str
    book_author: str = ""
    content: str
    user_name: str
    category: str
    cover_url: str | None = None
    user_id: str | None = None

    @field_validator("book_author", mode="before")
    @classmethod
    def _null_author(cls, value: Any) -> Any:
        return "" if value is None else value

    def is_owned_by(self, user_id: str | None) -> bool:
        """Whether edit/delete controls should be offered to this user. Not an access check."""
        return user_id is not None and self.user_id == user_id


class PostView(BaseModel):
    """A post joined with its author's profile (None for anonymous or deleted authors)."""

    post: Post
    author: Profile | None = None

    @property
    def id(self) -> str:
        return self.post.id

    @property
    def has_account(self) -> bool:
        return self.post.user_id is not None

    @property
    def avatar_url(self) -> str | None:
        return self.author.avatar_url if self.author else None

    @property
    def author_initial(self) -> str:
        return self.post.user_name[:1].upper()


class PostDraft(BaseModel):
    """Compose/edit form state. ``id`` is set when editing an existing post."""

    REQUIRED: ClassVar[tuple[str, ...]] = ("title", "book_title", "content", "user_name")

    id: str | None = None
    title: str = ""
    book_title: str = ""
    book_author: str = ""
    content: str = ""
    category: str = PostCategory.FICTION.value
    user_name: str = ""
    cover_url: str = ""

    @classmethod
    def from_post(cls, post: Post) -> PostDraft:
        return cls(
            id=post.id,
            title=post.title,
            book_title=post.book_title,
            book_author=post.book_author,
            content=post.content,
            category=post.category,
            user_name=post.user_name,
            cover_url=post.cover_url or "",
        )

    def missing_fields(self) -> list[str]:
        return [name for name in self.REQUIRED if not getattr(self, name).strip()]

    def to_row(self) -> dict[str, Any]:
        """Column values, without id or ownership."""
        return {
            "title": self.title,
            "book_title": self.book_title,
            "book_author": self.book_author,
            "content": self.content,
            "category": self.category,
            "user_name": self.user_name,
            "cover_url": self.cover_url or None,
        }
