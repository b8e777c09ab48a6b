"""Profile models. One profile per auth identity, keyed on the same id."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Profile(BaseModel):
    """Core profile model. Represents a row in the profiles table."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(min_length=1)
    username: str | None = None
    full_name: str | None = None
    avatar_url: str | None = None
    bio: str | None = None

    @property
    def initial(self) -> str:
        """First letter of the full name, for avatar placeholders."""
        return self.full_name[0] if self.full_name else "?"


class ProfileDraft(BaseModel):
    """Profile editor form state. Empty strings mean "not set"."""

    full_name: str = ""
    username: str = ""
    avatar_url: str = ""
    bio: str = ""

    @classmethod
    def from_profile(cls, profile: Profile | None) -> ProfileDraft:
        if profile is None:
            return cls()
        return cls(
            full_name=profile.full_name or "",
            username=profile.username or "",
            avatar_url=profile.avatar_url or "",
            bio=profile.bio or "",
        )

    def to_row(self, user_id: str) -> dict[str, Any]:
        """Upsert payload. A blank username is stored as NULL (it is unique)."""
        return {
            "id": user_id,
            "full_name": self.full_name,
            "username": self.username or None,
            "avatar_url": self.avatar_url,
            "bio": self.bio,
            "updated_at": datetime.now(UTC).isoformat(),
        }
