"""Reading circle (cercle) models."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field

from rheteurs.models.profile import Profile


class Circle(BaseModel):
    """Core circle model. Represents a row in the circles table."""

    model_config = ConfigDict(extra="ignore")

    id: str
    created_at: datetime | None = None
    name: str
    description: str | None = None
    theme: str | None = None
    is_private: bool = False
    cover_url: str | None = None
    creator_id: str

    def is_managed_by(self, user_id: str | None) -> bool:
        """Only the creator gets reading-schedule controls. Not an access check."""
        return user_id is not None and self.creator_id == user_id


class CircleReading(BaseModel):
    """A book scheduled in a circle. Represents a row in the circle_readings table."""

    model_config = ConfigDict(extra="ignore")

    id: str
    circle_id: str
    created_at: datetime | None = None
    book_title: str
    book_author: str | None = None
    end_date: date | None = None


class CircleSummary(BaseModel):
    """A circle as listed: with its member count and whether the current user belongs."""

    circle: Circle
    member_count: int = 0
    is_member: bool = False


def active_reading(readings: list[CircleReading]) -> CircleReading | None:
    """
    The reading shown as current: the most recently created one.

    There is no "active" column; rows without a timestamp rank last.
    """
    if not readings:
        return None
    dated = [r for r in readings if r.created_at is not None]
    if not dated:
        return readings[0]
    return max(dated, key=lambda r: r.created_at)


class CircleDetail(BaseModel):
    """An opened circle: roster and reading schedule (newest first)."""

    circle: Circle
    members: list[Profile] = Field(default_factory=list)
    readings: list[CircleReading] = Field(default_factory=list)

    @property
    def active_reading(self) -> CircleReading | None:
        return active_reading(self.readings)


class ReadingDraft(BaseModel):
    """Reading schedule form state. ``id`` is set when editing."""

    REQUIRED: ClassVar[tuple[str, ...]] = ("book_title",)

    id: str | None = None
    book_title: str = ""
    book_author: str = ""
    end_date: date | None = None

    @classmethod
    def from_reading(cls, reading: CircleReading) -> ReadingDraft:
        return cls(
            id=reading.id,
            book_title=reading.book_title,
            book_author=reading.book_author or "",
            end_date=reading.end_date,
        )

    def missing_fields(self) -> list[str]:
        missing = [name for name in self.REQUIRED if not getattr(self, name).strip()]
        if self.end_date is None:
            missing.append("end_date")
        return missing

    def to_row(self) -> dict[str, Any]:
        return {
            "book_title": self.book_title,
            "book_author": self.book_author,
            "end_date": self.end_date.isoformat() if self.end_date else None,
        }


class CircleDraft(BaseModel):
    """New circle form state."""

    REQUIRED: ClassVar[tuple[str, ...]] = ("name",)

    name: str = ""
    description: str = ""
    theme: str = ""
    is_private: bool = False
    cover_url: str = ""

    def missing_fields(self) -> list[str]:
        return [name for name in self.REQUIRED if not getattr(self, name).strip()]

    def to_row(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "theme": self.theme,
            "is_private": self.is_private,
            "cover_url": self.cover_url or None,
        }
