"""
Pydantic models for Les Rhéteurs.

All data shapes defined here. No imports from db, repos, or services.
"""

from rheteurs.models.auth import CurrentUser, SignUpResponse
from rheteurs.models.circle import (
    Circle,
    CircleDetail,
    CircleDraft,
    CircleReading,
    CircleSummary,
    ReadingDraft,
)
from rheteurs.models.post import (
    ALL_CATEGORIES,
    SALON_CATEGORIES,
    Post,
    PostCategory,
    PostDraft,
    PostView,
)
from rheteurs.models.profile import Profile, ProfileDraft
from rheteurs.models.reply import Reply, ReplyDraft, ReplyView
from rheteurs.models.result import MutationResult

__all__ = [
    # Auth models
    "CurrentUser",
    "SignUpResponse",
    # Profile models
    "Profile",
    "ProfileDraft",
    # Post models
    "ALL_CATEGORIES",
    "SALON_CATEGORIES",
    "Post",
    "PostCategory",
    "PostDraft",
    "PostView",
    # Reply models
    "Reply",
    "ReplyDraft",
    "ReplyView",
    # Circle models
    "Circle",
    "CircleDetail",
    "CircleDraft",
    "CircleReading",
    "CircleSummary",
    "ReadingDraft",
    # Results
    "MutationResult",
]
