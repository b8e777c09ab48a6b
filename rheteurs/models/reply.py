"""Reply (réplique) models. Threads are flat: parent_reply_id is stored but never followed."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from rheteurs.models.profile import Profile

QUOTE_PREVIEW_CHARS = 40


class Reply(BaseModel):
    """Core reply model. Represents a row in the replies table."""

    model_config = ConfigDict(extra="ignore")

    id: str
    created_at: datetime
    post_id: str
    user_id: str
    user_name: str
    content: str
    quoted_text: str | None = None
    parent_reply_id: str | None = None

    def is_owned_by(self, user_id: str | None) -> bool:
        return user_id is not None and self.user_id == user_id

    def as_quote(self) -> str:
        """Quote used when answering this reply: author plus the start of the text."""
        return f'{self.user_name}: "{self.content[:QUOTE_PREVIEW_CHARS]}..."'


class ReplyView(BaseModel):
    """A reply joined with its author's profile."""

    reply: Reply
    author: Profile | None = None

    @property
    def avatar_url(self) -> str | None:
        return self.author.avatar_url if self.author else None

    @property
    def author_initial(self) -> str:
        return self.reply.user_name[:1].upper()


class ReplyDraft(BaseModel):
    """Reply composer state. ``id`` is set while editing."""

    id: str | None = None
    content: str = ""
    quoted_text: str = ""
