"""Repository for reply operations."""

from __future__ import annotations

from typing import Any

from supabase import AsyncClient

from rheteurs import db
from rheteurs.models.reply import Reply, ReplyView
from rheteurs.repos.normalize import split_joined

REPLY_COLUMNS = "*, profiles:user_id(id, avatar_url)"


def _row_to_reply_view(row: dict[str, Any]) -> ReplyView:
    """Convert a joined replies row to a ReplyView."""
    joined = split_joined(row, "profiles")
    return ReplyView(reply=Reply.model_validate(joined.fields), author=joined.profile)


class ReplyRepo:
    """All reply-related queries."""

    def __init__(self, client: AsyncClient | None = None) -> None:
        self._client = client

    @property
    def client(self) -> AsyncClient:
        return self._client or db.get_client()

    async def list_for_post(self, post_id: str) -> list[ReplyView]:
        """
        List a post's replies in reading order.

        Args:
            post_id: Parent post id

        Returns:
            ReplyViews ordered by created_at ASC
        """
        response = await db.execute(
            self.client.table("replies")
            .select(REPLY_COLUMNS)
            .eq("post_id", post_id)
            .order("created_at", desc=False),
            "list replies",
        )
        return [_row_to_reply_view(row) for row in response.data or []]

    async def create(self, values: dict[str, Any]) -> Reply:
        response = await db.execute(self.client.table("replies").insert(values), "create reply")
        return Reply.model_validate(response.data[0])

    async def update(self, reply_id: str, values: dict[str, Any]) -> Reply | None:
        """Update a reply. Returns None if not found or not owned."""
        response = await db.execute(
            self.client.table("replies").update(values).eq("id", reply_id),
            "update reply",
        )
        rows = response.data or []
        return Reply.model_validate(rows[0]) if rows else None

    async def delete(self, reply_id: str) -> bool:
        """Delete a reply. Returns False if not found or not owned."""
        response = await db.execute(
            self.client.table("replies").delete().eq("id", reply_id),
            "delete reply",
        )
        return bool(response.data)
