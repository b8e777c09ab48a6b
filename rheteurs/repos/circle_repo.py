"""Repositories for circles, their memberships and their reading schedules."""

from __future__ import annotations

from typing import Any

from supabase import AsyncClient

from rheteurs import db
from rheteurs.models.circle import Circle, CircleReading, CircleSummary
from rheteurs.models.profile import Profile
from rheteurs.repos.normalize import unwrap_count, unwrap_roster


def _row_to_summary(row: dict[str, Any]) -> CircleSummary:
    """Convert a circles row carrying a circle_members(count) aggregate."""
    fields = dict(row)
    count = unwrap_count(fields.pop("circle_members", None))
    return CircleSummary(circle=Circle.model_validate(fields), member_count=count)


class CircleRepo:
    """Circles and circle_members queries."""

    def __init__(self, client: AsyncClient | None = None) -> None:
        self._client = client

    @property
    def client(self) -> AsyncClient:
        return self._client or db.get_client()

    async def list_with_counts(self) -> list[CircleSummary]:
        """
        List circles newest first, each with its member count.

        Returns:
            CircleSummary list ordered by created_at DESC (is_member unset)
        """
        response = await db.execute(
            self.client.table("circles")
            .select("*, circle_members(count)")
            .order("created_at", desc=True),
            "list circles",
        )
        return [_row_to_summary(row) for row in response.data or []]

    async def create(self, values: dict[str, Any]) -> Circle:
        """Insert a circle. ``values`` must carry creator_id."""
        response = await db.execute(self.client.table("circles").insert(values), "create circle")
        return Circle.model_validate(response.data[0])

    async def memberships_for_user(self, user_id: str) -> set[str]:
        """
        Circle ids the user belongs to.

        Args:
            user_id: Member user id

        Returns:
            Set of circle ids
        """
        response = await db.execute(
            self.client.table("circle_members").select("circle_id").eq("user_id", user_id),
            "list memberships",
        )
        return {row["circle_id"] for row in response.data or []}

    async def members(self, circle_id: str) -> list[Profile]:
        """
        Roster of a circle.

        Args:
            circle_id: Circle id

        Returns:
            Member profiles; memberships whose profile is missing are skipped
        """
        response = await db.execute(
            self.client.table("circle_members").select("profiles:user_id (*)").eq("circle_id", circle_id),
            "list circle members",
        )
        return unwrap_roster(response.data or [], "profiles")

    async def add_member(self, circle_id: str, user_id: str) -> None:
        """Insert a membership. The (circle_id, user_id) pair is unique server-side."""
        await db.execute(
            self.client.table("circle_members").insert({"circle_id": circle_id, "user_id": user_id}),
            "join circle",
        )

    async def remove_member(self, circle_id: str, user_id: str) -> bool:
        """Delete a membership. Returns False if there was none (or RLS refused)."""
        response = await db.execute(
            self.client.table("circle_members").delete().eq("circle_id", circle_id).eq("user_id", user_id),
            "leave circle",
        )
        return bool(response.data)


class CircleReadingRepo:
    """circle_readings queries."""

    def __init__(self, client: AsyncClient | None = None) -> None:
        self._client = client

    @property
    def client(self) -> AsyncClient:
        return self._client or db.get_client()

    async def list_for_circle(self, circle_id: str) -> list[CircleReading]:
        """
        Reading schedule of a circle, newest first.

        Args:
            circle_id: Circle id

        Returns:
            CircleReadings ordered by created_at DESC
        """
        response = await db.execute(
            self.client.table("circle_readings")
            .select("*")
            .eq("circle_id", circle_id)
            .order("created_at", desc=True),
            "list readings",
        )
        return [CircleReading.model_validate(row) for row in response.data or []]

    async def create(self, values: dict[str, Any]) -> CircleReading:
        response = await db.execute(self.client.table("circle_readings").insert(values), "create reading")
        return CircleReading.model_validate(response.data[0])

    async def update(self, reading_id: str, values: dict[str, Any]) -> CircleReading | None:
        """Update a reading. Returns None if not found or RLS refused."""
        response = await db.execute(
            self.client.table("circle_readings").update(values).eq("id", reading_id),
            "update reading",
        )
        rows = response.data or []
        return CircleReading.model_validate(rows[0]) if rows else None

    async def delete(self, reading_id: str) -> bool:
        response = await db.execute(
            self.client.table("circle_readings").delete().eq("id", reading_id),
            "delete reading",
        )
        return bool(response.data)
