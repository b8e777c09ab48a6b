"""Repository for profile operations."""

from __future__ import annotations

from typing import Any

from supabase import AsyncClient

from rheteurs import db
from rheteurs.models.profile import Profile


class ProfileRepo:
    """All profile-related queries. Profiles are upserted, never deleted."""

    def __init__(self, client: AsyncClient | None = None) -> None:
        self._client = client

    @property
    def client(self) -> AsyncClient:
        return self._client or db.get_client()

    async def get(self, user_id: str) -> Profile | None:
        """
        Get a profile by user id.

        Args:
            user_id: Auth identity (also the profile id)

        Returns:
            Profile if a row exists, None otherwise
        """
        response = await db.execute(
            self.client.table("profiles").select("*").eq("id", user_id).limit(1),
            "get profile",
        )
        rows = response.data or []
        return Profile.model_validate(rows[0]) if rows else None

    async def upsert(self, row: dict[str, Any]) -> Profile:
        """
        Create or replace a profile keyed on id.

        Args:
            row: Full profile row including id

        Returns:
            The stored Profile
        """
        response = await db.execute(
            self.client.table("profiles").upsert(row, on_conflict="id"),
            "upsert profile",
        )
        return Profile.model_validate(response.data[0])
