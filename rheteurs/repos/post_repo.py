"""Repository for post operations."""

from __future__ import annotations

from typing import Any

from supabase import AsyncClient

from rheteurs import db
from rheteurs.models.post import Post, PostView
from rheteurs.repos.normalize import split_joined

# Author avatar rides along with every post for the cards
POST_COLUMNS = "*, profiles:user_id(id, avatar_url)"


def _row_to_post_view(row: dict[str, Any]) -> PostView:
    """Convert a joined posts row to a PostView."""
    joined = split_joined(row, "profiles")
    return PostView(post=Post.model_validate(joined.fields), author=joined.profile)


class PostRepo:
    """All post-related queries. Row-level security decides what each call may touch."""

    def __init__(self, client: AsyncClient | None = None) -> None:
        self._client = client

    @property
    def client(self) -> AsyncClient:
        return self._client or db.get_client()

    async def list_all(self) -> list[PostView]:
        """
        List every post, newest first.

        Returns:
            PostViews ordered by created_at DESC
        """
        response = await db.execute(
            self.client.table("posts").select(POST_COLUMNS).order("created_at", desc=True),
            "list posts",
        )
        return [_row_to_post_view(row) for row in response.data or []]

    async def list_for_user(self, user_id: str) -> list[PostView]:
        """
        List one author's posts, newest first.

        Args:
            user_id: Owning user id

        Returns:
            PostViews ordered by created_at DESC
        """
        response = await db.execute(
            self.client.table("posts")
            .select(POST_COLUMNS)
            .eq("user_id", user_id)
            .order("created_at", desc=True),
            "list user posts",
        )
        return [_row_to_post_view(row) for row in response.data or []]

    async def get(self, post_id: str) -> PostView | None:
        """
        Get a post by ID.

        Args:
            post_id: Post id

        Returns:
            PostView if found, None otherwise
        """
        response = await db.execute(
            self.client.table("posts").select(POST_COLUMNS).eq("id", post_id).limit(1),
            "get post",
        )
        rows = response.data or []
        return _row_to_post_view(rows[0]) if rows else None

    async def create(self, values: dict[str, Any]) -> Post:
        """
        Insert a post.

        Args:
            values: Column values, including user_id (None for anonymous posts)

        Returns:
            The stored Post
        """
        response = await db.execute(self.client.table("posts").insert(values), "create post")
        return Post.model_validate(response.data[0])

    async def update(self, post_id: str, values: dict[str, Any]) -> Post | None:
        """
        Update a post. RLS only lets the owner through.

        Args:
            post_id: Post id
            values: Columns to change

        Returns:
            Updated Post, None if not found or not owned
        """
        response = await db.execute(
            self.client.table("posts").update(values).eq("id", post_id),
            "update post",
        )
        rows = response.data or []
        return Post.model_validate(rows[0]) if rows else None

    async def delete(self, post_id: str) -> bool:
        """
        Delete a post. RLS only lets the owner through.

        Args:
            post_id: Post id

        Returns:
            True if deleted, False if not found or not owned
        """
        response = await db.execute(
            self.client.table("posts").delete().eq("id", post_id),
            "delete post",
        )
        return bool(response.data)
