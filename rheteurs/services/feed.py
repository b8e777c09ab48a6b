"""
Post feed filtering: view × category × free-text search.

Pure functions over posts already held in memory. Stages run in a fixed
order (view, category, search), each one a plain filter, so the output is
always a subsequence of the input in the input's order. Ordering is the
gateway's job (newest first); nothing here sorts.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Literal, TypeVar

from pydantic import BaseModel

from rheteurs.models.post import ALL_CATEGORIES, Post, PostView

View = Literal["all", "mine"]

SEARCH_FIELDS: tuple[str, ...] = ("title", "book_title", "book_author", "user_name")

P = TypeVar("P", Post, PostView)


class FeedFilter(BaseModel):
    """
    Everything that narrows the feed.

    ``view="mine"`` needs a ``current_user_id``; the salon falls back to
    ``"all"`` when there is no session, this module does not.
    """

    view: View = "all"
    current_user_id: str | None = None
    category: str = ALL_CATEGORIES
    search_query: str = ""


def _post(item: Post | PostView) -> Post:
    return item.post if isinstance(item, PostView) else item


def by_view(items: Iterable[P], view: View, current_user_id: str | None) -> list[P]:
    """Keep only the current user's posts in the "mine" view."""
    if view != "mine":
        return list(items)
    return [item for item in items if _post(item).is_owned_by(current_user_id)]


def by_category(items: Iterable[P], category: str) -> list[P]:
    """Exact, case-sensitive category match unless the sentinel is selected."""
    if category == ALL_CATEGORIES:
        return list(items)
    return [item for item in items if _post(item).category == category]


def matches_query(post: Post, query: str) -> bool:
    """Whether any searchable field contains ``query`` (already case-folded)."""
    return any(query in (getattr(post, field) or "").casefold() for field in SEARCH_FIELDS)


def by_search(items: Iterable[P], query: str) -> list[P]:
    """Case-insensitive substring search. An empty query keeps everything."""
    if not query:
        return list(items)
    needle = query.casefold()
    return [item for item in items if matches_query(_post(item), needle)]


def filter_posts(items: Iterable[P], state: FeedFilter) -> list[P]:
    """
    Apply view, then category, then search.

    Args:
        items: Posts or PostViews in display order
        state: Current filter state

    Returns:
        The matching items, input order preserved (possibly empty)
    """
    result = by_view(items, state.view, state.current_user_id)
    result = by_category(result, state.category)
    return by_search(result, state.search_query)
