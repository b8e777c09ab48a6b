"""
Join-shape normalization for embedded relations.

PostgREST embeds a to-one relation either as an object or as a one-element
list, depending on how the foreign key is declared. The repos call these
helpers once, on raw rows; everything above the repos only ever sees
``Profile | None``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError as SchemaError

from rheteurs.models.profile import Profile

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Joined:
    """A row split into the primary entity's own columns and its related profile."""

    fields: dict[str, Any]
    profile: Profile | None


def unwrap_one(value: Any) -> dict[str, Any] | None:
    """Collapse an object-or-sequence embed to a single object, or None."""
    if isinstance(value, (list, tuple)):
        value = value[0] if value else None
    if not value or not isinstance(value, dict):
        return None
    return value


def to_profile(value: Any) -> Profile | None:
    """
    Extract the related profile from an embed.

    Anything falsy, or an object that does not carry a profile identity,
    yields None. Partial profiles never reach the caller.
    """
    raw = unwrap_one(value)
    if raw is None:
        return None
    try:
        return Profile.model_validate(raw)
    except SchemaError:
        logger.debug("Dropping embedded profile without identity: %r", raw)
        return None


def split_joined(row: dict[str, Any], relation: str) -> Joined:
    """
    Split a raw joined row.

    Args:
        row: Row as returned by the query builder
        relation: Key (alias) of the embedded relation, e.g. "profiles"

    Returns:
        Joined with the relation removed from ``fields``
    """
    fields = dict(row)
    related = fields.pop(relation, None)
    return Joined(fields=fields, profile=to_profile(related))


def unwrap_count(value: Any) -> int:
    """Read an aggregate embed such as ``circle_members(count)`` → ``[{"count": 3}]``."""
    raw = unwrap_one(value)
    if raw is None:
        return 0
    return int(raw.get("count") or 0)


def unwrap_roster(rows: Iterable[dict[str, Any]], relation: str) -> list[Profile]:
    """Profiles embedded in membership rows, in row order, empty entries dropped."""
    members: list[Profile] = []
    for row in rows:
        profile = to_profile(row.get(relation))
        if profile is not None:
            members.append(profile)
    return members
