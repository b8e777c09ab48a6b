"""
Write coordination: create/update/delete, then a full re-fetch.

There is no optimistic patching. A write either succeeds, after which the
caller's close hook runs and the whole collection is reloaded, or fails,
in which case nothing local changes and the backend message is reported.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Protocol

from rheteurs.errors import RheteursError
from rheteurs.models.result import MutationResult

logger = logging.getLogger(__name__)

Confirm = Callable[[str], bool | Awaitable[bool]]


class MutableRepo(Protocol):
    """The slice of a repo the coordinator needs."""

    async def create(self, values: dict[str, Any]) -> Any: ...

    async def update(self, entity_id: str, values: dict[str, Any]) -> Any | None: ...

    async def delete(self, entity_id: str) -> bool: ...


@dataclass(frozen=True)
class MutationMessages:
    """User-facing text for one kind of entity."""

    save_failed: str = "Erreur lors de l'enregistrement : "
    delete_failed: str = "Erreur lors de la suppression : "
    delete_prompt: str = "Êtes-vous sûr de vouloir supprimer cet élément ?"
    not_found: str = "cet élément n'existe plus ou ne vous appartient pas."


async def ask(confirm: Confirm, prompt: str) -> bool:
    """Call a sync or async confirmation callback."""
    answer = confirm(prompt)
    if inspect.isawaitable(answer):
        answer = await answer
    return bool(answer)


class MutationCoordinator:
    """
    Sequences writes for one collection.

    Args:
        repo: Gateway for the collection
        refresh: Reloads the collection; must report its own failures
        acting_user: Returns the current user id (None when signed out)
        owner_field: Column stamped with the acting user on create, or None
        messages: Text used in results and prompts
    """

    def __init__(
        self,
        repo: MutableRepo,
        refresh: Callable[[], Awaitable[None]],
        acting_user: Callable[[], str | None],
        owner_field: str | None = "user_id",
        messages: MutationMessages | None = None,
    ) -> None:
        self.repo = repo
        self._refresh = refresh
        self._acting_user = acting_user
        self.owner_field = owner_field
        self.messages = messages or MutationMessages()

    async def save(
        self,
        values: dict[str, Any],
        entity_id: str | None = None,
        on_success: Callable[[], None] | None = None,
    ) -> MutationResult:
        """
        Update ``entity_id`` if given, otherwise create.

        On create the acting user's id (or None) is written to
        ``owner_field``. Ownership is not checked here: row-level security
        on the backend decides.
        """
        try:
            if entity_id:
                stored = await self.repo.update(entity_id, values)
                if stored is None:
                    logger.warning("Update of %s matched no row", entity_id)
                    return MutationResult.failure(self.messages.save_failed, self.messages.not_found)
            else:
                row = dict(values)
                if self.owner_field:
                    row[self.owner_field] = self._acting_user()
                await self.repo.create(row)
        except RheteursError as e:
            return MutationResult.failure(self.messages.save_failed, e.message)

        if on_success is not None:
            on_success()
        await self._refresh()
        return MutationResult.success()

    async def delete(
        self,
        entity_id: str,
        confirm: Confirm,
        on_success: Callable[[], None] | None = None,
    ) -> MutationResult:
        """
        Delete after explicit confirmation. A declined prompt issues no call.
        """
        if not await ask(confirm, self.messages.delete_prompt):
            return MutationResult.cancelled()

        try:
            deleted = await self.repo.delete(entity_id)
        except RheteursError as e:
            return MutationResult.failure(self.messages.delete_failed, e.message)
        if not deleted:
            logger.warning("Delete of %s matched no row", entity_id)
            return MutationResult.failure(self.messages.delete_failed, self.messages.not_found)

        if on_success is not None:
            on_success()
        await self._refresh()
        return MutationResult.success()
