"""
Reading circles: listing, membership, and the reading schedule.

Membership and schedule checks made here only decide which actions are
offered. Row-level security on circle_members and circle_readings is
what actually enforces them.
"""

from __future__ import annotations

import logging

from rheteurs.auth import SessionContext
from rheteurs.errors import DataError, RheteursError, ValidationError
from rheteurs.models.circle import CircleDetail, CircleDraft, CircleReading, CircleSummary, ReadingDraft
from rheteurs.models.result import MutationResult
from rheteurs.repos.circle_repo import CircleReadingRepo, CircleRepo
from rheteurs.services.mutations import MutationCoordinator, MutationMessages
from rheteurs.services.scope import ScopeClosed, ViewScope

logger = logging.getLogger(__name__)

ERROR_PREFIX = "Erreur : "
CREATOR_ONLY = "Seul le fondateur du cercle peut programmer une lecture."
NO_CIRCLE_OPEN = "Aucun cercle ouvert."
NOT_A_MEMBER = "vous n'êtes pas membre de ce cercle."

READING_MESSAGES = MutationMessages(
    save_failed="",
    delete_failed=ERROR_PREFIX,
    delete_prompt="Retirer cette lecture du programme ?",
)


class CirclesBoard:
    """
    The circles screen: every circle with its member count, and one opened
    circle with its roster and schedule.
    """

    def __init__(
        self,
        session: SessionContext,
        circles: CircleRepo | None = None,
        readings: CircleReadingRepo | None = None,
    ) -> None:
        self.session = session
        self.circles_repo = circles or CircleRepo()
        self.readings_repo = readings or CircleReadingRepo()
        self.circles: list[CircleSummary] | None = None
        self.memberships: set[str] = set()
        self.selected: CircleDetail | None = None
        self.reading_draft: ReadingDraft | None = None
        self.loading = False
        self.load_error: str | None = None
        self._scope = ViewScope("circles")
        self._unsubscribe = session.subscribe(self._on_session_change)
        self._reading_writes = MutationCoordinator(
            self.readings_repo,
            refresh=self._reload_selected,
            acting_user=lambda: self.session.user_id,
            owner_field=None,
            messages=READING_MESSAGES,
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def refresh(self) -> None:
        """Reload the circle list and, with a session, the user's memberships."""
        self.loading = True
        try:
            circles = await self._scope.run(self.circles_repo.list_with_counts())
            user_id = self.session.user_id
            memberships = (
                await self._scope.run(self.circles_repo.memberships_for_user(user_id)) if user_id else set()
            )
        except ScopeClosed:
            return
        except DataError as e:
            self.load_error = e.message
            return
        finally:
            self.loading = False
        self.memberships = memberships
        self.circles = [
            summary.model_copy(update={"is_member": summary.circle.id in memberships}) for summary in circles
        ]
        self.load_error = None
        logger.debug("Loaded %d circles (%d joined)", len(circles), len(memberships))

    async def open_circle(self, circle_id: str) -> CircleDetail | None:
        """Load the roster and reading schedule of a listed circle."""
        summary = self._summary(circle_id)
        if summary is None:
            return None
        try:
            members = await self._scope.run(self.circles_repo.members(circle_id))
            readings = await self._scope.run(self.readings_repo.list_for_circle(circle_id))
        except ScopeClosed:
            return None
        except DataError as e:
            self.load_error = e.message
            return None
        self.selected = CircleDetail(circle=summary.circle, members=members, readings=readings)
        self.reading_draft = None
        return self.selected

    def close_circle(self) -> None:
        self.selected = None
        self.reading_draft = None

    # ------------------------------------------------------------------
    # Membership
    # ------------------------------------------------------------------

    async def join(self, circle_id: str) -> MutationResult:
        user_id = self.session.user_id
        if user_id is None:
            return MutationResult.auth_required()
        try:
            await self.circles_repo.add_member(circle_id, user_id)
        except RheteursError as e:
            return MutationResult.failure(ERROR_PREFIX, e.message)
        logger.info("User %s joined circle %s", user_id, circle_id)
        await self.refresh()
        return MutationResult.success()

    async def leave(self, circle_id: str) -> MutationResult:
        user_id = self.session.user_id
        if user_id is None:
            return MutationResult.auth_required()
        try:
            removed = await self.circles_repo.remove_member(circle_id, user_id)
        except RheteursError as e:
            return MutationResult.failure(ERROR_PREFIX, e.message)
        if not removed:
            return MutationResult.failure(ERROR_PREFIX, NOT_A_MEMBER)
        logger.info("User %s left circle %s", user_id, circle_id)
        await self.refresh()
        if self.selected is not None and self.selected.circle.id == circle_id:
            await self._reload_selected()
        return MutationResult.success()

    async def create_circle(self, draft: CircleDraft) -> MutationResult:
        """Found a circle. The founder becomes its first member."""
        user_id = self.session.user_id
        if user_id is None:
            return MutationResult.auth_required()
        missing = draft.missing_fields()
        if missing:
            return MutationResult.invalid(ValidationError(missing).message)
        try:
            circle = await self.circles_repo.create({**draft.to_row(), "creator_id": user_id})
            await self.circles_repo.add_member(circle.id, user_id)
        except RheteursError as e:
            return MutationResult.failure(ERROR_PREFIX, e.message)
        logger.info("Circle %s created by %s", circle.id, user_id)
        await self.refresh()
        return MutationResult.success()

    # ------------------------------------------------------------------
    # Reading schedule
    # ------------------------------------------------------------------

    @property
    def can_manage_readings(self) -> bool:
        return self.selected is not None and self.selected.circle.is_managed_by(self.session.user_id)

    def start_reading_edit(self, reading: CircleReading | None = None) -> bool:
        """Open the schedule form, blank or pre-filled. Offered to the founder only."""
        if not self.can_manage_readings:
            return False
        self.reading_draft = ReadingDraft.from_reading(reading) if reading else ReadingDraft()
        return True

    def cancel_reading_edit(self) -> None:
        self.reading_draft = None

    async def save_reading(self, draft: ReadingDraft | None = None) -> MutationResult:
        """Create or update a reading of the opened circle."""
        if draft is not None:
            self.reading_draft = draft
        if self.selected is None or self.reading_draft is None:
            return MutationResult.invalid(NO_CIRCLE_OPEN)
        if self.session.user_id is None:
            return MutationResult.auth_required()
        if not self.can_manage_readings:
            return MutationResult.invalid(CREATOR_ONLY)
        missing = self.reading_draft.missing_fields()
        if missing:
            return MutationResult.invalid(ValidationError(missing).message)

        values = self.reading_draft.to_row()
        if not self.reading_draft.id:
            values["circle_id"] = self.selected.circle.id
        return await self._reading_writes.save(
            values,
            entity_id=self.reading_draft.id,
            on_success=self.cancel_reading_edit,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def close(self) -> None:
        self._unsubscribe()
        await self._scope.close()

    def _summary(self, circle_id: str) -> CircleSummary | None:
        for summary in self.circles or []:
            if summary.circle.id == circle_id:
                return summary
        return None

    async def _reload_selected(self) -> None:
        if self.selected is not None:
            await self.open_circle(self.selected.circle.id)

    def _on_session_change(self, session: SessionContext) -> None:
        if self._scope.closed:
            return
        self.reading_draft = None
        if not session.is_authenticated:
            self.memberships = set()
            if self.circles is not None:
                self.circles = [s.model_copy(update={"is_member": False}) for s in self.circles]
        self._scope.spawn(self.refresh())
