"""Reply thread under an opened post."""

from __future__ import annotations

import logging

from rheteurs.auth import ANONYMOUS_NAME, SessionContext
from rheteurs.errors import DataError, ValidationError
from rheteurs.models.reply import Reply, ReplyDraft, ReplyView
from rheteurs.models.result import MutationResult
from rheteurs.repos.reply_repo import ReplyRepo
from rheteurs.services.mutations import Confirm, MutationCoordinator, MutationMessages
from rheteurs.services.scope import ScopeClosed, ViewScope

logger = logging.getLogger(__name__)

REPLY_MESSAGES = MutationMessages(
    save_failed="Erreur: ",
    delete_failed="Erreur: ",
    delete_prompt="Supprimer cette réplique du salon ?",
)


class ReplyThread:
    """
    Flat list of replies for one post, oldest first, plus the composer.

    Args:
        post_id: Post whose replies are shown
        session: Current session (replying needs one)
        repo: Reply gateway
    """

    def __init__(self, post_id: str, session: SessionContext, repo: ReplyRepo | None = None) -> None:
        self.post_id = post_id
        self.session = session
        self.repo = repo or ReplyRepo()
        self.replies: list[ReplyView] | None = None
        self.draft = ReplyDraft()
        self.loading = False
        self.load_error: str | None = None
        self._scope = ViewScope(f"replies:{post_id}")
        self._writes = MutationCoordinator(
            self.repo,
            refresh=self.load,
            acting_user=lambda: self.session.user_id,
            messages=REPLY_MESSAGES,
        )

    async def load(self) -> None:
        """Fetch the thread. On failure the previous list stays on screen."""
        self.loading = True
        try:
            replies = await self._scope.run(self.repo.list_for_post(self.post_id))
        except ScopeClosed:
            return
        except DataError as e:
            self.load_error = e.message
            return
        finally:
            self.loading = False
        self.replies = replies
        self.load_error = None
        logger.debug("Loaded %d replies for post %s", len(replies), self.post_id)

    def quote(self, text: str) -> None:
        """Quote a passage, typically text selected in the post body."""
        self.draft = self.draft.model_copy(update={"quoted_text": text})

    def quote_reply(self, reply: Reply) -> None:
        self.quote(reply.as_quote())

    def start_edit(self, reply: Reply) -> bool:
        """Load one of the user's own replies into the composer."""
        if not reply.is_owned_by(self.session.user_id):
            return False
        self.draft = ReplyDraft(id=reply.id, content=reply.content, quoted_text=reply.quoted_text or "")
        return True

    def cancel_edit(self) -> None:
        self.draft = ReplyDraft()

    async def send(self) -> MutationResult:
        """Post the draft, or save it over the reply being edited."""
        if not self.session.is_authenticated:
            return MutationResult.auth_required()
        if not self.draft.content.strip():
            return MutationResult.invalid(ValidationError(["content"]).message)

        if self.draft.id:
            return await self._writes.save(
                {"content": self.draft.content},
                entity_id=self.draft.id,
                on_success=self.cancel_edit,
            )
        return await self._writes.save(
            {
                "post_id": self.post_id,
                "user_name": self.session.display_name or ANONYMOUS_NAME,
                "content": self.draft.content,
                "quoted_text": self.draft.quoted_text or None,
            },
            on_success=self.cancel_edit,
        )

    async def delete(self, reply_id: str, confirm: Confirm) -> MutationResult:
        result = await self._writes.delete(reply_id, confirm)
        if result.ok and self.draft.id == reply_id:
            self.cancel_edit()
        return result

    async def close(self) -> None:
        await self._scope.close()
