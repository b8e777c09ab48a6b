"""
The salon: the shared feed of exposés and the author's own dashboard.

Holds every post in memory (newest first) and derives what is shown from
the view, category and search state. Writes go through the mutation
coordinator and are followed by a full reload.
"""

from __future__ import annotations

import logging

from rheteurs.auth import SessionContext
from rheteurs.config import settings
from rheteurs.errors import DataError, RheteursError, ValidationError
from rheteurs.models.post import ALL_CATEGORIES, PostDraft, PostView
from rheteurs.models.result import MutationResult
from rheteurs.repos.post_repo import PostRepo
from rheteurs.services.feed import FeedFilter, View, filter_posts
from rheteurs.services.mutations import Confirm, MutationCoordinator, MutationMessages
from rheteurs.services.scope import ScopeClosed, ViewScope
from rheteurs.services.storage import ImageUploader

logger = logging.getLogger(__name__)

POST_MESSAGES = MutationMessages(
    delete_prompt="Êtes-vous sûr de vouloir supprimer cet exposé ?",
)
COVER_UPLOAD_FAILED = "Erreur d'upload couverture: "


class Salon:
    """
    Headless salon/dashboard controller.

    ``posts`` is None until the first fetch resolves, so an empty feed can
    be told apart from one still loading.
    """

    def __init__(
        self,
        session: SessionContext,
        repo: PostRepo | None = None,
        covers: ImageUploader | None = None,
    ) -> None:
        self.session = session
        self.repo = repo or PostRepo()
        self.covers = covers or ImageUploader(settings.COVERS_BUCKET)
        self.posts: list[PostView] | None = None
        self.loading = False
        self.load_error: str | None = None

        self.view: View = "all"
        self.category = ALL_CATEGORIES
        self.search_query = ""

        self.selected: PostView | None = None
        self.editing: PostView | None = None
        self.draft: PostDraft | None = None
        self.form_open = False

        self._scope = ViewScope("salon")
        self._unsubscribe = session.subscribe(self._on_session_change)
        self._writes = MutationCoordinator(
            self.repo,
            refresh=self.refresh,
            acting_user=lambda: self.session.user_id,
            messages=POST_MESSAGES,
        )

    # ------------------------------------------------------------------
    # Feed
    # ------------------------------------------------------------------

    async def refresh(self) -> None:
        """Reload every post. On failure the current list stays and load_error is set."""
        self.loading = True
        try:
            posts = await self._scope.run(self.repo.list_all())
        except ScopeClosed:
            return
        except DataError as e:
            self.load_error = e.message
            return
        finally:
            self.loading = False
        self.posts = posts
        self.load_error = None
        if self.selected is not None:
            self.selected = self._find(self.selected.id)
        logger.debug("Loaded %d posts", len(posts))

    @property
    def effective_view(self) -> View:
        """The dashboard needs a session; without one the salon shows everything."""
        return self.view if self.session.is_authenticated else "all"

    @property
    def filter_state(self) -> FeedFilter:
        return FeedFilter(
            view=self.effective_view,
            current_user_id=self.session.user_id,
            category=self.category,
            search_query=self.search_query,
        )

    def display_posts(self) -> list[PostView]:
        """Posts to show under the current view, category and search."""
        if self.posts is None:
            return []
        return filter_posts(self.posts, self.filter_state)

    def set_view(self, view: View) -> bool:
        """Switch between the salon and the dashboard. Returns False if refused."""
        if view == "mine" and not self.session.is_authenticated:
            return False
        self.view = view
        return True

    def toggle_view(self) -> bool:
        return self.set_view("all" if self.view == "mine" else "mine")

    def set_category(self, category: str) -> None:
        self.category = category

    def set_search(self, query: str) -> None:
        self.search_query = query

    def clear_search(self) -> None:
        self.search_query = ""

    # ------------------------------------------------------------------
    # Detail and form
    # ------------------------------------------------------------------

    def open_post(self, post_id: str) -> PostView | None:
        self.selected = self._find(post_id)
        return self.selected

    def close_post(self) -> None:
        self.selected = None

    def start_compose(self) -> PostDraft:
        """Open a blank form signed with the reader's name."""
        self.editing = None
        self.draft = PostDraft(user_name=self.session.display_name)
        self.form_open = True
        return self.draft

    def start_edit(self, post_id: str) -> bool:
        """Open the form on one of the reader's own posts."""
        item = self._find(post_id)
        if item is None or not item.post.is_owned_by(self.session.user_id):
            return False
        self.editing = item
        self.draft = PostDraft.from_post(item.post)
        self.form_open = True
        return True

    def cancel_form(self) -> None:
        self.form_open = False
        self.editing = None
        self.draft = None

    async def upload_cover(self, filename: str, data: bytes) -> MutationResult:
        """Upload a cover image and put its URL in the open form."""
        if self.draft is None:
            self.start_compose()
        try:
            url = await self.covers.upload(filename, data)
        except RheteursError as e:
            return MutationResult.failure(COVER_UPLOAD_FAILED, e.message)
        self.draft = self.draft.model_copy(update={"cover_url": url})
        return MutationResult.success()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def save_post(self, draft: PostDraft | None = None) -> MutationResult:
        """
        Create or update the post in the form.

        New posts are stamped with the reader's id, or NULL without a
        session (anonymous exposés are allowed).
        """
        if draft is not None:
            self.draft = draft
        if self.draft is None:
            return MutationResult.invalid(ValidationError(list(PostDraft.REQUIRED)).message)
        missing = self.draft.missing_fields()
        if missing:
            return MutationResult.invalid(ValidationError(missing).message)
        return await self._writes.save(
            self.draft.to_row(),
            entity_id=self.draft.id,
            on_success=self.cancel_form,
        )

    async def delete_post(self, post_id: str, confirm: Confirm) -> MutationResult:
        def closed_detail() -> None:
            if self.selected is not None and self.selected.id == post_id:
                self.selected = None
            if self.editing is not None and self.editing.id == post_id:
                self.cancel_form()

        return await self._writes.delete(post_id, confirm, on_success=closed_detail)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def close(self) -> None:
        self._unsubscribe()
        await self._scope.close()

    def _find(self, post_id: str) -> PostView | None:
        for item in self.posts or []:
            if item.id == post_id:
                return item
        return None

    def _on_session_change(self, session: SessionContext) -> None:
        if not session.is_authenticated:
            self.view = "all"
            if self.editing is not None:
                self.cancel_form()
