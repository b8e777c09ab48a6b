"""
Profile editing and public profile pages.

The editor works on the signed-in user's own row. Public profiles are
read-only: the profile plus the posts written under that account.
"""

from __future__ import annotations

import logging

import httpx
from pydantic import BaseModel, Field

from rheteurs.auth import SessionContext
from rheteurs.config import settings
from rheteurs.errors import DataError, RheteursError
from rheteurs.models.post import PostView
from rheteurs.models.profile import Profile, ProfileDraft
from rheteurs.models.result import MutationResult
from rheteurs.repos.post_repo import PostRepo
from rheteurs.repos.profile_repo import ProfileRepo
from rheteurs.services.scope import ScopeClosed, ViewScope
from rheteurs.services.storage import ImageUploader

logger = logging.getLogger(__name__)

PROFILE_SAVED = "Profil mis à jour !"
SAVE_FAILED = "Erreur : "
UPLOAD_FAILED = "Erreur upload: "
DOWNLOAD_FAILED = "Erreur lors du téléchargement"

BIO_PLACEHOLDER = "Ce Rhéteur n'a pas encore rédigé sa biographie."
NAME_PLACEHOLDER = "Lecteur Rhéteur"


class ProfileEditor:
    """Form state for "Mon Profil"."""

    def __init__(
        self,
        session: SessionContext,
        repo: ProfileRepo | None = None,
        uploader: ImageUploader | None = None,
    ) -> None:
        self.session = session
        self.repo = repo or session.profiles
        self.uploader = uploader or ImageUploader(settings.AVATARS_BUCKET)
        self.draft = ProfileDraft()
        self.loading = False
        self.load_error: str | None = None
        self._scope = ViewScope("profile-editor")

    async def load(self) -> ProfileDraft:
        """
        Fill the form from the stored profile.

        A user without a profile row gets a blank form; the first save
        creates the row.
        """
        user_id = self.session.user_id
        if user_id is None:
            self.draft = ProfileDraft()
            return self.draft
        self.loading = True
        try:
            profile = await self._scope.run(self.repo.get(user_id))
        except ScopeClosed:
            return self.draft
        except DataError as e:
            self.load_error = e.message
            return self.draft
        finally:
            self.loading = False
        self.load_error = None
        self.draft = ProfileDraft.from_profile(profile)
        return self.draft

    async def save(self, draft: ProfileDraft | None = None) -> MutationResult:
        """Upsert the profile keyed on the user id and refresh the session's copy."""
        user_id = self.session.user_id
        if user_id is None:
            return MutationResult.auth_required()
        if draft is not None:
            self.draft = draft
        try:
            stored = await self.repo.upsert(self.draft.to_row(user_id))
        except RheteursError as e:
            return MutationResult.failure(SAVE_FAILED, e.message)
        self.session.set_profile(stored)
        logger.info("Profile %s updated", user_id)
        return MutationResult.success(PROFILE_SAVED)

    async def upload_avatar(self, filename: str, data: bytes) -> MutationResult:
        """Upload a new portrait and put its URL in the form. Saving stays explicit."""
        user_id = self.session.user_id
        if user_id is None:
            return MutationResult.auth_required()
        try:
            url = await self.uploader.upload(filename, data, prefix=user_id)
        except RheteursError as e:
            return MutationResult.failure(UPLOAD_FAILED, e.message)
        self.draft = self.draft.model_copy(update={"avatar_url": url})
        return MutationResult.success()

    async def close(self) -> None:
        await self._scope.close()


class PublicProfile(BaseModel):
    """Another reader's page: their profile and their posts, newest first."""

    user_id: str
    profile: Profile | None = None
    posts: list[PostView] = Field(default_factory=list)

    @property
    def display_name(self) -> str:
        if self.profile and self.profile.full_name:
            return self.profile.full_name
        return NAME_PLACEHOLDER

    @property
    def bio(self) -> str:
        if self.profile and self.profile.bio:
            return self.profile.bio
        return BIO_PLACEHOLDER


async def load_public_profile(
    user_id: str,
    profiles: ProfileRepo | None = None,
    posts: PostRepo | None = None,
) -> PublicProfile:
    """
    Fetch a reader's public page.

    Args:
        user_id: Whose page to show
        profiles: Profile gateway (defaults to the shared client)
        posts: Post gateway (defaults to the shared client)

    Returns:
        PublicProfile; ``profile`` is None when the user never filled one in

    Raises:
        DataError: If either query fails
    """
    profiles = profiles or ProfileRepo()
    posts = posts or PostRepo()
    profile = await profiles.get(user_id)
    written = await posts.list_for_user(user_id)
    logger.debug("Public profile %s: %d post(s)", user_id, len(written))
    return PublicProfile(user_id=user_id, profile=profile, posts=written)


async def download_avatar(
    profile: Profile,
    http: httpx.AsyncClient | None = None,
) -> tuple[str, bytes] | None:
    """
    Fetch a portrait for saving to disk.

    Args:
        profile: Profile whose avatar to download
        http: Client to use (one is created per call otherwise)

    Returns:
        (file name, image bytes), or None when the profile has no avatar

    Raises:
        DataError: If the download fails
    """
    if not profile.avatar_url:
        return None
    filename = f"portrait-{profile.full_name or NAME_PLACEHOLDER}.jpg"
    try:
        if http is not None:
            response = await http.get(profile.avatar_url)
        else:
            async with httpx.AsyncClient(timeout=settings.DOWNLOAD_TIMEOUT_SECONDS) as client:
                response = await client.get(profile.avatar_url)
        response.raise_for_status()
    except httpx.HTTPError as e:
        logger.warning("Avatar download failed for %s: %s", profile.id, e)
        raise DataError(DOWNLOAD_FAILED) from e
    return filename, response.content
