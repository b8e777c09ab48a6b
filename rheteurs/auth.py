"""
Authentication and session state for Les Rhéteurs.

Email/password sign-up and sign-in against Supabase Auth, the current
session and profile, and translation of auth failures into the messages
shown to users.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from supabase import AsyncClient, AuthError

from rheteurs import db
from rheteurs.errors import AuthenticationError, DataError, ValidationError
from rheteurs.models.auth import CurrentUser, SignUpResponse
from rheteurs.models.profile import Profile
from rheteurs.repos.profile_repo import ProfileRepo
from rheteurs.services.scope import ScopeClosed, ViewScope

logger = logging.getLogger(__name__)

# Known Supabase Auth messages, matched by substring
AUTH_ERROR_MESSAGES: tuple[tuple[str, str], ...] = (
    ("Invalid login credentials", "Identifiants incorrects. Veuillez vérifier votre email et mot de passe."),
    ("Email not confirmed", "Veuillez confirmer votre adresse email avant de vous connecter."),
    ("User already registered", "Cet email est déjà utilisé par un autre Rhéteur."),
    ("Password should be at least", "Le mot de passe doit contenir au moins 6 caractères."),
)
GENERIC_AUTH_ERROR = "Une erreur est survenue lors de l'authentification."

ANONYMOUS_NAME = "Anonyme"

SessionListener = Callable[["SessionContext"], None]


def translate_auth_error(message: str) -> str:
    """
    Map a Supabase Auth error message to the text shown to users.

    Args:
        message: Raw message from the auth service

    Returns:
        Translated message, or the generic one for anything unrecognized
    """
    for needle, translated in AUTH_ERROR_MESSAGES:
        if needle in message:
            return translated
    return GENERIC_AUTH_ERROR


def _require(**fields: str) -> None:
    missing = [name for name, value in fields.items() if not value or not value.strip()]
    if missing:
        raise ValidationError(missing)


class SessionContext:
    """
    Process-wide session and profile state.

    Created once at startup and passed to every controller that needs the
    current user. Lifecycle: start() reads the existing session and
    subscribes to auth changes; sign_out() ends the session; close()
    unsubscribes and cancels in-flight profile loads.
    """

    def __init__(self, client: AsyncClient | None = None, profiles: ProfileRepo | None = None) -> None:
        self._client = client
        self.profiles = profiles or ProfileRepo(client)
        self.user: CurrentUser | None = None
        self.profile: Profile | None = None
        self._listeners: list[SessionListener] = []
        self._subscription: Any = None
        self._scope = ViewScope("session")
        self._explicit_change = False

    @property
    def client(self) -> AsyncClient:
        return self._client or db.get_client()

    @property
    def user_id(self) -> str | None:
        return self.user.id if self.user else None

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    @property
    def display_name(self) -> str:
        """Name used to sign new posts and replies: profile first, then sign-up metadata."""
        if self.profile and self.profile.full_name:
            return self.profile.full_name
        if self.user and self.user.full_name:
            return self.user.full_name
        return ""

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Pick up an existing session and follow auth state changes."""
        session = await self.client.auth.get_session()
        self._apply_session(session)
        self._subscription = self.client.auth.on_auth_state_change(self._on_auth_state_change)
        if self.user is not None:
            await self.reload_profile()
        logger.info("Session context started (%s)", "signed in" if self.user else "anonymous")

    async def close(self) -> None:
        """Stop following auth changes. Safe to call twice."""
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
        await self._scope.close()
        self._listeners.clear()

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """
        Register a callback run after every sign-in, sign-out or profile reload.

        Returns:
            A function that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ------------------------------------------------------------------
    # Auth operations
    # ------------------------------------------------------------------

    async def sign_up(self, email: str, password: str, full_name: str) -> SignUpResponse:
        """
        Register with email/password. The display name goes in user metadata.

        Returns:
            SignUpResponse with the "check your inbox" message

        Raises:
            ValidationError: If a field is empty (no call is made)
            AuthenticationError: With the translated message
        """
        _require(email=email, password=password, full_name=full_name)
        try:
            response = await self.client.auth.sign_up(
                {
                    "email": email,
                    "password": password,
                    "options": {"data": {"full_name": full_name}},
                }
            )
        except AuthError as e:
            logger.warning("Sign-up rejected: %s", e.message)
            raise AuthenticationError(translate_auth_error(e.message), raw=e.message) from e

        user = getattr(response, "user", None)
        return SignUpResponse(user_id=str(user.id) if user else None)

    async def sign_in(self, email: str, password: str) -> CurrentUser:
        """
        Open a session with email/password and load the profile.

        Raises:
            ValidationError: If a field is empty (no call is made)
            AuthenticationError: With the translated message
        """
        _require(email=email, password=password)
        self._explicit_change = True
        try:
            response = await self.client.auth.sign_in_with_password({"email": email, "password": password})
        except AuthError as e:
            logger.warning("Sign-in rejected: %s", e.message)
            raise AuthenticationError(translate_auth_error(e.message), raw=e.message) from e
        finally:
            self._explicit_change = False

        self._apply_session(response.session)
        if self.user is None:
            raise AuthenticationError(GENERIC_AUTH_ERROR)
        await self.reload_profile()
        logger.info("Signed in as %s", self.user.id)
        self._notify()
        return self.user

    async def sign_out(self) -> None:
        """End the session. Local state is cleared even if the call fails."""
        self._explicit_change = True
        try:
            await self.client.auth.sign_out()
        except AuthError as e:
            logger.warning("Sign-out call failed, clearing local session anyway: %s", e.message)
        finally:
            self._explicit_change = False
            self.user = None
            self.profile = None
        logger.info("Signed out")
        self._notify()

    async def reload_profile(self) -> Profile | None:
        """
        Fetch the current user's profile row.

        A failed fetch leaves ``profile`` as it was and is logged; the
        session itself stays valid without a profile.
        """
        if self.user is None:
            self.profile = None
            return None
        try:
            self.profile = await self._scope.run(self.profiles.get(self.user.id))
        except ScopeClosed:
            logger.debug("Profile load for %s dropped after close", self.user.id)
        except DataError as e:
            logger.warning("Could not load profile for %s: %s", self.user.id, e.message)
        return self.profile

    def set_profile(self, profile: Profile) -> None:
        """Replace the cached profile after the user edited it."""
        self.profile = profile
        self._notify()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _apply_session(self, session: Any) -> None:
        user = getattr(session, "user", None) if session is not None else None
        self.user = CurrentUser.from_auth_user(user) if user is not None else None

    def _on_auth_state_change(self, event: str, session: Any) -> None:
        """SDK callback. Explicit sign-in/out handle their own state."""
        if self._explicit_change:
            return
        previous = self.user_id
        self._apply_session(session)
        if self.user_id == previous:
            return
        logger.info("Auth state changed (%s)", event)
        self.profile = None
        if self.user is None:
            self._notify()
        else:
            self._scope.spawn(self.reload_profile(), lambda _profile: self._notify())

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)
