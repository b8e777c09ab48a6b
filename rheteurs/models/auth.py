"""Authentication models for the email/password session."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel

SIGN_UP_CONFIRMATION = (
    "Inscription réussie ! Veuillez vérifier votre boîte mail pour valider votre compte."
)


class CurrentUser(BaseModel):
    """The identity behind the active session."""

    id: str
    email: str | None = None
    full_name: str | None = None

    @classmethod
    def from_auth_user(cls, user: Any) -> CurrentUser:
        """Build from the SDK's user object (full_name comes from sign-up metadata)."""
        metadata = getattr(user, "user_metadata", None) or {}
        return cls(
            id=str(user.id),
            email=getattr(user, "email", None),
            full_name=metadata.get("full_name"),
        )


class SignUpResponse(BaseModel):
    """Returned after a successful sign-up. No session exists until the email is confirmed."""

    message: str = SIGN_UP_CONFIRMATION
    user_id: str | None = None
