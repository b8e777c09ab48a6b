"""Outcome of a user-initiated write."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel

MutationStatus = Literal["ok", "failed", "cancelled", "invalid", "auth_required"]


class MutationResult(BaseModel):
    """
    What a controller reports back to the UI after a save/delete.

    ``message`` is the text to show (None when there is nothing to say);
    ``error`` is the raw backend message for failures.
    """

    status: MutationStatus
    message: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @classmethod
    def success(cls, message: str | None = None) -> MutationResult:
        return cls(status="ok", message=message)

    @classmethod
    def failure(cls, prefix: str, error: str) -> MutationResult:
        return cls(status="failed", message=f"{prefix}{error}", error=error)

    @classmethod
    def cancelled(cls) -> MutationResult:
        return cls(status="cancelled")

    @classmethod
    def invalid(cls, message: str) -> MutationResult:
        return cls(status="invalid", message=message)

    @classmethod
    def auth_required(cls) -> MutationResult:
        return cls(status="auth_required", message="Connectez-vous pour participer.")
