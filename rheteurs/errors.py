"""
Error taxonomy for Les Rhéteurs.

Every error carries the text shown to the user in ``message``. Repos raise
DataError/UploadError with the backend message verbatim; the session
context raises AuthenticationError with a translated message.
"""

from __future__ import annotations


class RheteursError(Exception):
    """Base class. ``message`` is user-facing."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(RheteursError):
    """A required field is empty. Raised before any network call."""

    def __init__(self, fields: list[str]) -> None:
        super().__init__(f"Champs obligatoires manquants : {', '.join(fields)}")
        self.fields = fields


class AuthenticationError(RheteursError):
    """Sign-up or sign-in was rejected. ``message`` is already translated."""

    def __init__(self, message: str, raw: str = "") -> None:
        super().__init__(message)
        self.raw = raw


class DataError(RheteursError):
    """A select/insert/update/delete/upsert call failed."""

    pass


class UploadError(RheteursError):
    """An object storage upload failed."""

    pass
