"""
Custom exception classes for unified error handling.
"""

from fastapi import HTTPException


class AppBaseError(Exception):
    """Base exception for all application errors."""
    def __init__(self, message: str, detail: str | None = None):
        self.message = message
        self.detail = detail
        super().__init__(message)


class ValidationError(AppBaseError):
    """Raised before any mutation when input is rejected (empty text, bad import file)."""
    def __init__(self, message: str = "Invalid note data", detail: str | None = None):
        super().__init__(message=message, detail=detail)


class NoteNotFoundError(AppBaseError):
    """Raised when an update/delete targets an id that no longer exists."""
    def __init__(self, note_id):
        self.note_id = note_id
        super().__init__(
            message="Note not found",
            detail=f"No note with id '{note_id}'. It may have been deleted already.",
        )


class StorageUnavailableError(AppBaseError):
    """Raised when the backing medium cannot be read or written."""
    def __init__(self, message: str = "Notes storage is unavailable", detail: str | None = None):
        super().__init__(message=message, detail=detail)


class CorruptFileError(StorageUnavailableError):
    """Raised when the local notes file exists but does not hold a JSON object."""


class TransportError(StorageUnavailableError):
    """Raised when the notes API is unreachable or answers with a server error."""
    def __init__(self, message: str = "Could not reach the notes server", detail: str | None = None):
        super().__init__(message=message, detail=detail)


# ── Utility: convert to HTTPException ────────────────────

def app_error_to_http(error: AppBaseError, status_code: int = 400) -> HTTPException:
    """Convert an AppBaseError to an HTTPException with consistent JSON body."""
    return HTTPException(
        status_code=status_code,
        detail={
            "error": error.message,
            "detail": error.detail,
            "type": type(error).__name__,
        },
    )
