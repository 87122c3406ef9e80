"""
Error taxonomy for interview sessions.

Three families matter to callers:
    - ValidationError: bad user input, reported immediately, no transition.
    - LoadFatalError: the interview cannot be loaded, the caller redirects away.
    - PersistenceError: a backend write failed; logged only, never surfaced.
"""

from __future__ import annotations


__all__ = [
    "InterviewSessionError",
    "ValidationError",
    "LoadFatalError",
    "PersistenceError",
    "CollaboratorError",
    "StoreError",
    "AccessDeniedError",
    "InterviewUnavailableError",
]


class InterviewSessionError(Exception):
    """Base exception for interview session errors."""

    def __init__(self, message: str, error_code: str | None = None) -> None:
        self.message = message
        self.error_code = error_code or "INTERVIEW_SESSION_ERROR"
        super().__init__(message)


class ValidationError(InterviewSessionError):
    """Raised when user input or a transition precondition is rejected."""

    def __init__(self, message: str) -> None:
        super().__init__(message, error_code="VALIDATION_ERROR")


class LoadFatalError(InterviewSessionError):
    """Raised when an interview, its metadata, or its questions cannot be loaded."""

    def __init__(
        self,
        message: str = "Interview not found.",
        *,
        interview_id: str | None = None,
        redirect_to: str = "/",
        cause: Exception | None = None,
    ) -> None:
        self.interview_id = interview_id
        self.redirect_to = redirect_to
        self.cause = cause
        super().__init__(message, error_code="INTERVIEW_UNAVAILABLE")


class PersistenceError(InterviewSessionError):
    """Raised when a write to the data collaborator fails."""

    def __init__(self, message: str, error_code: str = "PERSISTENCE_ERROR") -> None:
        super().__init__(message, error_code=error_code)


class CollaboratorError(PersistenceError):
    """Raised by data collaborators when a backend call fails."""

    def __init__(self, operation: str, detail: str) -> None:
        self.operation = operation
        self.detail = detail
        super().__init__(f"{operation} failed: {detail}", error_code="COLLABORATOR_ERROR")


class StoreError(InterviewSessionError):
    """Raised when the key-value store cannot be read or written."""

    def __init__(self, path: object, cause: Exception) -> None:
        self.path = path
        self.cause = cause
        super().__init__(f"Key-value store failure at {path}: {cause}", error_code="STORE_ERROR")


class AccessDeniedError(InterviewSessionError):
    """Raised when an access code and password do not match any interview."""

    def __init__(self, message: str = "Invalid access code or password.") -> None:
        super().__init__(message, error_code="ACCESS_DENIED")


class InterviewUnavailableError(InterviewSessionError):
    """Raised when the interview exists but is no longer accepting candidates."""

    def __init__(self, message: str = "This interview is no longer active.") -> None:
        super().__init__(message, error_code="INTERVIEW_INACTIVE")
