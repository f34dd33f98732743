"""
Exception hierarchy for SafeCommit.

Each failure category maps to a distinct HTTP status or hook outcome, so
callers catch the narrowest class they can act on.
"""

from typing import Optional


class SafeCommitError(Exception):
    """Base exception for SafeCommit errors."""
    pass


class ConfigurationError(SafeCommitError):
    """Raised at startup when required configuration is missing or invalid."""
    pass


class LLMError(SafeCommitError):
    """Base exception for model backend failures (connectivity, SDK errors)."""
    pass


class LLMTimeoutError(LLMError):
    """Raised when a model call does not complete within its timeout."""

    def __init__(self, message: str, timeout_ms: int):
        super().__init__(message)
        self.timeout_ms = timeout_ms


class ReviewValidationError(SafeCommitError):
    """Raised when the model output is still invalid after the repair attempt."""

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(message)
        self.detail = detail


class BackendError(SafeCommitError):
    """Base exception for hook-side failures talking to the review backend."""
    pass


class BackendUnavailableError(BackendError):
    """The backend could not be reached or answered with a non-2xx status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class BackendResponseError(BackendError):
    """The backend answered, but the body was not a usable review response."""
    pass


class HookInstallError(SafeCommitError):
    """Raised when a hook not installed by SafeCommit is in the way."""
    pass
