"""
Error types raised across the task pipeline
"""
from typing import Optional


class BuilderError(Exception):
    pass


class AuthError(BuilderError):
    """Request secret does not match SHARED_SECRET."""


class GenerationError(BuilderError):
    """The LLM call produced no usable content. Never leaves the generator."""


class PublishError(BuilderError):
    """A GitHub operation was rejected."""

    def __init__(self, action: str, status: Optional[int] = None, message: str = ""):
        self.action = action
        self.status = status
        self.message = message
        super().__init__(f"{action} failed: {status} - {message}")


class RepositoryExists(PublishError):
    pass


class NotFoundError(PublishError):
    pass


class ShaConflict(PublishError):
    """Updating an existing file without (or with a stale) blob sha."""


class NotifyError(BuilderError):
    """One failed delivery attempt to the evaluation URL."""
