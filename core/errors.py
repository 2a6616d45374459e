"""
core/errors.py -- Exception taxonomy shared by every Inkwell layer.

Everything except ConfigurationError is recoverable: route handlers catch these
and re-render a page. ConfigurationError is raised during startup only and
stops the process.

Layer rule: core/ is the kernel. No imports from the other layers.
"""

from __future__ import annotations


class InkwellError(Exception):
    """Base class for all application errors."""


class ValidationError(InkwellError):
    """User input failed one or more checks.

    messages holds every failed check, not just the first, so a form can show
    the complete list at once.
    """

    def __init__(self, messages: list[str]) -> None:
        self.messages = list(messages)
        super().__init__("; ".join(self.messages))


class AuthenticationFailure(InkwellError):
    """Login rejected: unknown username or wrong password."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class DuplicateUsername(InkwellError):
    """A user with this exact username already exists."""

    def __init__(self, username: str) -> None:
        self.username = username
        super().__init__(f"username {username!r} is already taken")


class Unauthorized(InkwellError):
    """The caller is authenticated but does not own the resource."""


class NotFound(InkwellError):
    """The requested resource does not exist."""


class ConfigurationError(InkwellError):
    """Startup cannot proceed (missing secret, unreachable store)."""
