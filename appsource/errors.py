"""Exception types raised by the appsource package."""

from __future__ import annotations

from typing import Optional


class AppSourceError(Exception):
    """Base class for errors raised by this package."""


class RemoteExecutionError(AppSourceError):
    """A script could not be run inside a container, or it exited non-zero."""

    def __init__(
        self,
        message: str,
        container_id: Optional[str] = None,
        exit_code: Optional[int] = None,
        stderr: str = "",
    ) -> None:
        super().__init__(message)
        self.container_id = container_id
        self.exit_code = exit_code
        self.stderr = stderr


class PaginationError(AppSourceError):
    """A paged collection did not terminate the way the server should end it."""


class AuthenticationError(AppSourceError):
    """An access token could not be obtained or renewed."""
