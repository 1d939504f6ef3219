"""Interface definitions for the collaborators the core components depend on."""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from typing import Any, Dict, Optional

from .models import AuthContext, ExecutionResult


class RemoteExecutor(ABC):
    """Runs a script inside a named container and captures its output."""

    @abstractmethod
    def run(self, container_id: str, script: str) -> ExecutionResult:
        """Execute ``script`` in ``container_id`` and return what it printed."""


class AuthContextProvider(ABC):
    """Supplies valid access tokens for outgoing API calls."""

    @abstractmethod
    def renew(self, context: Optional[AuthContext] = None) -> AuthContext:
        """Return ``context`` if still valid, otherwise a freshly issued one."""


class TelemetryScope(ABC):
    """One telemetry operation; opened and closed around a single API call."""

    @abstractmethod
    def track_trace(self, message: str) -> None:
        """Record that the operation completed."""

    @abstractmethod
    def track_exception(self, exc: BaseException) -> None:
        """Record that the operation failed with ``exc``."""


class Telemetry(ABC):
    """Factory for telemetry scopes."""

    @abstractmethod
    def scope(
        self, name: str, parameters: Optional[Dict[str, Any]] = None
    ) -> AbstractContextManager[TelemetryScope]:
        """Open a scope that is closed when the context manager exits."""
