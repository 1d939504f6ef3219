"""Domain models shared by the container reader and the Ingestion API client."""

from __future__ import annotations

import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple


@dataclass
class AuthContext:
    access_token: str
    expires_at: Optional[float] = None
    scopes: List[str] = field(default_factory=list)
    extra: Dict[str, Any] = field(default_factory=dict, repr=False)

    def expires_within(self, seconds: float) -> bool:
        """True when the token expires in less than ``seconds`` (or is unknown)."""
        if self.expires_at is None:
            return True
        return time.time() >= self.expires_at - seconds


@dataclass(frozen=True)
class ExecutionResult:
    stdout: str
    stderr: str = ""
    exit_code: int = 0

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0


@dataclass(frozen=True)
class Page:
    """One page of an Ingestion API collection: ``{value: [...], nextlink?: str}``."""

    items: List[Dict[str, Any]]
    next_link: Optional[str] = None


class ServerConfiguration(Mapping):
    """Read-only view of a service's ``appSettings`` tagged with its container.

    Keys keep the order they had in the configuration file.
    """

    def __init__(self, container_name: str, settings: Tuple[Tuple[str, str], ...]) -> None:
        self._container_name = container_name
        self._settings: Dict[str, str] = dict(settings)

    @property
    def container_name(self) -> str:
        return self._container_name

    def __getitem__(self, key: str) -> str:
        return self._settings[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._settings)

    def __len__(self) -> int:
        return len(self._settings)

    def __repr__(self) -> str:
        return (
            f"ServerConfiguration(container_name={self._container_name!r}, "
            f"settings={len(self._settings)})"
        )

    def to_dict(self) -> Dict[str, str]:
        data = dict(self._settings)
        data["ContainerName"] = self._container_name
        return data
