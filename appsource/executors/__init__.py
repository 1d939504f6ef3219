"""Remote executors that run scripts inside containers.

``create_executor`` picks the implementation named by ``ExecutorConfig.type``.
"""

from __future__ import annotations

from typing import Dict, Type

from ..config import ExecutorConfig
from ..interfaces import RemoteExecutor
from .docker import DockerExecutor
from .mock import MockExecutor

EXECUTORS: Dict[str, Type[RemoteExecutor]] = {
    "docker": DockerExecutor,
    "mock": MockExecutor,
}


def create_executor(config: ExecutorConfig) -> RemoteExecutor:
    executor_cls = EXECUTORS.get(config.type)
    if executor_cls is None:
        known = ", ".join(sorted(EXECUTORS))
        raise ValueError(f"Unknown executor type: {config.type} (expected one of: {known})")
    return executor_cls(config)


__all__ = ["EXECUTORS", "DockerExecutor", "MockExecutor", "create_executor"]
