"""In-memory executor returning canned script output per container."""

from __future__ import annotations

from typing import Dict, List, Tuple

from ..config import ExecutorConfig
from ..interfaces import RemoteExecutor
from ..models import ExecutionResult


class MockExecutor(RemoteExecutor):
    def __init__(self, config: ExecutorConfig) -> None:
        self._outputs: Dict[str, str] = dict(config.params.get("outputs", {}))
        self.calls: List[Tuple[str, str]] = []

    def run(self, container_id: str, script: str) -> ExecutionResult:
        self.calls.append((container_id, script))
        if container_id not in self._outputs:
            return ExecutionResult(
                stdout="",
                stderr=f"No such container: {container_id}",
                exit_code=1,
            )
        return ExecutionResult(stdout=self._outputs[container_id])
