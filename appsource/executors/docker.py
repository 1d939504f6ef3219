"""Runs PowerShell inside Windows containers through the docker CLI."""

from __future__ import annotations

import base64
import logging
import shutil
import subprocess
from typing import List

from ..config import ExecutorConfig
from ..errors import RemoteExecutionError
from ..interfaces import RemoteExecutor
from ..models import ExecutionResult

logger = logging.getLogger(__name__)


def encode_powershell(script: str) -> str:
    """Encode a script for ``powershell -EncodedCommand`` (base64 of UTF-16LE)."""
    return base64.b64encode(script.encode("utf-16-le")).decode("ascii")


class DockerExecutor(RemoteExecutor):
    def __init__(self, config: ExecutorConfig) -> None:
        """Optional config params:
            docker_binary: docker executable (default: found on PATH)
            shell: shell inside the container (default: powershell)
            timeout: seconds to wait for the script (default: 120)
        """
        self._docker = config.params.get("docker_binary") or shutil.which("docker") or "docker"
        self._shell = config.params.get("shell", "powershell")
        self._timeout = float(config.params.get("timeout", 120))

    def build_command(self, container_id: str, script: str) -> List[str]:
        return [
            self._docker,
            "exec",
            container_id,
            self._shell,
            "-NoProfile",
            "-NonInteractive",
            "-EncodedCommand",
            encode_powershell(script),
        ]

    def run(self, container_id: str, script: str) -> ExecutionResult:
        cmd = self.build_command(container_id, script)
        logger.debug(f"Running script in container {container_id}")

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self._timeout,
                check=False,
            )
        except FileNotFoundError as e:
            raise RemoteExecutionError(
                f"docker executable not found: {self._docker}", container_id=container_id
            ) from e
        except subprocess.TimeoutExpired as e:
            raise RemoteExecutionError(
                f"Script in container {container_id} timed out after {self._timeout}s",
                container_id=container_id,
            ) from e

        return ExecutionResult(
            stdout=result.stdout,
            stderr=result.stderr.strip(),
            exit_code=result.returncode,
        )
