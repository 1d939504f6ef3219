"""Configuration models and helpers for the appsource tooling."""

from __future__ import annotations

import json
import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from string import Template
from typing import Any, Dict, List, Mapping, MutableMapping, Optional, Tuple, Union

logger = logging.getLogger(__name__)

INGESTION_API_BASE_URL = "https://api.partner.microsoft.com/v1.0/ingestion"
INGESTION_API_SCOPE = "https://api.partner.microsoft.com/.default"


@dataclass
class IngestionApiConfig:
    """Settings for the Partner Center Ingestion API client."""

    base_url: str = INGESTION_API_BASE_URL
    timeout: float = 60.0
    max_pages: Optional[int] = None
    silent: bool = False


@dataclass
class ExecutorConfig:
    """Which remote executor runs scripts inside containers."""

    type: str = "docker"
    params: Dict[str, Any] = field(default_factory=dict)


@dataclass
class AuthConfig:
    """How access tokens for the Ingestion API are obtained."""

    type: str = "msal"
    params: Dict[str, Any] = field(default_factory=dict)


@dataclass
class AppConfig:
    """Top-level configuration."""

    api: IngestionApiConfig = field(default_factory=IngestionApiConfig)
    executor: ExecutorConfig = field(default_factory=ExecutorConfig)
    auth: AuthConfig = field(default_factory=AuthConfig)
    telemetry: str = "logging"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AppConfig":
        return cls(
            api=IngestionApiConfig(**data.get("api", {})),
            executor=ExecutorConfig(**data.get("executor", {})),
            auth=AuthConfig(**data.get("auth", {})),
            telemetry=data.get("telemetry", "logging"),
        )

    @classmethod
    def from_json(cls, path: Path) -> "AppConfig":
        data = json.loads(path.read_text())
        return cls.from_dict(expand_env_vars(data))


DEFAULT_CONFIG_DATA: Dict[str, Any] = {
    "auth": {
        "type": "msal",
        "params": {
            "tenant_id": "${AZURE_TENANT_ID}",
            "client_id": "${AZURE_CLIENT_ID}",
            "client_secret": "${AZURE_CLIENT_SECRET}",
        },
    },
}


def _parse_env_line(line: str) -> Optional[Tuple[str, str]]:
    line = line.strip()
    if not line or line.startswith("#") or "=" not in line:
        return None
    if line.startswith("export "):
        line = line[len("export "):]
    key, value = (part.strip() for part in line.split("=", 1))
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "'\"":
        value = value[1:-1]
    return key, value


def load_env_file(
    env_file: Path,
    environ: Optional[MutableMapping[str, str]] = None,
    override: bool = False,
) -> Dict[str, str]:
    """Apply a dotenv-style file to ``environ`` (``os.environ`` by default).

    Accepts ``export`` prefixes and quoted values. Existing variables win unless
    ``override`` is set. Returns the variables that were applied.
    """
    target = os.environ if environ is None else environ
    if not env_file.exists():
        logger.debug(f"Environment file not found: {env_file}")
        return {}

    applied: Dict[str, str] = {}
    for number, line in enumerate(env_file.read_text().splitlines(), 1):
        parsed = _parse_env_line(line)
        if parsed is None:
            continue
        key, value = parsed
        if key in target and not override:
            logger.debug(f"{env_file}:{number} keeps existing {key}")
            continue
        target[key] = value
        applied[key] = value

    logger.info(f"Loaded {len(applied)} variables from {env_file}")
    return applied


JsonValue = Union[Dict[str, Any], list, str, Any]

_UNRESOLVED = re.compile(r"\$\{(\w+)\}")


def expand_env_vars(data: JsonValue, environ: Optional[Mapping[str, str]] = None) -> JsonValue:
    """Recursively substitute ${VAR} and $VAR in string values.

    Unknown variables are left as written; see ``unresolved_variables``.
    """
    source = os.environ if environ is None else environ
    if isinstance(data, dict):
        return {key: expand_env_vars(value, source) for key, value in data.items()}
    if isinstance(data, list):
        return [expand_env_vars(item, source) for item in data]
    if isinstance(data, str):
        return Template(data).safe_substitute(source)
    return data


def unresolved_variables(value: Any) -> List[str]:
    """Names of ${VAR} references still present in a string value.

    Only the braced form is reported; a bare dollar sign is left alone.
    """
    if not isinstance(value, str):
        return []
    return _UNRESOLVED.findall(value)
