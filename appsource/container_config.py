"""Read a service container's CustomSettings.config as a key/value snapshot."""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from typing import List, Optional, Tuple

from .errors import RemoteExecutionError
from .interfaces import RemoteExecutor
from .models import ServerConfiguration

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_PATH = r"C:\Program Files\Microsoft Dynamics NAV\*\Service\CustomSettings.config"

_READ_SETTINGS_SCRIPT = """$ErrorActionPreference = 'Stop'
$configFile = (Resolve-Path -Path '{path}' | Select-Object -First 1).ProviderPath
[Console]::Out.Write([System.IO.File]::ReadAllText($configFile))
"""


def build_read_script(settings_path: str = DEFAULT_SETTINGS_PATH) -> str:
    return _READ_SETTINGS_SCRIPT.format(path=settings_path.replace("'", "''"))


def _attribute(element: ET.Element, name: str) -> Optional[str]:
    # CustomSettings.config writes key/value in lower case.
    for attr, value in element.attrib.items():
        if attr.lower() == name.lower():
            return value
    return None


def parse_server_configuration(xml_text: str, container_name: str) -> ServerConfiguration:
    """Flatten ``appSettings/add`` entries of an XML document.

    Raises:
        xml.etree.ElementTree.ParseError: if ``xml_text`` is not well-formed
    """
    root = ET.fromstring(xml_text.lstrip("\ufeff").strip())
    if root.tag == "appSettings":
        entries = root.findall("add")
    else:
        entries = root.findall(".//appSettings/add")

    settings: List[Tuple[str, str]] = []
    for entry in entries:
        key = _attribute(entry, "Key")
        if key is None:
            logger.debug(f"Skipping appSettings entry without a key in {container_name}")
            continue
        settings.append((key, _attribute(entry, "Value") or ""))

    return ServerConfiguration(container_name, tuple(settings))


def get_server_configuration(
    container_name: str,
    executor: RemoteExecutor,
    settings_path: str = DEFAULT_SETTINGS_PATH,
) -> ServerConfiguration:
    """Read the service settings of a running container.

    Args:
        container_name: Container to open a shell in
        executor: Runs the read script inside the container
        settings_path: Location of CustomSettings.config inside the container;
            wildcards are resolved to the first match

    Returns:
        ServerConfiguration keyed by setting name, tagged with the container name

    Errors from the executor and the XML parser propagate unchanged.
    """
    result = executor.run(container_name, build_read_script(settings_path))
    if not result.succeeded:
        raise RemoteExecutionError(
            f"Reading {settings_path} in container {container_name} failed "
            f"(exit code {result.exit_code}): {result.stderr}",
            container_id=container_name,
            exit_code=result.exit_code,
            stderr=result.stderr,
        )

    configuration = parse_server_configuration(result.stdout, container_name)
    logger.info(f"Read {len(configuration)} settings from container {container_name}")
    return configuration
