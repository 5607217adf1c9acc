"""
L3 Detection — Host preconditions.

Checked once, before any stage starts. A failed precondition raises
``PreconditionError`` so that no partial state is ever created.
"""

from __future__ import annotations

import logging
import os
import platform
from pathlib import Path

from eda_setup.core.services.setup.detection.probes import find_executable

logger = logging.getLogger(__name__)

OS_RELEASE = Path("/etc/os-release")

_DEBIAN_FAMILY = {"debian", "ubuntu"}

REQUIRED_EXECUTABLES: tuple[str, ...] = ("python3", "apt-get", "sudo")


class PreconditionError(Exception):
    """Raised when the host cannot run the installer at all."""


def read_os_release(path: Path = OS_RELEASE) -> dict[str, str]:
    """Parse ``/etc/os-release`` into a dict (empty if unreadable)."""
    info: dict[str, str] = {}
    try:
        text = path.read_text(encoding="utf-8")
    except OSError:
        return info
    for line in text.splitlines():
        key, sep, value = line.partition("=")
        if sep:
            info[key.strip()] = value.strip().strip('"')
    return info


def is_debian_family(os_release: dict[str, str]) -> bool:
    ids = {os_release.get("ID", "").lower()}
    ids.update(os_release.get("ID_LIKE", "").lower().split())
    return bool(ids & _DEBIAN_FAMILY)


def check_preconditions(
    *,
    os_release_path: Path = OS_RELEASE,
    required: tuple[str, ...] = REQUIRED_EXECUTABLES,
) -> dict[str, str]:
    """Verify the host can run the installer.

    Raises:
        PreconditionError: Running as root, not Linux, not Debian/Ubuntu,
            or a required executable is missing.

    Returns:
        The parsed ``os-release`` mapping, for display.
    """
    if os.geteuid() == 0:
        raise PreconditionError(
            "Do not run the installer as root; it calls sudo where needed."
        )

    system = platform.system()
    if system != "Linux":
        raise PreconditionError(f"Linux is required (detected {system}).")

    os_release = read_os_release(os_release_path)
    if not is_debian_family(os_release):
        name = os_release.get("PRETTY_NAME") or os_release.get("ID") or "unknown"
        raise PreconditionError(f"A Debian or Ubuntu host is required (detected {name}).")

    missing = [exe for exe in required if find_executable(exe) is None]
    if missing:
        raise PreconditionError(f"Required executables not found: {', '.join(missing)}")

    logger.info("Host: %s", os_release.get("PRETTY_NAME", "Linux"))
    return os_release
