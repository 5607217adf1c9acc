"""
L3 Detection — System package checking.

Read-only probes for Debian package state via ``dpkg-query``.
"""

from __future__ import annotations

import logging
import subprocess

logger = logging.getLogger(__name__)


def is_pkg_installed(pkg: str) -> bool:
    """Check if a single Debian package is installed.

    Uses ``dpkg-query -W -f='${Status}' PKG``.

    Returns:
        True if installed, False if not installed or the check failed.
    """
    try:
        r = subprocess.run(
            ["dpkg-query", "-W", "-f=${Status}", pkg],
            capture_output=True, text=True, timeout=10,
        )
        return "install ok installed" in r.stdout
    except FileNotFoundError:
        logger.warning("dpkg-query not found (checking %s)", pkg)
    except subprocess.TimeoutExpired:
        logger.warning("Timeout checking package %s", pkg)
    except OSError as exc:
        logger.warning("OS error checking package %s: %s", pkg, exc)
    return False


def check_system_deps(packages: list[str]) -> dict[str, list[str]]:
    """Split ``packages`` into installed and missing.

    Queries all packages in a single ``dpkg-query`` call; falls back to
    per-package checks if the batch query cannot run.

    Returns:
        ``{"missing": [...], "installed": [...]}``, both in input order.
    """
    if not packages:
        return {"missing": [], "installed": []}

    try:
        r = subprocess.run(
            ["dpkg-query", "-W", "-f=${Package} ${Status}\\n", *packages],
            capture_output=True, text=True, timeout=30,
        )
    except (FileNotFoundError, subprocess.TimeoutExpired, OSError) as exc:
        logger.warning("Batch package check failed: %s. Checking individually.", exc)
        installed = [p for p in packages if is_pkg_installed(p)]
        return {
            "missing": [p for p in packages if p not in installed],
            "installed": installed,
        }

    # Unknown packages only produce stderr noise; one line per known package
    present: set[str] = set()
    for line in r.stdout.splitlines():
        name, _, status = line.partition(" ")
        if "install ok installed" in status:
            present.add(name.strip())

    return {
        "missing": [p for p in packages if p not in present],
        "installed": [p for p in packages if p in present],
    }
