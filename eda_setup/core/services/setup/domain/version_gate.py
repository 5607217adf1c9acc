"""
L1 Domain — Version gate.

Decides whether an existing tool is new enough to reuse or whether it
must be built from source. Parsing and comparison are pure; the only
I/O is the optional version probe in ``choose_variant``.

Versions compare as ``(major, minor)`` integer tuples, so ``"0.9"`` is
``(0, 9)`` and sorts below ``(0, 58)``. Anything that does not parse
selects ``BUILD_FROM_SOURCE``.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import StrEnum
from typing import Sequence

logger = logging.getLogger(__name__)

# First "major.minor" pair; trailing "+12", "-dev", "(git sha1 ...)" ignored
_MAJOR_MINOR_RE = re.compile(r"(?<![\d.])(\d+)\.(\d+)")


class Variant(StrEnum):
    """Which path a version-gated stage takes."""

    USE_EXISTING = "use_existing"
    BUILD_FROM_SOURCE = "build_from_source"


@dataclass(frozen=True)
class VersionRequirement:
    """A tool and the minimum ``major.minor`` it must report."""

    tool: str
    min_version: str
    version_command: tuple[str, ...] = ()
    version_pattern: str = r"(\d+\.\d+)"

    @property
    def minimum(self) -> tuple[int, int]:
        parsed = parse_version(self.min_version)
        if parsed is None:
            raise ValueError(f"Invalid minimum version for {self.tool}: {self.min_version!r}")
        return parsed


def parse_version(text: str | None) -> tuple[int, int] | None:
    """Extract the leading ``(major, minor)`` pair from a version string.

    >>> parse_version("Yosys 0.58+12 (git sha1 abc123)")
    (0, 58)
    >>> parse_version("unknown") is None
    True
    """
    if not text:
        return None
    match = _MAJOR_MINOR_RE.search(text)
    if not match:
        return None
    return int(match.group(1)), int(match.group(2))


def meets_minimum(detected: str | None, min_version: str) -> bool:
    """True iff ``detected`` parses and is ``>= min_version``."""
    found = parse_version(detected)
    required = parse_version(min_version)
    if found is None or required is None:
        return False
    return found >= required


def choose_variant(
    requirement: VersionRequirement,
    detected: str | None = None,
    *,
    search_dirs: Sequence[str] | None = None,
) -> Variant:
    """Pick ``USE_EXISTING`` or ``BUILD_FROM_SOURCE`` for a tool.

    Args:
        requirement: Tool name, minimum version and how to query it.
        detected: Version string already known. If ``None``, the tool is
            queried via ``requirement.version_command`` restricted to
            ``search_dirs``.
        search_dirs: Directories the probe may resolve the tool in.

    Returns:
        ``Variant.USE_EXISTING`` only when a parsable version at or above
        the minimum was found.
    """
    if detected is None and requirement.version_command:
        from eda_setup.core.services.setup.detection.tool_version import query_version

        detected = query_version(
            list(requirement.version_command),
            requirement.version_pattern,
            search_dirs=search_dirs,
        )

    if meets_minimum(detected, requirement.min_version):
        logger.info(
            "%s %s satisfies >= %s, reusing it",
            requirement.tool, detected, requirement.min_version,
        )
        return Variant.USE_EXISTING

    if detected is None:
        logger.info("%s not found or version unparsable, building from source", requirement.tool)
    else:
        logger.info(
            "%s %s is older than %s, building from source",
            requirement.tool, detected, requirement.min_version,
        )
    return Variant.BUILD_FROM_SOURCE
