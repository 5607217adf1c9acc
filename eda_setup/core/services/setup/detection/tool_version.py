"""
L3 Detection — Tool version checking.

Read-only probes: runs ``-version`` style commands and parses output.
Probe failures of any kind return ``None``; callers treat that as
"not installed".
"""

from __future__ import annotations

import logging
import os
import re
import subprocess
from typing import Sequence

from eda_setup.core.services.setup.detection.probes import find_executable

logger = logging.getLogger(__name__)

# Version command and pattern whose first group is "major.minor"
YOSYS_VERSION: tuple[list[str], str] = (["yosys", "-V"], r"Yosys\s+(\d+\.\d+)")


def query_version(
    cmd: list[str],
    pattern: str,
    *,
    search_dirs: Sequence[str | os.PathLike] | None = None,
    timeout: int = 10,
) -> str | None:
    """Run a version command and return the first regex group.

    Args:
        cmd: Version command; ``cmd[0]`` is resolved against
            ``search_dirs`` (or ``PATH`` when ``None``).
        pattern: Regex whose first group captures the version.
        search_dirs: Restrict where the executable may be found.
        timeout: Seconds before the probe is abandoned.

    Returns:
        Version string (e.g. ``"0.58"``) or ``None`` if the tool is
        missing, crashes, times out or prints nothing parsable.
    """
    exe = find_executable(cmd[0], search_dirs)
    if exe is None:
        return None

    try:
        result = subprocess.run(
            [exe, *cmd[1:]], capture_output=True, text=True, errors="replace",
            timeout=timeout,
        )
    except (subprocess.TimeoutExpired, OSError) as exc:
        logger.debug("Version probe %s failed: %s", exe, exc)
        return None

    # Some tools print their banner on stderr
    output = (result.stdout or "") + (result.stderr or "")
    match = re.search(pattern, output)
    if match:
        return match.group(1)
    logger.debug("Version probe %s: no match for %r in %r", exe, pattern, output[:200])
    return None
