"""
L3 Detection — Scoped filesystem and interpreter probes.

These functions READ host state but never WRITE. Every probe answers
a yes/no (or path/None) question and swallows its own errors: an
unanswerable probe means "not there".
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
from pathlib import Path
from typing import Sequence

logger = logging.getLogger(__name__)


def find_executable(
    name: str,
    search_dirs: Sequence[str | os.PathLike] | None = None,
) -> str | None:
    """Resolve an executable, optionally restricted to ``search_dirs``.

    With ``search_dirs=None`` this is a plain ``PATH`` lookup. With a
    list, only those directories are searched, so a same-named tool
    from another installation on ``PATH`` is never picked up.
    """
    if os.sep in name:
        return name if is_executable(Path(name)) else None
    if search_dirs is None:
        return shutil.which(name)
    return shutil.which(name, path=os.pathsep.join(str(d) for d in search_dirs))


def is_executable(path: Path) -> bool:
    """True if ``path`` is a regular file with an execute bit."""
    try:
        return path.is_file() and os.access(path, os.X_OK)
    except OSError:
        return False


def has_files(base: Path, *relative: str) -> bool:
    """True if every ``relative`` path exists under ``base``."""
    try:
        return all((base / rel).exists() for rel in relative)
    except OSError:
        return False


def runs_cleanly(cmd: list[str], *, timeout: int = 15, env: dict[str, str] | None = None) -> bool:
    """True if ``cmd`` exits 0 within ``timeout`` seconds."""
    try:
        result = subprocess.run(
            cmd, capture_output=True, timeout=timeout, env=env,
        )
    except (subprocess.TimeoutExpired, OSError) as exc:
        logger.debug("Probe %s failed: %s", cmd, exc)
        return False
    return result.returncode == 0


def module_locatable(
    module: str,
    python_path: Sequence[str | os.PathLike],
    *,
    interpreter: str = "python3",
    timeout: int = 15,
) -> bool:
    """Check that ``module`` can be found on ``python_path`` by ``interpreter``.

    Uses ``importlib.util.find_spec`` in a child interpreter: the module
    is located but its code is not executed. ``python_path`` replaces
    any inherited ``PYTHONPATH`` so the probe only sees the install root.
    """
    exe = find_executable(interpreter)
    if exe is None:
        return False
    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join(str(p) for p in python_path)
    code = (
        "import importlib.util, sys; "
        f"sys.exit(0 if importlib.util.find_spec({module!r}) else 1)"
    )
    return runs_cleanly([exe, "-c", code], timeout=timeout, env=env)
