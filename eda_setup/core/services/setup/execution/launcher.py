"""
L4 Execution — Detached job launcher.

Starts a long-running OpenRAM compile inside a detached tmux session
that survives logout. Fire-and-forget: success means the session was
created and the command typed into it; the job's own log reports how
it ends.
"""

from __future__ import annotations

import logging
import os
import re
import shlex
import subprocess
from dataclasses import dataclass
from pathlib import Path

from eda_setup.core.services.setup.data.constants import JOB_SESSION_PREFIX
from eda_setup.core.services.setup.detection.probes import find_executable

logger = logging.getLogger(__name__)

USAGE = (
    "Usage: {prog} <config_file.py>\n"
    "\n"
    "Example:\n"
    "  {prog} my_sram_config.py\n"
    "\n"
    "Runs OpenRAM in a tmux session that persists even if you disconnect."
)


class LaunchError(Exception):
    """Raised when a job session cannot be started."""


@dataclass
class LaunchResult:
    session: str
    config_file: str
    workdir: str

    def to_dict(self) -> dict:
        return {
            "session": self.session,
            "config_file": self.config_file,
            "workdir": self.workdir,
        }


def session_name(config_file: str) -> str:
    """Session name for a config path: prefix + base name without extension.

    Dots and colons are not allowed in tmux session names and become
    underscores. ``/x/my.sram.py`` → ``openram_my_sram``.
    """
    base = os.path.basename(config_file.rstrip("/")) or config_file
    dot = base.rfind(".")
    stem = base[:dot] if dot > 0 else base
    return JOB_SESSION_PREFIX + re.sub(r"[.:]", "_", stem)


def launch_job(
    config_file: str,
    *,
    workdir: Path,
    env_script: Path,
    tmux: str = "tmux",
    python: str = "python3",
) -> LaunchResult:
    """Create one detached tmux session running ``sram_compiler.py``.

    Args:
        config_file: OpenRAM configuration file (need not exist yet;
            resolved to an absolute path before changing directory).
        workdir: OpenRAM checkout the job runs in.
        env_script: Generated environment script sourced in the session.

    Raises:
        LaunchError: tmux missing, workdir missing, or session creation failed.
    """
    tmux_exe = find_executable(tmux)
    if tmux_exe is None:
        raise LaunchError("tmux is not installed")
    if not workdir.is_dir():
        raise LaunchError(f"OpenRAM checkout not found: {workdir}")

    config_path = str(Path(config_file).expanduser().resolve())
    name = session_name(config_file)

    created = subprocess.run(
        [tmux_exe, "new-session", "-d", "-s", name, "-c", str(workdir)],
        capture_output=True, text=True,
    )
    if created.returncode != 0:
        raise LaunchError(
            f"Could not create tmux session '{name}': "
            f"{(created.stderr or created.stdout).strip() or 'exit ' + str(created.returncode)}"
        )
    logger.info("Created tmux session %s in %s", name, workdir)

    keys = [
        f"cd {shlex.quote(str(workdir))}",
        f"source {shlex.quote(str(env_script))}",
        f"{python} sram_compiler.py {shlex.quote(config_path)}",
    ]
    for line in keys:
        sent = subprocess.run(
            [tmux_exe, "send-keys", "-t", name, line, "Enter"],
            capture_output=True, text=True,
        )
        if sent.returncode != 0:
            raise LaunchError(
                f"Session '{name}' created but command could not be sent: "
                f"{sent.stderr.strip()}"
            )

    return LaunchResult(session=name, config_file=config_path, workdir=str(workdir))
