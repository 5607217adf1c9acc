"""
Launch use case — start an OpenRAM job in a detached tmux session.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from eda_setup.core.config.loader import ConfigError, load_config
from eda_setup.core.services.setup.data.constants import ENV_SCRIPT_NAME, STAGE_OPENRAM
from eda_setup.core.services.setup.execution.launcher import (
    LaunchError,
    LaunchResult,
    launch_job,
)
from eda_setup.core.use_cases.install import build_state
from eda_setup.stages.openram import OpenRAMStage


@dataclass
class LaunchOutcome:
    launch: LaunchResult | None = None
    error: str | None = None

    def to_dict(self) -> dict:
        if self.error:
            return {"error": self.error}
        assert self.launch is not None
        return self.launch.to_dict()


def launch_openram(
    config_file: str,
    *,
    config_path: Path | None = None,
    install_dir: str | None = None,
    environ: Mapping[str, str] | None = None,
) -> LaunchOutcome:
    """Create one detached session compiling ``config_file``.

    Requires a finished install: the OpenRAM checkout and the generated
    environment script must both exist under the install root.
    """
    outcome = LaunchOutcome()
    try:
        config = load_config(config_path)
    except ConfigError as e:
        outcome.error = str(e)
        return outcome

    state = build_state(config, install_dir=install_dir, environ=environ)
    workdir = OpenRAMStage(config.repository(STAGE_OPENRAM).url).home(state)
    env_script = state.install_root / ENV_SCRIPT_NAME
    if not env_script.is_file():
        outcome.error = f"{env_script} not found; run 'eda-setup install' first"
        return outcome

    try:
        outcome.launch = launch_job(config_file, workdir=workdir, env_script=env_script)
    except LaunchError as e:
        outcome.error = str(e)
    return outcome
