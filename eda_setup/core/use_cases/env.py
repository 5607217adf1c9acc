"""
Env use case — show or regenerate the environment descriptor.

Detection decides which components contribute, so the scripts can be
rebuilt at any time without re-running the installer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Sequence

from eda_setup.core.models.environment import EnvironmentDescriptor
from eda_setup.core.services.setup.emission import (
    build_descriptor,
    render_environment_script,
    write_environment_files,
)
from eda_setup.core.use_cases.status import survey_toolchain
from eda_setup.stages.base import Stage


@dataclass
class EnvResult:
    """Descriptor for the current install, and any files written."""

    descriptor: EnvironmentDescriptor | None = None
    script: str = ""
    files: list[Path] = field(default_factory=list)
    error: str | None = None

    def to_dict(self) -> dict:
        if self.error:
            return {"error": self.error}
        assert self.descriptor is not None
        return {
            "environment": self.descriptor.model_dump(),
            "files": [str(p) for p in self.files],
        }


def environment_for(
    *,
    config_path: Path | None = None,
    install_dir: str | None = None,
    write: bool = False,
    environ: Mapping[str, str] | None = None,
    stages: Sequence[Stage] | None = None,
) -> EnvResult:
    """Build the descriptor for what is installed, optionally writing files."""
    result = EnvResult()
    status = survey_toolchain(
        config_path=config_path,
        install_dir=install_dir,
        environ=environ,
        stages=stages,
    )
    if status.error:
        result.error = status.error
        return result
    assert status.state is not None

    result.descriptor = build_descriptor(status.stages, status.state, status.report)
    result.script = render_environment_script(result.descriptor)
    if write:
        result.files = write_environment_files(result.descriptor, status.state.install_root)
    return result
