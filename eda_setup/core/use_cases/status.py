"""
Status use case — detection only, nothing is installed or written.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Sequence

from eda_setup.core.config.loader import ConfigError, load_config
from eda_setup.core.models.state import InstallationState
from eda_setup.core.services.setup.orchestration.orchestrator import (
    PipelineError,
    PipelineReport,
    survey,
)
from eda_setup.core.use_cases.install import build_state
from eda_setup.stages.base import Stage
from eda_setup.stages.registry import build_stages


@dataclass
class StatusResult:
    """What is installed under the install root right now."""

    state: InstallationState | None = None
    report: PipelineReport | None = None
    stages: list[Stage] = field(default_factory=list)
    error: str | None = None

    @property
    def installed(self) -> list[str]:
        if not self.report:
            return []
        return [n for n, r in self.report.records.items() if r.completed]

    @property
    def missing(self) -> list[str]:
        if not self.report:
            return []
        return [n for n, r in self.report.records.items() if not r.completed]

    def to_dict(self) -> dict:
        result: dict = {}
        if self.error:
            result["error"] = self.error
            return result
        assert self.state is not None and self.report is not None
        result["install_root"] = str(self.state.install_root)
        result["stages"] = [
            {
                "name": r.name,
                "installed": r.completed,
                "detection": str(r.detection) if r.detection else None,
                "variant": r.variant,
                "detail": r.detail,
            }
            for r in self.report.records.values()
        ]
        return result


def survey_toolchain(
    *,
    config_path: Path | None = None,
    install_dir: str | None = None,
    fresh: bool = False,
    environ: Mapping[str, str] | None = None,
    stages: Sequence[Stage] | None = None,
) -> StatusResult:
    """Detect every stage against the install root without side effects."""
    result = StatusResult()
    try:
        config = load_config(config_path)
    except ConfigError as e:
        result.error = str(e)
        return result

    result.state = build_state(config, install_dir=install_dir, fresh=fresh, environ=environ)
    result.stages = list(stages) if stages is not None else build_stages(config)

    try:
        result.report = survey(result.stages, result.state)
    except PipelineError as e:
        result.error = str(e)
    return result
