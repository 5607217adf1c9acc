"""
L6 Emission — Build the EnvironmentDescriptor from a finished run.

Only completed stages (``done`` or ``skipped``) contribute. Every path
is resolved to absolute form here, so the generated scripts work from
any directory and any shell.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Sequence

from eda_setup.core.models.environment import EnvironmentDescriptor
from eda_setup.core.models.state import InstallationState

if TYPE_CHECKING:
    from eda_setup.core.services.setup.orchestration.orchestrator import PipelineReport
    from eda_setup.stages.base import Stage

logger = logging.getLogger(__name__)


def _absolute(value: str) -> str:
    return str(Path(value).expanduser().resolve())


def build_descriptor(
    stages: Sequence[Stage],
    state: InstallationState,
    report: PipelineReport | None = None,
) -> EnvironmentDescriptor:
    """Collect each completed stage's variables and search paths.

    Args:
        stages: Stages in declaration order; this fixes output order.
        state: The run's state (install root, chosen variants).
        report: Outcome of the run. ``None`` means every stage counts
            as completed.
    """
    descriptor = EnvironmentDescriptor(install_root=str(state.install_root))

    for stage in stages:
        if report is not None:
            record = report.records.get(stage.name)
            if record is None or not record.completed:
                logger.debug("Stage %s not completed, nothing to emit", stage.name)
                continue
        stage.environment(state, descriptor)

    descriptor.variables = {k: _absolute(v) for k, v in descriptor.variables.items()}
    descriptor.path_prepend = [_absolute(p) for p in descriptor.path_prepend]
    descriptor.pythonpath_prepend = [_absolute(p) for p in descriptor.pythonpath_prepend]
    if descriptor.job_workdir:
        descriptor.job_workdir = _absolute(descriptor.job_workdir)
    return descriptor
