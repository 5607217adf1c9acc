"""
Stage registry — the fixed installation pipeline.

The order of the returned list is the declaration order the
orchestrator uses to break ties between independent stages.
"""

from __future__ import annotations

from eda_setup.core.models.config import SetupConfig
from eda_setup.core.services.setup.data.constants import (
    STAGE_FLOW_SCRIPTS,
    STAGE_OPENRAM,
    STAGE_OPENROAD,
    STAGE_YOSYS,
)
from eda_setup.stages.base import Stage
from eda_setup.stages.flow_scripts import FlowScriptsStage
from eda_setup.stages.openram import OpenRAMStage
from eda_setup.stages.openroad import OpenROADStage
from eda_setup.stages.system_packages import SystemPackagesStage
from eda_setup.stages.yosys import YosysStage


def build_stages(config: SetupConfig) -> list[Stage]:
    """Construct every stage from the (possibly default) configuration."""
    yosys = config.repository(STAGE_YOSYS)
    openroad = config.repository(STAGE_OPENROAD)
    flow = config.repository(STAGE_FLOW_SCRIPTS)
    openram = config.repository(STAGE_OPENRAM)

    return [
        SystemPackagesStage(config.packages),
        YosysStage(yosys.url, branch=yosys.branch, min_version=config.yosys_min_version),
        OpenROADStage(
            openroad.url,
            branch=openroad.branch,
            system_install=config.openroad_system_install,
        ),
        FlowScriptsStage(flow.url, branch=flow.branch),
        OpenRAMStage(
            openram.url,
            branch=openram.branch,
            break_system_packages=config.pip_break_system_packages,
        ),
    ]
