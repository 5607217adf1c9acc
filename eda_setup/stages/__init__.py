"""Stages — one class per installable unit of the pipeline.

Public re-exports for convenient access.
"""

from eda_setup.stages.base import Stage, checkout_steps, git_clone_step
from eda_setup.stages.flow_scripts import FlowScriptsStage
from eda_setup.stages.mock import MockStage
from eda_setup.stages.openram import OpenRAMStage
from eda_setup.stages.openroad import OpenROADStage
from eda_setup.stages.registry import build_stages
from eda_setup.stages.system_packages import SystemPackagesStage
from eda_setup.stages.yosys import YosysStage

__all__ = [
    "FlowScriptsStage",
    "MockStage",
    "OpenRAMStage",
    "OpenROADStage",
    "Stage",
    "SystemPackagesStage",
    "YosysStage",
    "build_stages",
    "checkout_steps",
    "git_clone_step",
]
