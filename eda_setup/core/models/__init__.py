"""
Domain models — Pydantic types for the installer.

    from eda_setup.core.models import InstallationState, StageRecord, PlanStep
"""

from eda_setup.core.models.environment import EnvironmentDescriptor
from eda_setup.core.models.stage import (
    COMPLETED_STATUSES,
    DetectStatus,
    Detection,
    PlanStep,
    StageOutcome,
    StageRecord,
    StageStatus,
)
from eda_setup.core.models.state import InstallationState

__all__ = [
    "COMPLETED_STATUSES",
    "DetectStatus",
    "Detection",
    # environment.py
    "EnvironmentDescriptor",
    # state.py
    "InstallationState",
    # stage.py
    "PlanStep",
    "StageOutcome",
    "StageRecord",
    "StageStatus",
]
