"""
Stage models — detection results, plan steps, outcomes and records.

A stage is described by three value types flowing through the pipeline:

    Detection    → what the host looks like right now (read-only probe)
    PlanStep     → one action the StageRunner will perform
    StageOutcome → what happened when the plan ran (never an exception)

The orchestrator keeps one StageRecord per stage and moves it through
the lifecycle ``pending → detecting → skipped | running → done | failed``.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Literal

from pydantic import BaseModel, Field


class DetectStatus(StrEnum):
    """Result of probing the host for a stage's artifact."""

    SATISFIED = "satisfied"
    MISSING = "missing"
    PARTIAL = "partial"


class StageStatus(StrEnum):
    """Lifecycle states of a stage within one orchestrator run."""

    PENDING = "pending"
    DETECTING = "detecting"
    SKIPPED = "skipped"
    RUNNING = "running"
    DONE = "done"
    FAILED = "failed"
    BLOCKED = "blocked"


# Statuses that let dependents proceed
COMPLETED_STATUSES = frozenset({StageStatus.DONE, StageStatus.SKIPPED})


class Detection(BaseModel):
    """Outcome of a read-only probe."""

    status: DetectStatus = DetectStatus.MISSING
    detail: str = ""

    @property
    def satisfied(self) -> bool:
        return self.status == DetectStatus.SATISFIED

    @classmethod
    def found(cls, detail: str = "") -> Detection:
        return cls(status=DetectStatus.SATISFIED, detail=detail)

    @classmethod
    def missing(cls, detail: str = "") -> Detection:
        return cls(status=DetectStatus.MISSING, detail=detail)

    @classmethod
    def partial(cls, detail: str = "") -> Detection:
        return cls(status=DetectStatus.PARTIAL, detail=detail)


class PlanStep(BaseModel):
    """A single action in a stage plan.

    Step types:
        - ``command``: run ``command`` (argv list) in ``cwd``.
        - ``write_file``: write ``content`` to ``path``.

    ``optional`` steps log a warning on failure instead of failing
    the stage.
    """

    label: str
    type: Literal["command", "write_file"] = "command"
    command: list[str] = Field(default_factory=list)
    cwd: str | None = None
    env: dict[str, str] = Field(default_factory=dict)
    needs_sudo: bool = False
    timeout: int | None = None
    optional: bool = False

    path: str | None = None
    content: str = ""

    @classmethod
    def run(cls, label: str, command: list[str], **kwargs) -> PlanStep:
        """Create a command step."""
        return cls(label=label, type="command", command=command, **kwargs)

    @classmethod
    def write(cls, label: str, path: str, content: str) -> PlanStep:
        """Create a file-writing step."""
        return cls(label=label, type="write_file", path=path, content=content)


class StageOutcome(BaseModel):
    """Result of running a stage plan. Failures live here, not in exceptions."""

    stage: str
    ok: bool = True
    exit_code: int = 0
    failed_step: str | None = None
    error: str | None = None
    log_path: str = ""
    log_tail: str = ""
    steps_run: int = 0
    warnings: list[str] = Field(default_factory=list)
    duration_ms: int = 0


class StageRecord(BaseModel):
    """Per-stage bookkeeping kept by the orchestrator for one run."""

    name: str
    status: StageStatus = StageStatus.PENDING
    detail: str = ""
    detection: DetectStatus | None = None
    variant: str | None = None
    exit_code: int | None = None
    log_path: str | None = None
    log_tail: str = ""
    blocked_by: str | None = None
    warnings: list[str] = Field(default_factory=list)
    duration_ms: int = 0

    @property
    def completed(self) -> bool:
        """Whether dependents may proceed."""
        return self.status in COMPLETED_STATUSES
