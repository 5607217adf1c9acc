"""
L5 Orchestration — Stage pipeline coordinator.

Ties everything together: validates the stage graph, detects each
stage once its dependencies have completed, consults the version gate,
hands plans to the StageRunner and aggregates the final status.

Per-stage lifecycle::

    pending → detecting → skipped
                        → running → done | failed
    pending → blocked             (a dependency failed)

The first failure halts the run. Dependents of the failed stage are
marked ``blocked``; unrelated stages that had not started yet stay
``pending``. Nothing is rolled back: the next run re-detects and
resumes where this one stopped.
"""

from __future__ import annotations

import logging
import traceback
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Iterable, Sequence

from eda_setup.core.models.stage import (
    StageOutcome,
    StageRecord,
    StageStatus,
)
from eda_setup.core.models.state import InstallationState
from eda_setup.core.services.setup.data.constants import VARIANT_SOURCE, VARIANT_SYSTEM
from eda_setup.core.services.setup.detection import detect_stage
from eda_setup.core.services.setup.domain.dag import (
    ready_stages,
    topological_order,
    transitive_dependents,
    validate_dag,
)
from eda_setup.core.services.setup.domain.version_gate import Variant, choose_variant
from eda_setup.core.services.setup.execution.stage_runner import StageRunner

if TYPE_CHECKING:
    from eda_setup.stages.base import Stage

logger = logging.getLogger(__name__)

Listener = Callable[[StageRecord], None]


class PipelineError(Exception):
    """Raised when the stage graph itself is invalid."""


@dataclass
class PipelineReport:
    """Everything one orchestrator run decided and did."""

    records: dict[str, StageRecord] = field(default_factory=dict)
    transitions: list[tuple[str, str]] = field(default_factory=list)
    failed_stage: str | None = None
    commands_run: int = 0
    self_tests: list[StageOutcome] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.failed_stage is None

    @property
    def status(self) -> str:
        return "ok" if self.ok else "failed"

    @property
    def order(self) -> list[str]:
        return list(self.records)

    def record(self, name: str) -> StageRecord:
        return self.records[name]

    def names_with(self, status: StageStatus) -> list[str]:
        return [n for n, r in self.records.items() if r.status == status]

    def completed(self) -> set[str]:
        return {n for n, r in self.records.items() if r.completed}

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "failed_stage": self.failed_stage,
            "commands_run": self.commands_run,
            "stages": [r.model_dump(mode="json") for r in self.records.values()],
            "transitions": [
                {"stage": stage, "status": status} for stage, status in self.transitions
            ],
            "self_tests": [o.model_dump(mode="json") for o in self.self_tests],
        }


# ── Graph helpers ──────────────────────────────────────────────


def _graph(stages: Sequence[Stage]) -> tuple[dict[str, tuple[str, ...]], list[str]]:
    names = [s.name for s in stages]
    graph = {s.name: tuple(s.depends_on) for s in stages}
    errors = validate_dag(graph, names)
    if errors:
        raise PipelineError("; ".join(errors))
    return graph, names


def _set_status(
    report: PipelineReport,
    record: StageRecord,
    status: StageStatus,
    listener: Listener | None,
) -> None:
    record.status = status
    report.transitions.append((record.name, str(status)))
    logger.debug("Stage %s → %s", record.name, status)
    if listener is not None:
        listener(record)


def _gate(stage: Stage, state: InstallationState, record: StageRecord) -> bool:
    """Consult the version gate; True when an existing system tool is reused."""
    requirement = stage.version_requirement
    if requirement is None:
        return False
    variant = choose_variant(requirement, search_dirs=stage.system_search_dirs)
    if variant == Variant.USE_EXISTING:
        state.variants[stage.name] = VARIANT_SYSTEM
        record.variant = VARIANT_SYSTEM
        record.detail = f"system {requirement.tool} >= {requirement.min_version}"
        return True
    state.variants[stage.name] = VARIANT_SOURCE
    record.variant = VARIANT_SOURCE
    return False


# ── Full run ───────────────────────────────────────────────────


def run_pipeline(
    stages: Sequence[Stage],
    state: InstallationState,
    runner: StageRunner,
    listener: Listener | None = None,
) -> PipelineReport:
    """Run every stage that is not already satisfied, in dependency order.

    Args:
        stages: Stages in declaration order (ties in the topological
            order are broken by this order).
        state: Host evidence for this run; ``state.variants`` is filled in.
        runner: Executes plans and owns the per-stage logs.
        listener: Called with the stage's record after every transition.

    Returns:
        ``PipelineReport``. Stage failures are reported here, not raised.

    Raises:
        PipelineError: Duplicate names, unknown dependencies or a cycle.
    """
    graph, names = _graph(stages)
    by_name = {s.name: s for s in stages}
    order = topological_order(graph, names)

    report = PipelineReport(
        records={n: StageRecord(name=n) for n in order},
    )
    commands_before = runner.commands_run
    completed: set[str] = set()
    started: set[str] = set()

    while True:
        ready = ready_stages(graph, order, completed, started)
        if not ready:
            break
        name = ready[0]
        started.add(name)
        stage = by_name[name]
        record = report.records[name]

        _set_status(report, record, StageStatus.DETECTING, listener)

        if name in state.forced:
            record.detail = "forced"
            logger.info("Stage %s forced, skipping detection", name)
        else:
            detection = detect_stage(stage, state)
            record.detection = detection.status
            record.detail = detection.detail
            if detection.satisfied:
                logger.info("Stage %s already satisfied: %s", name, detection.detail)
                completed.add(name)
                _set_status(report, record, StageStatus.SKIPPED, listener)
                continue
            if _gate(stage, state, record):
                completed.add(name)
                _set_status(report, record, StageStatus.SKIPPED, listener)
                continue

        _set_status(report, record, StageStatus.RUNNING, listener)
        outcome = _run_stage(stage, state, runner)

        record.exit_code = outcome.exit_code
        record.log_path = outcome.log_path
        record.warnings = list(outcome.warnings)
        record.duration_ms = outcome.duration_ms

        if outcome.ok:
            completed.add(name)
            _set_status(report, record, StageStatus.DONE, listener)
            continue

        record.detail = outcome.error or "failed"
        record.log_tail = outcome.log_tail
        report.failed_stage = name
        _set_status(report, record, StageStatus.FAILED, listener)
        logger.error("Stage %s failed with exit %s", name, outcome.exit_code)

        for dependent in order:
            if dependent in transitive_dependents(graph, name):
                blocked = report.records[dependent]
                blocked.blocked_by = name
                _set_status(report, blocked, StageStatus.BLOCKED, listener)
        break

    report.commands_run = runner.commands_run - commands_before
    return report


def _run_stage(stage: Stage, state: InstallationState, runner: StageRunner) -> StageOutcome:
    try:
        steps = stage.plan(state)
    except Exception as exc:
        logger.exception("Planning stage %s failed", stage.name)
        return runner.record_error(
            stage.name, f"could not plan stage: {exc}", traceback.format_exc(),
        )
    return runner.run(stage.name, steps)


# ── Read-only survey ───────────────────────────────────────────


def survey(stages: Sequence[Stage], state: InstallationState) -> PipelineReport:
    """Detect every stage without running anything.

    Satisfied stages (or ones a system tool satisfies) come back as
    ``skipped``; everything else stays ``pending`` with its detection
    detail.
    """
    graph, names = _graph(stages)
    by_name = {s.name: s for s in stages}

    report = PipelineReport()
    for name in topological_order(graph, names):
        stage = by_name[name]
        record = StageRecord(name=name)
        report.records[name] = record

        detection = detect_stage(stage, state)
        record.detection = detection.status
        record.detail = detection.detail
        if detection.satisfied or _gate(stage, state, record):
            record.status = StageStatus.SKIPPED
        report.transitions.append((name, str(record.status)))
    return report


# ── Self-tests ─────────────────────────────────────────────────


def run_self_tests(
    stages: Iterable[Stage],
    state: InstallationState,
    runner: StageRunner,
    report: PipelineReport,
    components: set[str],
) -> list[StageOutcome]:
    """Run the slow self-tests of the requested, completed stages.

    Failures become warnings on the stage record; the installation
    itself already succeeded, so they never fail the run.
    """
    outcomes: list[StageOutcome] = []
    for stage in stages:
        if stage.name not in components:
            continue
        record = report.records.get(stage.name)
        if record is None or not record.completed:
            logger.info("Skipping self-test for %s: stage not installed", stage.name)
            continue
        steps = stage.self_test_plan(state)
        if not steps:
            continue

        outcome = runner.run(f"{stage.name}-selftest", steps)
        outcomes.append(outcome)
        if not outcome.ok:
            warning = f"self-test failed: {outcome.error} (see {outcome.log_path})"
            logger.warning("%s %s", stage.name, warning)
            record.warnings.append(warning)

    report.self_tests.extend(outcomes)
    return outcomes
