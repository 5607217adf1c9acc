"""
Install use case — the full vertical slice behind ``eda-setup install``.

Loads config, derives the InstallationState from flags and the
process environment, checks the host, runs the stage pipeline,
the optional self-tests and finally writes the generated scripts.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Sequence

from eda_setup.core.config.loader import ConfigError, load_config
from eda_setup.core.models.config import SetupConfig
from eda_setup.core.models.environment import EnvironmentDescriptor
from eda_setup.core.models.state import InstallationState
from eda_setup.core.services.setup.data.constants import (
    HINT_VARS,
    STAGE_FLOW_SCRIPTS,
    STAGE_OPENRAM,
    STAGE_SYSTEM_PACKAGES,
)
from eda_setup.core.services.setup.detection.host import (
    PreconditionError,
    check_preconditions,
)
from eda_setup.core.services.setup.emission import (
    build_descriptor,
    write_environment_files,
)
from eda_setup.core.services.setup.execution.stage_runner import StageRunner
from eda_setup.core.services.setup.orchestration.orchestrator import (
    Listener,
    PipelineError,
    PipelineReport,
    run_pipeline,
    run_self_tests,
)
from eda_setup.stages.base import Stage
from eda_setup.stages.registry import build_stages

logger = logging.getLogger(__name__)


# ── State derivation (shared by every command) ─────────────────


def read_hints(environ: Mapping[str, str]) -> dict[str, str]:
    """Environment variables left by an earlier install, if set."""
    return {var: environ[var] for var in HINT_VARS if environ.get(var)}


def child_environment(environ: Mapping[str, str], *, fresh: bool) -> dict[str, str]:
    """Environment for build commands; ``fresh`` strips the hint variables."""
    env = dict(environ)
    if fresh:
        for var in HINT_VARS:
            env.pop(var, None)
    return env


def build_state(
    config: SetupConfig,
    *,
    install_dir: str | None = None,
    fresh: bool = False,
    upgrade: bool = False,
    jobs: int | None = None,
    environ: Mapping[str, str] | None = None,
) -> InstallationState:
    """Derive this run's InstallationState. Nothing is cached between runs."""
    env = os.environ if environ is None else environ
    hints = {} if fresh else read_hints(env)
    if fresh:
        logger.info("--fresh: ignoring %s", ", ".join(HINT_VARS))

    return InstallationState(
        install_root=Path(install_dir or config.install_dir),
        env_hints=hints,
        fresh=fresh,
        upgrade=upgrade,
        forced={STAGE_SYSTEM_PACKAGES} if upgrade else set(),
        jobs=jobs or config.jobs or os.cpu_count() or 1,
    )


# ── Install ────────────────────────────────────────────────────


@dataclass
class InstallResult:
    """Result of one ``install`` invocation."""

    state: InstallationState | None = None
    report: PipelineReport | None = None
    descriptor: EnvironmentDescriptor | None = None
    files: list[Path] = field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.report is not None and self.report.ok

    def to_dict(self) -> dict:
        result: dict = {"ok": self.ok}
        if self.error:
            result["error"] = self.error
        if self.state:
            result["install_root"] = str(self.state.install_root)
            result["variants"] = dict(self.state.variants)
        if self.report:
            result["report"] = self.report.to_dict()
        if self.descriptor:
            result["environment"] = self.descriptor.model_dump()
        result["files"] = [str(p) for p in self.files]
        return result


def install_toolchain(
    *,
    config_path: Path | None = None,
    install_dir: str | None = None,
    fresh: bool = False,
    upgrade: bool = False,
    jobs: int | None = None,
    test_openram: bool = False,
    test_flow_scripts: bool = False,
    environ: Mapping[str, str] | None = None,
    stages: Sequence[Stage] | None = None,
    listener: Listener | None = None,
) -> InstallResult:
    """Install whatever is missing under the install root.

    Args:
        config_path: Explicit eda-setup.yml (else searched upward from cwd).
        install_dir: Overrides the configured install root.
        fresh: Ignore environment hints from a previous install.
        upgrade: Force the package stage and run ``apt-get upgrade``.
        jobs: Parallel build jobs (default: config, then CPU count).
        test_openram: Run the OpenRAM quick test afterwards.
        test_flow_scripts: Run the default flow design afterwards.
        environ: Process environment (default ``os.environ``).
        stages: Stage list override (default: the standard pipeline).
        listener: Called after every stage transition.

    Returns:
        InstallResult. Config, precondition and graph problems are
        reported in ``error``; stage failures in ``report``.
    """
    result = InstallResult()
    env = os.environ if environ is None else environ

    try:
        config = load_config(config_path)
    except ConfigError as e:
        result.error = str(e)
        return result

    state = build_state(
        config,
        install_dir=install_dir,
        fresh=fresh,
        upgrade=upgrade,
        jobs=jobs,
        environ=env,
    )
    result.state = state

    # ── Preconditions: nothing is created before these pass ──────
    try:
        check_preconditions()
    except PreconditionError as e:
        result.error = str(e)
        return result

    if stages is None:
        stages = build_stages(config)

    state.install_root.mkdir(parents=True, exist_ok=True)
    runner = StageRunner(
        state.log_dir,
        tail_lines=config.log_tail_lines,
        base_env=child_environment(env, fresh=fresh),
    )

    try:
        report = run_pipeline(stages, state, runner, listener=listener)
    except PipelineError as e:
        result.error = str(e)
        return result
    result.report = report

    if not report.ok:
        logger.error("Install stopped at stage %s", report.failed_stage)
        return result

    components = set()
    if test_openram:
        components.add(STAGE_OPENRAM)
    if test_flow_scripts:
        components.add(STAGE_FLOW_SCRIPTS)
    if components:
        run_self_tests(stages, state, runner, report, components)

    result.descriptor = build_descriptor(stages, state, report)
    result.files = write_environment_files(result.descriptor, state.install_root)
    return result
