"""
Stage base — the contract between the orchestrator and one installable unit.

The orchestrator only talks to stages through this interface:

    detect(state)  → read-only probe, Detection
    plan(state)    → PlanStep list the StageRunner executes
    environment()  → variables/paths contributed to the descriptor

Stages never execute commands themselves and never raise for
expected failures; the runner captures those in a StageOutcome.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

from eda_setup.core.models.environment import EnvironmentDescriptor
from eda_setup.core.models.stage import Detection, PlanStep
from eda_setup.core.models.state import InstallationState
from eda_setup.core.services.setup.data.constants import SYSTEM_BIN_DIRS, VARIANT_SYSTEM
from eda_setup.core.services.setup.domain.version_gate import VersionRequirement


class Stage(ABC):
    """Abstract base class for all installation stages.

    To create a new stage:
        1. Subclass Stage
        2. Implement name, detect, plan
        3. Optionally set depends_on / version_requirement and
           override environment / self_test_plan
        4. Add it to the list built in ``stages/registry.py``
    """

    depends_on: tuple[str, ...] = ()

    # Set on stages that may reuse a sufficiently new system tool
    version_requirement: VersionRequirement | None = None
    system_search_dirs: tuple[str, ...] = SYSTEM_BIN_DIRS

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique stage identifier (e.g. 'openroad', 'flow-scripts')."""

    @abstractmethod
    def detect(self, state: InstallationState) -> Detection:
        """Probe whether this stage's artifact exists under the install root.

        Must be side-effect free. May raise; the detector folds any
        exception into ``missing``.
        """

    @abstractmethod
    def plan(self, state: InstallationState) -> list[PlanStep]:
        """Steps that install this stage.

        May read the filesystem to leave out work already done (e.g. an
        existing clone) so that running the plan twice is safe.
        """

    def environment(self, state: InstallationState, descriptor: EnvironmentDescriptor) -> None:
        """Add this stage's variables and search paths to ``descriptor``."""

    def self_test_plan(self, state: InstallationState) -> list[PlanStep]:
        """Slow optional self-test; empty when the stage has none."""
        return []

    def log_path(self, state: InstallationState) -> Path:
        return state.log_dir / f"{self.name}.log"

    def uses_system_copy(self, state: InstallationState) -> bool:
        return state.variants.get(self.name) == VARIANT_SYSTEM

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"


def git_clone_step(
    label: str,
    url: str,
    dest: Path,
    *,
    branch: str | None = None,
    recursive: bool = False,
) -> PlanStep:
    """``git clone`` step into ``dest``."""
    cmd: list[str] = ["git", "clone"]
    if recursive:
        cmd.append("--recursive")
    if branch:
        cmd += ["--branch", branch]
    cmd += [url, str(dest)]
    return PlanStep.run(label, cmd, cwd=str(dest.parent))


def checkout_steps(
    component: str,
    url: str,
    home: Path,
    *,
    branch: str | None = None,
    recursive: bool = False,
) -> list[PlanStep]:
    """Clone ``url`` into ``home`` unless a checkout is already there."""
    if (home / ".git").exists():
        return []
    return [
        PlanStep.run(f"Create {home.parent}", ["mkdir", "-p", str(home.parent)]),
        git_clone_step(
            f"Clone {component}", url, home, branch=branch, recursive=recursive,
        ),
    ]
