"""
Mock stage — test double for the orchestrator.

Installs nothing real: its plan writes a marker file under the install
root and detection looks for that marker, so a second run over the same
root skips it exactly like a real stage would. Can be configured to fail
with a real non-zero exit so the StageRunner path is exercised.
"""

from __future__ import annotations

from pathlib import Path

from eda_setup.core.models.environment import EnvironmentDescriptor
from eda_setup.core.models.stage import Detection, PlanStep
from eda_setup.core.models.state import InstallationState
from eda_setup.core.services.setup.domain.version_gate import VersionRequirement
from eda_setup.stages.base import Stage


class MockStage(Stage):
    """Stage that installs a marker file.

    Args:
        stage_name: Unique name.
        depends_on: Names of prerequisite stages.
        fail: Run ``exit 3`` before writing the marker.
        detect_error: Raise from ``detect`` instead of probing.
        version_requirement: Optional gate consulted by the orchestrator.
    """

    def __init__(
        self,
        stage_name: str,
        depends_on: tuple[str, ...] = (),
        *,
        fail: bool = False,
        detect_error: bool = False,
        version_requirement: VersionRequirement | None = None,
    ):
        self._name = stage_name
        self.depends_on = tuple(depends_on)
        self.fail = fail
        self.detect_error = detect_error
        self.version_requirement = version_requirement
        self.detect_calls = 0
        self.plan_calls = 0

    @property
    def name(self) -> str:
        return self._name

    def marker(self, state: InstallationState) -> Path:
        return state.install_root / ".mock" / self._name

    def detect(self, state: InstallationState) -> Detection:
        self.detect_calls += 1
        if self.detect_error:
            raise RuntimeError(f"probe for {self._name} crashed")
        if self.marker(state).is_file():
            return Detection.found("marker present")
        return Detection.missing("marker absent")

    def plan(self, state: InstallationState) -> list[PlanStep]:
        self.plan_calls += 1
        steps: list[PlanStep] = []
        if self.fail:
            steps.append(PlanStep.run(
                f"Fail {self._name}", ["sh", "-c", "echo boom; exit 3"],
            ))
        steps.append(PlanStep.write(
            f"Install {self._name}", str(self.marker(state)), f"{self._name}\n",
        ))
        return steps

    def environment(self, state: InstallationState, descriptor: EnvironmentDescriptor) -> None:
        home = state.install_root / self._name
        descriptor.add_variable(f"{self._name.upper().replace('-', '_')}_HOME", str(home))
        descriptor.add_path(str(home / "bin"))

    def reset(self) -> None:
        """Clear call counters."""
        self.detect_calls = 0
        self.plan_calls = 0
