"""
OpenROAD-flow-scripts stage — the ASIC flow and its bundled tool builds.

``build_openroad.sh --local`` builds private copies of OpenROAD and
Yosys under ``tools/install``; the stage counts as installed only when
both are there next to the flow Makefile.
"""

from __future__ import annotations

from pathlib import Path

from eda_setup.core.models.environment import EnvironmentDescriptor
from eda_setup.core.models.stage import Detection, PlanStep
from eda_setup.core.models.state import InstallationState
from eda_setup.core.services.setup.data.constants import (
    FLOW_SCRIPTS_DIR,
    STAGE_FLOW_SCRIPTS,
    STAGE_OPENROAD,
    STAGE_YOSYS,
)
from eda_setup.core.services.setup.detection.probes import has_files, is_executable
from eda_setup.stages.base import Stage, checkout_steps

_BUILT_TOOLS = (
    "tools/install/OpenROAD/bin/openroad",
    "tools/install/yosys/bin/yosys",
)


class FlowScriptsStage(Stage):
    """OpenROAD-flow-scripts checkout and local tool build."""

    depends_on = (STAGE_OPENROAD, STAGE_YOSYS)

    def __init__(self, url: str, *, branch: str | None = None):
        self._url = url
        self._branch = branch

    @property
    def name(self) -> str:
        return STAGE_FLOW_SCRIPTS

    def home(self, state: InstallationState) -> Path:
        return state.component_home("OPENROAD_FLOW_HOME", FLOW_SCRIPTS_DIR)

    def detect(self, state: InstallationState) -> Detection:
        home = self.home(state)
        if not has_files(home, "flow/Makefile"):
            if (home / ".git").exists():
                return Detection.partial(f"checkout at {home} incomplete")
            return Detection.missing(f"no flow scripts under {state.install_root}")
        missing = [rel for rel in _BUILT_TOOLS if not is_executable(home / rel)]
        if missing:
            return Detection.partial(f"tools not built: {', '.join(missing)}")
        return Detection.found(f"flow scripts built at {home}")

    def plan(self, state: InstallationState) -> list[PlanStep]:
        home = self.home(state)
        steps = checkout_steps(
            "OpenROAD-flow-scripts", self._url, home, branch=self._branch,
        )
        steps.append(PlanStep.run(
            f"Build flow tools (--threads {state.jobs})",
            ["./build_openroad.sh", "--local", "--threads", str(state.jobs)],
            cwd=str(home),
        ))
        return steps

    def environment(self, state: InstallationState, descriptor: EnvironmentDescriptor) -> None:
        home = self.home(state)
        descriptor.add_variable("OPENROAD_FLOW_HOME", str(home))
        descriptor.add_path(str(home / "flow"))

    def self_test_plan(self, state: InstallationState) -> list[PlanStep]:
        flow = self.home(state) / "flow"
        return [
            PlanStep.run(
                "Run default flow design",
                ["bash", "-c", "source ../env.sh && make"],
                cwd=str(flow),
            ),
        ]
