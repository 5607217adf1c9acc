"""
OpenROAD stage — recursive clone, upstream dependency installer, CMake build.
"""

from __future__ import annotations

from pathlib import Path

from eda_setup.core.models.environment import EnvironmentDescriptor
from eda_setup.core.models.stage import Detection, PlanStep
from eda_setup.core.models.state import InstallationState
from eda_setup.core.services.setup.data.constants import (
    OPENROAD_DIR,
    STAGE_OPENROAD,
    STAGE_SYSTEM_PACKAGES,
)
from eda_setup.core.services.setup.detection.probes import is_executable, runs_cleanly
from eda_setup.stages.base import Stage, checkout_steps


class OpenROADStage(Stage):
    """OpenROAD physical design tool built under the install root.

    Args:
        url: Git URL of the OpenROAD repository.
        branch: Optional branch or tag to clone.
        system_install: Also run ``sudo cmake --install build`` so the
            binary lands in ``/usr/local``.
    """

    depends_on = (STAGE_SYSTEM_PACKAGES,)

    def __init__(self, url: str, *, branch: str | None = None, system_install: bool = False):
        self._url = url
        self._branch = branch
        self._system_install = system_install

    @property
    def name(self) -> str:
        return STAGE_OPENROAD

    def home(self, state: InstallationState) -> Path:
        return state.component_home("OPENROAD_HOME", OPENROAD_DIR)

    def binary(self, state: InstallationState) -> Path:
        return self.home(state) / "build" / "src" / "openroad"

    def detect(self, state: InstallationState) -> Detection:
        home = self.home(state)
        binary = self.binary(state)
        if is_executable(binary):
            if runs_cleanly([str(binary), "-version"]):
                return Detection.found(f"openroad built at {binary}")
            return Detection.partial(f"{binary} exists but does not run")
        if (home / ".git").exists():
            return Detection.partial(f"checkout at {home} not built")
        return Detection.missing(f"no OpenROAD build under {state.install_root}")

    def plan(self, state: InstallationState) -> list[PlanStep]:
        home = self.home(state)
        cwd = str(home)

        steps = checkout_steps(
            "OpenROAD", self._url, home, branch=self._branch, recursive=True,
        )
        steps += [
            PlanStep.run(
                "Install OpenROAD dependencies",
                ["./etc/DependencyInstaller.sh", "-all"],
                cwd=cwd, needs_sudo=True,
            ),
            PlanStep.run(
                "Configure OpenROAD",
                ["cmake", "-S", ".", "-B", "build", "-DCMAKE_BUILD_TYPE=Release"],
                cwd=cwd,
            ),
            PlanStep.run(
                f"Build OpenROAD (-j{state.jobs})",
                ["cmake", "--build", "build", "--parallel", str(state.jobs)],
                cwd=cwd,
            ),
        ]
        if self._system_install:
            steps.append(PlanStep.run(
                "Install OpenROAD system-wide",
                ["cmake", "--install", "build"],
                cwd=cwd, needs_sudo=True,
            ))
        return steps

    def environment(self, state: InstallationState, descriptor: EnvironmentDescriptor) -> None:
        home = self.home(state)
        descriptor.add_variable("OPENROAD_HOME", str(home))
        descriptor.add_path(str(home / "build" / "src"))
