"""
Yosys stage — reuse a new enough system yosys, else build from source.

The version gate runs before ``plan``: if ``/usr/bin/yosys`` (or another
system directory) reports at least the configured minimum, the stage is
skipped with variant ``system`` and contributes nothing to the
environment, since that copy is already on every user's PATH.
"""

from __future__ import annotations

from pathlib import Path

from eda_setup.core.models.environment import EnvironmentDescriptor
from eda_setup.core.models.stage import Detection, PlanStep
from eda_setup.core.models.state import InstallationState
from eda_setup.core.services.setup.data.constants import (
    STAGE_SYSTEM_PACKAGES,
    STAGE_YOSYS,
    YOSYS_DIR,
    YOSYS_MIN_VERSION,
)
from eda_setup.core.services.setup.detection.probes import is_executable
from eda_setup.core.services.setup.detection.tool_version import (
    YOSYS_VERSION,
    query_version,
)
from eda_setup.core.services.setup.domain.version_gate import VersionRequirement
from eda_setup.stages.base import Stage, checkout_steps

_VERSION_ARGS, _VERSION_PATTERN = YOSYS_VERSION


class YosysStage(Stage):
    """Yosys synthesis suite, version-gated."""

    depends_on = (STAGE_SYSTEM_PACKAGES,)

    def __init__(
        self,
        url: str,
        *,
        branch: str | None = None,
        min_version: str = YOSYS_MIN_VERSION,
    ):
        self._url = url
        self._branch = branch
        self.version_requirement = VersionRequirement(
            tool="yosys",
            min_version=min_version,
            version_command=tuple(_VERSION_ARGS),
            version_pattern=_VERSION_PATTERN,
        )

    @property
    def name(self) -> str:
        return STAGE_YOSYS

    def home(self, state: InstallationState) -> Path:
        return state.component_home("YOSYS_HOME", YOSYS_DIR)

    def binary(self, state: InstallationState) -> Path:
        return self.home(state) / "yosys"

    def detect(self, state: InstallationState) -> Detection:
        home = self.home(state)
        binary = self.binary(state)
        if is_executable(binary):
            version = query_version([str(binary), *_VERSION_ARGS[1:]], _VERSION_PATTERN)
            if version:
                return Detection.found(f"yosys {version} at {binary}")
            return Detection.partial(f"{binary} does not report a version")
        if (home / ".git").exists():
            return Detection.partial(f"checkout at {home} not built")
        return Detection.missing(f"no yosys build under {state.install_root}")

    def plan(self, state: InstallationState) -> list[PlanStep]:
        home = self.home(state)
        steps = checkout_steps(
            "yosys", self._url, home, branch=self._branch, recursive=True,
        )
        steps += [
            PlanStep.run(
                "Update yosys submodules",
                ["git", "submodule", "update", "--init", "--recursive"],
                cwd=str(home),
            ),
            PlanStep.run(
                f"Build yosys (-j{state.jobs})",
                ["make", f"-j{state.jobs}"],
                cwd=str(home),
            ),
        ]
        return steps

    def environment(self, state: InstallationState, descriptor: EnvironmentDescriptor) -> None:
        if self.uses_system_copy(state):
            return
        home = self.home(state)
        descriptor.add_variable("YOSYS_HOME", str(home))
        descriptor.add_path(str(home))
