"""
System packages stage — Debian build dependencies via apt-get.
"""

from __future__ import annotations

from eda_setup.core.models.stage import Detection, PlanStep
from eda_setup.core.models.state import InstallationState
from eda_setup.core.services.setup.data.constants import STAGE_SYSTEM_PACKAGES
from eda_setup.core.services.setup.detection.system_deps import check_system_deps
from eda_setup.stages.base import Stage


def _apt(*args: str) -> list[str]:
    # sudo drops the caller's environment, so pass the frontend inline
    return ["env", "DEBIAN_FRONTEND=noninteractive", "apt-get", *args]


class SystemPackagesStage(Stage):
    """Install the apt packages every later stage builds against."""

    def __init__(self, packages: list[str]):
        self._packages = list(packages)

    @property
    def name(self) -> str:
        return STAGE_SYSTEM_PACKAGES

    @property
    def packages(self) -> list[str]:
        return list(self._packages)

    def detect(self, state: InstallationState) -> Detection:
        result = check_system_deps(self._packages)
        missing = result["missing"]
        if not missing:
            return Detection.found(f"{len(self._packages)} packages installed")
        if len(missing) == len(self._packages):
            return Detection.missing("no required packages installed")
        preview = ", ".join(missing[:5]) + (" …" if len(missing) > 5 else "")
        return Detection.partial(f"{len(missing)} missing: {preview}")

    def plan(self, state: InstallationState) -> list[PlanStep]:
        missing = check_system_deps(self._packages)["missing"]

        steps = [
            PlanStep.run("Update package index", _apt("update"), needs_sudo=True),
        ]
        if state.upgrade:
            steps.append(PlanStep.run(
                "Upgrade installed packages", _apt("upgrade", "-y"), needs_sudo=True,
            ))
        if missing:
            steps.append(PlanStep.run(
                f"Install {len(missing)} packages",
                _apt("install", "-y", *missing),
                needs_sudo=True,
            ))
        return steps
