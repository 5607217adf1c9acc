"""
OpenRAM stage — memory compiler checkout plus its Python requirements.

OpenRAM is used in place: ``OPENRAM_HOME`` points at the checkout's
``compiler`` directory and ``OPENRAM_TECH`` at ``technology``. The
generated environment sets these directly rather than sourcing the
checkout's own ``setpaths.sh``, which assumes it is run from inside
the checkout.
"""

from __future__ import annotations

from pathlib import Path

from eda_setup.core.models.environment import EnvironmentDescriptor
from eda_setup.core.models.stage import Detection, PlanStep
from eda_setup.core.models.state import InstallationState
from eda_setup.core.services.setup.data.constants import (
    OPENRAM_DIR,
    OPENRAM_QUICK_TEST,
    OPENRAM_TEST_TIMEOUT,
    STAGE_OPENRAM,
    STAGE_SYSTEM_PACKAGES,
)
from eda_setup.core.services.setup.detection.probes import has_files, module_locatable
from eda_setup.stages.base import Stage, checkout_steps

_CHECKOUT_FILES = ("sram_compiler.py", "compiler", "technology")


class OpenRAMStage(Stage):
    """OpenRAM SRAM compiler.

    Args:
        url: Git URL of the OpenRAM repository.
        branch: Optional branch or tag to clone.
        break_system_packages: Pass ``--break-system-packages`` to pip,
            needed on distributions with an externally managed Python.
    """

    depends_on = (STAGE_SYSTEM_PACKAGES,)

    def __init__(
        self,
        url: str,
        *,
        branch: str | None = None,
        break_system_packages: bool = True,
    ):
        self._url = url
        self._branch = branch
        self._break_system_packages = break_system_packages

    @property
    def name(self) -> str:
        return STAGE_OPENRAM

    def home(self, state: InstallationState) -> Path:
        """The checkout root, also when the hint names its ``compiler`` dir."""
        hinted = state.hint_path("OPENRAM_HOME")
        if hinted is not None:
            return hinted.parent if hinted.name == "compiler" else hinted
        return state.install_root / OPENRAM_DIR

    def detect(self, state: InstallationState) -> Detection:
        home = self.home(state)
        if not has_files(home, *_CHECKOUT_FILES):
            if (home / ".git").exists():
                return Detection.partial(f"checkout at {home} incomplete")
            return Detection.missing(f"no OpenRAM checkout under {state.install_root}")
        # Scoped to this checkout: an OpenRAM elsewhere on PYTHONPATH never counts
        if not module_locatable("globals", [home / "compiler"]):
            return Detection.partial(f"OpenRAM compiler at {home} not importable")
        return Detection.found(f"OpenRAM at {home}")

    def plan(self, state: InstallationState) -> list[PlanStep]:
        home = self.home(state)
        steps = checkout_steps("OpenRAM", self._url, home, branch=self._branch)

        pip = ["python3", "-m", "pip", "install", "-r", "requirements.txt"]
        if self._break_system_packages:
            pip.append("--break-system-packages")
        steps.append(PlanStep.run("Install OpenRAM Python requirements", pip, cwd=str(home)))
        return steps

    def runtime_env(self, state: InstallationState) -> dict[str, str]:
        home = self.home(state)
        return {
            "OPENRAM_HOME": str(home / "compiler"),
            "OPENRAM_TECH": str(home / "technology"),
        }

    def environment(self, state: InstallationState, descriptor: EnvironmentDescriptor) -> None:
        home = self.home(state)
        for name, value in self.runtime_env(state).items():
            descriptor.add_variable(name, value)
        descriptor.add_pythonpath(str(home / "compiler"))
        descriptor.job_workdir = str(home)

    def self_test_plan(self, state: InstallationState) -> list[PlanStep]:
        """Compile a 16x8 SRAM in scn4m_subm and check the Verilog appears."""
        home = self.home(state)
        env = self.runtime_env(state)
        env["PYTHONPATH"] = env["OPENRAM_HOME"]
        return [
            PlanStep.write("Write quick test config", str(home / "quick_test.py"), OPENRAM_QUICK_TEST),
            PlanStep.run(
                "Compile quick test SRAM",
                ["python3", "sram_compiler.py", "quick_test.py"],
                cwd=str(home), env=env, timeout=OPENRAM_TEST_TIMEOUT,
            ),
            PlanStep.run(
                "Check quick test output",
                ["test", "-f", "quick_test/quick_test.v"],
                cwd=str(home),
            ),
        ]
