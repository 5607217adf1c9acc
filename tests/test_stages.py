"""
Tests for the concrete stages — plans, environment contributions, registry.
"""

from pathlib import Path

import pytest

from eda_setup.core.models.config import Repository, SetupConfig
from eda_setup.core.models.environment import EnvironmentDescriptor
from eda_setup.core.models.state import InstallationState
from eda_setup.core.services.setup.data.constants import (
    DEFAULT_REPOSITORIES,
    OPENRAM_TEST_TIMEOUT,
)
from eda_setup.stages.flow_scripts import FlowScriptsStage
from eda_setup.stages.openram import OpenRAMStage
from eda_setup.stages.openroad import OpenROADStage
from eda_setup.stages.registry import build_stages
from eda_setup.stages.system_packages import SystemPackagesStage
from eda_setup.stages.yosys import YosysStage

OPENROAD_URL = DEFAULT_REPOSITORIES["openroad"]


def _commands(steps) -> list[list[str]]:
    return [s.command for s in steps if s.type == "command"]


def _descriptor(state: InstallationState) -> EnvironmentDescriptor:
    return EnvironmentDescriptor(install_root=str(state.install_root))


# ── System packages ──────────────────────────────────────────────────


class TestSystemPackagesStage:
    @pytest.fixture
    def missing_tmux(self, monkeypatch):
        monkeypatch.setattr(
            "eda_setup.stages.system_packages.check_system_deps",
            lambda pkgs: {"missing": ["tmux"], "installed": [p for p in pkgs if p != "tmux"]},
        )

    def test_plan_installs_only_missing(self, missing_tmux, state):
        steps = SystemPackagesStage(["cmake", "tmux"]).plan(state)

        assert _commands(steps) == [
            ["env", "DEBIAN_FRONTEND=noninteractive", "apt-get", "update"],
            ["env", "DEBIAN_FRONTEND=noninteractive", "apt-get", "install", "-y", "tmux"],
        ]
        assert all(s.needs_sudo for s in steps)

    def test_upgrade_adds_apt_upgrade(self, missing_tmux, install_root):
        state = InstallationState(install_root=install_root, upgrade=True)
        commands = _commands(SystemPackagesStage(["tmux"]).plan(state))
        assert ["env", "DEBIAN_FRONTEND=noninteractive", "apt-get", "upgrade", "-y"] in commands

    def test_no_install_when_nothing_missing(self, monkeypatch, state):
        monkeypatch.setattr(
            "eda_setup.stages.system_packages.check_system_deps",
            lambda pkgs: {"missing": [], "installed": list(pkgs)},
        )
        steps = SystemPackagesStage(["cmake"]).plan(state)
        assert [s.label for s in steps] == ["Update package index"]


# ── OpenROAD ─────────────────────────────────────────────────────────


class TestOpenROADStage:
    def test_fresh_plan(self, state, install_root):
        state.jobs = 8
        steps = OpenROADStage(OPENROAD_URL).plan(state)
        home = install_root / "OpenROAD"

        commands = _commands(steps)
        assert ["git", "clone", "--recursive", OPENROAD_URL, str(home)] in commands
        assert ["cmake", "-S", ".", "-B", "build", "-DCMAKE_BUILD_TYPE=Release"] in commands
        assert ["cmake", "--build", "build", "--parallel", "8"] in commands
        assert not any(c[:2] == ["cmake", "--install"] for c in commands)

        installer = next(s for s in steps if s.command[0] == "./etc/DependencyInstaller.sh")
        assert installer.needs_sudo
        assert installer.cwd == str(home)

    def test_existing_checkout_not_cloned(self, state, install_root):
        (install_root / "OpenROAD" / ".git").mkdir(parents=True)
        commands = _commands(OpenROADStage(OPENROAD_URL).plan(state))
        assert not any(c[:2] == ["git", "clone"] for c in commands)

    def test_branch(self, state):
        commands = _commands(OpenROADStage(OPENROAD_URL, branch="v2.0").plan(state))
        clone = next(c for c in commands if c[:2] == ["git", "clone"])
        assert clone[clone.index("--branch") + 1] == "v2.0"

    def test_system_install(self, state):
        steps = OpenROADStage(OPENROAD_URL, system_install=True).plan(state)
        assert steps[-1].command == ["cmake", "--install", "build"]
        assert steps[-1].needs_sudo

    def test_environment(self, state, install_root):
        descriptor = _descriptor(state)
        OpenROADStage(OPENROAD_URL).environment(state, descriptor)
        assert descriptor.variables == {"OPENROAD_HOME": str(install_root / "OpenROAD")}
        assert descriptor.path_prepend == [str(install_root / "OpenROAD" / "build" / "src")]


# ── Yosys ────────────────────────────────────────────────────────────


class TestYosysStage:
    def test_requirement(self):
        stage = YosysStage("u", min_version="0.60")
        assert stage.version_requirement.min_version == "0.60"
        assert stage.version_requirement.version_command == ("yosys", "-V")

    def test_plan(self, state, install_root):
        state.jobs = 4
        commands = _commands(YosysStage("u").plan(state))
        assert ["git", "clone", "--recursive", "u", str(install_root / "yosys")] in commands
        assert ["make", "-j4"] in commands

    def test_environment_from_source(self, state, install_root):
        descriptor = _descriptor(state)
        YosysStage("u").environment(state, descriptor)
        assert descriptor.variables["YOSYS_HOME"] == str(install_root / "yosys")
        assert descriptor.path_prepend == [str(install_root / "yosys")]

    def test_environment_with_system_copy(self, state):
        state.variants["yosys"] = "system"
        descriptor = _descriptor(state)
        YosysStage("u").environment(state, descriptor)
        assert descriptor.variables == {}
        assert descriptor.path_prepend == []


# ── OpenROAD-flow-scripts ────────────────────────────────────────────


class TestFlowScriptsStage:
    def test_depends_on_tools(self):
        assert FlowScriptsStage.depends_on == ("openroad", "yosys")

    def test_plan(self, state, install_root):
        state.jobs = 2
        steps = FlowScriptsStage("u").plan(state)
        build = steps[-1]
        assert build.command == ["./build_openroad.sh", "--local", "--threads", "2"]
        assert build.cwd == str(install_root / "openroad-flow-scripts")

    def test_environment(self, state, install_root):
        descriptor = _descriptor(state)
        FlowScriptsStage("u").environment(state, descriptor)
        home = install_root / "openroad-flow-scripts"
        assert descriptor.variables == {"OPENROAD_FLOW_HOME": str(home)}
        assert descriptor.path_prepend == [str(home / "flow")]

    def test_self_test_runs_make_in_flow(self, state, install_root):
        steps = FlowScriptsStage("u").self_test_plan(state)
        assert steps[0].cwd == str(install_root / "openroad-flow-scripts" / "flow")
        assert "make" in steps[0].command[-1]


# ── OpenRAM ──────────────────────────────────────────────────────────


class TestOpenRAMStage:
    def test_plan_pip(self, state):
        steps = OpenRAMStage("u").plan(state)
        assert steps[-1].command == [
            "python3", "-m", "pip", "install", "-r", "requirements.txt",
            "--break-system-packages",
        ]

    def test_plan_pip_without_break(self, state):
        steps = OpenRAMStage("u", break_system_packages=False).plan(state)
        assert "--break-system-packages" not in steps[-1].command

    def test_environment(self, state, install_root):
        descriptor = _descriptor(state)
        OpenRAMStage("u").environment(state, descriptor)
        home = install_root / "OpenRAM"

        assert descriptor.variables == {
            "OPENRAM_HOME": str(home / "compiler"),
            "OPENRAM_TECH": str(home / "technology"),
        }
        assert descriptor.pythonpath_prepend == [str(home / "compiler")]
        assert descriptor.job_workdir == str(home)

    def test_self_test(self, state, install_root):
        steps = OpenRAMStage("u").self_test_plan(state)
        home = install_root / "OpenRAM"

        write, compile_, check = steps
        assert write.type == "write_file"
        assert write.path == str(home / "quick_test.py")
        assert 'tech_name       = "scn4m_subm"' in write.content
        assert compile_.timeout == OPENRAM_TEST_TIMEOUT
        assert compile_.env["OPENRAM_TECH"] == str(home / "technology")
        assert check.command == ["test", "-f", "quick_test/quick_test.v"]


# ── Registry ─────────────────────────────────────────────────────────


class TestRegistry:
    def test_default_pipeline(self):
        stages = build_stages(SetupConfig())
        assert [s.name for s in stages] == [
            "system-packages", "yosys", "openroad", "flow-scripts", "openram",
        ]

    def test_every_dependency_declared_earlier(self):
        seen: set[str] = set()
        for stage in build_stages(SetupConfig()):
            assert set(stage.depends_on) <= seen
            seen.add(stage.name)

    def test_config_overrides(self, state):
        config = SetupConfig(
            repositories={"openram": Repository(url="https://example.invalid/fork.git", branch="dev")},
            openroad_system_install=True,
            yosys_min_version="0.61",
        )
        stages = {s.name: s for s in build_stages(config)}

        clone = _commands(stages["openram"].plan(state))[1]
        assert clone[-2] == "https://example.invalid/fork.git"
        assert "dev" in clone
        assert stages["yosys"].version_requirement.min_version == "0.61"
        assert stages["openroad"].plan(state)[-1].command[:2] == ["cmake", "--install"]
        # Unlisted components keep their default source
        assert _commands(stages["openroad"].plan(state))[1][-2] == OPENROAD_URL

    def test_openroad_stays_under_root_by_default(self, state):
        stages = {s.name: s for s in build_stages(SetupConfig())}
        commands = _commands(stages["openroad"].plan(state))
        assert not any(c[:2] == ["cmake", "--install"] for c in commands)

    def test_repr(self):
        assert repr(build_stages(SetupConfig())[1]) == "<YosysStage name='yosys'>"


class TestCheckoutPaths:
    def test_clone_runs_from_parent(self, state, install_root):
        steps = OpenRAMStage("u").plan(state)
        mkdir, clone = steps[0], steps[1]
        assert mkdir.command == ["mkdir", "-p", str(install_root)]
        assert clone.cwd == str(install_root)
        assert Path(clone.command[-1]) == install_root / "OpenRAM"
