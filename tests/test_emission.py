"""
Tests for environment emission — descriptor, scripts, determinism.
"""

import shutil
import subprocess
from pathlib import Path

import pytest

from eda_setup.core.models.config import SetupConfig
from eda_setup.core.models.environment import EnvironmentDescriptor
from eda_setup.core.models.state import InstallationState
from eda_setup.core.services.setup.emission import (
    build_descriptor,
    render_environment_script,
    render_launcher_script,
    render_readme,
    write_environment_files,
)
from eda_setup.core.services.setup.orchestration.orchestrator import run_pipeline
from eda_setup.stages.mock import MockStage
from eda_setup.stages.registry import build_stages

needs_bash = pytest.mark.skipif(shutil.which("bash") is None, reason="bash not available")


def _full_descriptor(state: InstallationState) -> EnvironmentDescriptor:
    # Every real stage treated as completed
    return build_descriptor(build_stages(SetupConfig()), state)


class TestBuildDescriptor:
    def test_only_completed_stages_contribute(self, state, runner):
        stages = [
            MockStage("a"),
            MockStage("b", ("a",), fail=True),
            MockStage("c", ("b",)),
        ]
        report = run_pipeline(stages, state, runner)

        descriptor = build_descriptor(stages, state, report)

        assert list(descriptor.variables) == ["A_HOME"]
        assert descriptor.path_prepend == [str(state.install_root / "a" / "bin")]

    def test_full_toolchain(self, state):
        descriptor = _full_descriptor(state)
        root = state.install_root

        assert list(descriptor.variables) == [
            "YOSYS_HOME", "OPENROAD_HOME", "OPENROAD_FLOW_HOME", "OPENRAM_HOME", "OPENRAM_TECH",
        ]
        assert descriptor.path_prepend == [
            str(root / "yosys"),
            str(root / "OpenROAD" / "build" / "src"),
            str(root / "openroad-flow-scripts" / "flow"),
        ]
        assert descriptor.job_workdir == str(root / "OpenRAM")

    def test_paths_absolute(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        state = InstallationState(install_root=Path("relative-root"))
        descriptor = _full_descriptor(state)

        assert Path(descriptor.install_root).is_absolute()
        assert all(Path(v).is_absolute() for v in descriptor.variables.values())
        assert all(Path(p).is_absolute() for p in descriptor.path_prepend)
        assert descriptor.install_root == str(tmp_path.resolve() / "relative-root")


class TestRenderEnvironmentScript:
    def test_exports(self, state):
        script = render_environment_script(_full_descriptor(state))
        root = state.install_root

        assert script.startswith("#!/bin/bash\n")
        assert f'export OPENROAD_HOME="{root}/OpenROAD"' in script
        assert f'export OPENRAM_TECH="{root}/OpenRAM/technology"' in script
        assert (
            f'export PATH="{root}/yosys:{root}/OpenROAD/build/src:'
            f'{root}/openroad-flow-scripts/flow:$PATH"'
        ) in script
        assert f'export PYTHONPATH="{root}/OpenRAM/compiler${{PYTHONPATH:+:$PYTHONPATH}}"' in script

    def test_deterministic(self, state):
        assert render_environment_script(_full_descriptor(state)) == render_environment_script(
            _full_descriptor(state)
        )

    def test_special_characters_escaped(self):
        descriptor = EnvironmentDescriptor(install_root="/tmp/x")
        descriptor.add_variable("OPENRAM_HOME", '/tmp/$odd "dir"')
        script = render_environment_script(descriptor)
        assert 'export OPENRAM_HOME="/tmp/\\$odd \\"dir\\""' in script

    def test_empty_descriptor(self):
        script = render_environment_script(EnvironmentDescriptor(install_root="/tmp/x"))
        assert "export PATH" not in script

    @needs_bash
    def test_sourcing_sets_variables(self, state):
        descriptor = _full_descriptor(state)
        state.install_root.mkdir(parents=True)
        files = write_environment_files(descriptor, state.install_root)

        out = subprocess.run(
            ["bash", "-c", 'source "$1" && echo "$OPENRAM_HOME|$PATH|$PYTHONPATH"', "_", str(files[0])],
            capture_output=True, text=True, check=True,
            env={"PATH": "/usr/bin:/bin"},
        ).stdout.strip()
        openram_home, path, pythonpath = out.split("|")

        assert openram_home == f"{state.install_root}/OpenRAM/compiler"
        assert path.endswith(":/usr/bin:/bin")
        assert path.startswith(f"{state.install_root}/yosys:")
        assert pythonpath == f"{state.install_root}/OpenRAM/compiler"


class TestRenderLauncherScript:
    def test_requires_workdir(self):
        with pytest.raises(ValueError):
            render_launcher_script(EnvironmentDescriptor(install_root="/tmp/x"))

    def test_absolute_locations(self, state):
        script = render_launcher_script(_full_descriptor(state))
        assert f'OPENRAM_DIR="{state.install_root}/OpenRAM"' in script
        assert f'ENV_SCRIPT="{state.install_root}/setup_environment.sh"' in script
        assert 'if [ "$#" -ne 1 ]; then' in script

    def test_deterministic(self, state):
        assert render_launcher_script(_full_descriptor(state)) == render_launcher_script(
            _full_descriptor(state)
        )


class TestRenderReadme:
    def test_mentions_components_and_launcher(self, state):
        readme = render_readme(_full_descriptor(state))
        assert "**OpenRAM**" in readme
        assert f"source {state.install_root}/setup_environment.sh" in readme
        assert "run_openram.sh my_sram_config.py" in readme

    def test_nothing_installed(self):
        readme = render_readme(EnvironmentDescriptor(install_root="/tmp/x"))
        assert "(none installed yet)" in readme
        assert "run_openram.sh" not in readme


class TestWriteEnvironmentFiles:
    def test_writes_all_files(self, state):
        paths = write_environment_files(_full_descriptor(state), state.install_root)

        assert [p.name for p in paths] == ["setup_environment.sh", "run_openram.sh", "README.md"]
        assert (paths[0].stat().st_mode & 0o777) == 0o755
        assert (paths[1].stat().st_mode & 0o777) == 0o755

    def test_byte_identical_across_runs(self, state):
        first = [p.read_bytes() for p in write_environment_files(_full_descriptor(state), state.install_root)]
        second = [p.read_bytes() for p in write_environment_files(_full_descriptor(state), state.install_root)]
        assert first == second

    def test_no_launcher_without_openram(self, state, runner):
        stages = [MockStage("a")]
        report = run_pipeline(stages, state, runner)
        paths = write_environment_files(build_descriptor(stages, state, report), state.install_root)

        assert [p.name for p in paths] == ["setup_environment.sh", "README.md"]
        assert not (state.install_root / "run_openram.sh").exists()
