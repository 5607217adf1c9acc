"""
Tests for CLI commands — install, status, env, launch and global options.
"""

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from eda_setup.core.services.setup.detection.host import PreconditionError
from eda_setup.main import cli
from eda_setup.stages.mock import MockStage


def _pipeline(fail: bool = False) -> list[MockStage]:
    return [
        MockStage("alpha"),
        MockStage("beta", ("alpha",), fail=fail),
        MockStage("gamma", ("beta",)),
    ]


@pytest.fixture
def cli_env(tmp_path: Path, monkeypatch):
    """Run the CLI from an empty directory with the host checks passing."""
    monkeypatch.chdir(tmp_path)
    for var in ("OPENROAD_HOME", "OPENROAD_FLOW_HOME", "OPENRAM_HOME", "OPENRAM_TECH", "YOSYS_HOME"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setattr("eda_setup.core.use_cases.install.check_preconditions", lambda: {})
    return tmp_path


@pytest.fixture
def mock_pipeline(monkeypatch):
    """Replace the real stages with mock ones (fresh objects per call)."""
    def _use(fail: bool = False) -> None:
        monkeypatch.setattr("eda_setup.core.use_cases.install.build_stages", lambda config: _pipeline(fail))
        monkeypatch.setattr("eda_setup.core.use_cases.status.build_stages", lambda config: _pipeline(fail))
    return _use


class TestCLIGlobal:
    """Tests for global CLI behavior."""

    def test_help(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "OpenROAD" in result.output
        for command in ("install", "status", "env", "launch"):
            assert command in result.output

    def test_short_help(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["-h"])
        assert result.exit_code == 0
        assert "Usage" in result.output

    def test_version(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_missing_config_file(self, cli_env: Path):
        runner = CliRunner()
        result = runner.invoke(cli, ["--config", str(cli_env / "nope.yml"), "status"])
        assert result.exit_code == 1
        assert "Config file not found" in result.output


# ── install ──────────────────────────────────────────────────────────


class TestInstallCommand:
    def test_install_all(self, cli_env: Path, mock_pipeline):
        mock_pipeline()
        root = cli_env / "root"
        runner = CliRunner()
        result = runner.invoke(cli, ["install", "--install-dir", str(root)])

        assert result.exit_code == 0, result.output
        assert "Installation complete" in result.output
        assert (root / "setup_environment.sh").is_file()
        assert (root / "README.md").is_file()
        assert "ALPHA_HOME" in (root / "setup_environment.sh").read_text()

    def test_second_run_skips_everything(self, cli_env: Path, mock_pipeline):
        mock_pipeline()
        root = cli_env / "root"
        runner = CliRunner()
        runner.invoke(cli, ["install", "--install-dir", str(root)])
        result = runner.invoke(cli, ["install", "--install-dir", str(root)])

        assert result.exit_code == 0, result.output
        assert "Everything already installed" in result.output

    def test_failure(self, cli_env: Path, mock_pipeline):
        mock_pipeline(fail=True)
        root = cli_env / "root"
        runner = CliRunner()
        result = runner.invoke(cli, ["install", "--install-dir", str(root)])

        assert result.exit_code == 1
        assert "Stage 'beta' failed (exit 3)" in result.output
        assert "Log:" in result.output
        assert "boom" in result.output
        assert "re-run" in result.output
        assert "blocked" in result.output
        assert not (root / "setup_environment.sh").exists()

    def test_resume_after_failure(self, cli_env: Path, mock_pipeline):
        root = cli_env / "root"
        runner = CliRunner()
        mock_pipeline(fail=True)
        runner.invoke(cli, ["install", "--install-dir", str(root)])

        mock_pipeline()
        result = runner.invoke(cli, ["install", "--install-dir", str(root)])
        assert result.exit_code == 0, result.output
        assert "Installation complete" in result.output

    def test_precondition_failure(self, cli_env: Path, mock_pipeline, monkeypatch):
        mock_pipeline()

        def _refuse():
            raise PreconditionError("Do not run the installer as root")

        monkeypatch.setattr("eda_setup.core.use_cases.install.check_preconditions", _refuse)
        root = cli_env / "root"
        runner = CliRunner()
        result = runner.invoke(cli, ["install", "--install-dir", str(root)])

        assert result.exit_code == 1
        assert "as root" in result.output
        assert not root.exists()

    def test_json(self, cli_env: Path, mock_pipeline):
        mock_pipeline()
        root = cli_env / "root"
        runner = CliRunner()
        result = runner.invoke(cli, ["install", "--install-dir", str(root), "--json"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["ok"] is True
        assert [s["name"] for s in data["report"]["stages"]] == ["alpha", "beta", "gamma"]
        assert data["environment"]["variables"]["GAMMA_HOME"].endswith("gamma")

    def test_jobs_must_be_positive(self, cli_env: Path):
        runner = CliRunner()
        result = runner.invoke(cli, ["install", "--jobs", "0"])
        assert result.exit_code == 2


# ── status / env ─────────────────────────────────────────────────────


class TestStatusCommand:
    def test_nothing_installed(self, cli_env: Path, mock_pipeline):
        mock_pipeline()
        runner = CliRunner()
        result = runner.invoke(cli, ["status", "--install-dir", str(cli_env / "root")])
        assert result.exit_code == 0
        assert "alpha" in result.output
        assert "missing" in result.output

    def test_json_after_install(self, cli_env: Path, mock_pipeline):
        mock_pipeline()
        root = cli_env / "root"
        runner = CliRunner()
        runner.invoke(cli, ["install", "--install-dir", str(root)])
        result = runner.invoke(cli, ["status", "--install-dir", str(root), "--json"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert all(s["installed"] for s in data["stages"])

    def test_status_creates_nothing(self, cli_env: Path, mock_pipeline):
        mock_pipeline()
        root = cli_env / "root"
        CliRunner().invoke(cli, ["status", "--install-dir", str(root)])
        assert not root.exists()


class TestEnvCommand:
    def test_prints_script(self, cli_env: Path, mock_pipeline):
        mock_pipeline()
        root = cli_env / "root"
        runner = CliRunner()
        runner.invoke(cli, ["install", "--install-dir", str(root)])
        result = runner.invoke(cli, ["env", "--install-dir", str(root)])

        assert result.exit_code == 0, result.output
        assert result.output.startswith("#!/bin/bash")
        assert "export BETA_HOME=" in result.output

    def test_write(self, cli_env: Path, mock_pipeline):
        mock_pipeline()
        root = cli_env / "root"
        runner = CliRunner()
        runner.invoke(cli, ["install", "--install-dir", str(root)])
        (root / "setup_environment.sh").unlink()

        result = runner.invoke(cli, ["env", "--install-dir", str(root), "--write"])
        assert result.exit_code == 0, result.output
        assert (root / "setup_environment.sh").is_file()


# ── launch ───────────────────────────────────────────────────────────


class TestLaunchCommand:
    def test_no_arguments(self, cli_env: Path):
        runner = CliRunner()
        result = runner.invoke(cli, ["launch"])
        assert result.exit_code == 1
        assert "Usage: eda-setup launch" in result.output

    def test_two_arguments(self, cli_env: Path):
        runner = CliRunner()
        result = runner.invoke(cli, ["launch", "a.py", "b.py"])
        assert result.exit_code == 1
        assert "Usage: eda-setup launch" in result.output

    def test_not_installed(self, cli_env: Path):
        runner = CliRunner()
        result = runner.invoke(cli, ["launch", "a.py", "--install-dir", str(cli_env / "root")])
        assert result.exit_code == 1
        assert "eda-setup install" in result.output
