"""
Shared test fixtures and configuration.
"""

import os
from pathlib import Path

import pytest

from eda_setup.core.models.state import InstallationState
from eda_setup.core.services.setup.execution.stage_runner import StageRunner


@pytest.fixture
def install_root(tmp_path: Path) -> Path:
    """An install root that does not exist yet."""
    return tmp_path / "openroad-setup"


@pytest.fixture
def state(install_root: Path) -> InstallationState:
    return InstallationState(install_root=install_root)


@pytest.fixture
def runner(state: InstallationState) -> StageRunner:
    return StageRunner(state.log_dir, base_env=dict(os.environ))


@pytest.fixture
def fake_bin(tmp_path: Path) -> Path:
    """Empty directory for fake executables."""
    path = tmp_path / "fake-bin"
    path.mkdir()
    return path
