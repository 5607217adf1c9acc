"""
L6 Emission — Write the generated files under the install root.
"""

from __future__ import annotations

import logging
from pathlib import Path

from eda_setup.core.models.environment import EnvironmentDescriptor
from eda_setup.core.services.setup.data.constants import (
    ENV_SCRIPT_NAME,
    LAUNCHER_SCRIPT_NAME,
    README_NAME,
)
from eda_setup.core.services.setup.emission.templates import (
    render_environment_script,
    render_launcher_script,
    render_readme,
)

logger = logging.getLogger(__name__)


def _write(path: Path, content: str, *, executable: bool = False) -> Path:
    path.write_text(content, encoding="utf-8")
    if executable:
        path.chmod(0o755)
    logger.info("Wrote %s", path)
    return path


def write_environment_files(descriptor: EnvironmentDescriptor, root: Path | None = None) -> list[Path]:
    """Write the environment script, launcher and README.

    The launcher is only written once OpenRAM is installed; a stale one
    from an earlier run is left alone.

    Returns:
        Paths written, in a fixed order.
    """
    root = Path(root or descriptor.install_root)
    root.mkdir(parents=True, exist_ok=True)

    written = [
        _write(root / ENV_SCRIPT_NAME, render_environment_script(descriptor), executable=True),
    ]
    if descriptor.job_workdir:
        written.append(_write(
            root / LAUNCHER_SCRIPT_NAME, render_launcher_script(descriptor), executable=True,
        ))
    else:
        logger.info("OpenRAM not installed, %s not written", LAUNCHER_SCRIPT_NAME)
    written.append(_write(root / README_NAME, render_readme(descriptor)))
    return written
