"""
L3 Detection — read-only probes and the stage detector.

These functions READ host state but never WRITE.
Subprocess calls, file reads, env var reads — all read-only.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from eda_setup.core.models.stage import Detection
from eda_setup.core.models.state import InstallationState
from eda_setup.core.services.setup.detection.host import (  # noqa: F401
    PreconditionError,
    check_preconditions,
    is_debian_family,
    read_os_release,
)
from eda_setup.core.services.setup.detection.probes import (  # noqa: F401
    find_executable,
    has_files,
    is_executable,
    module_locatable,
    runs_cleanly,
)
from eda_setup.core.services.setup.detection.system_deps import (  # noqa: F401
    check_system_deps,
    is_pkg_installed,
)
from eda_setup.core.services.setup.detection.tool_version import (  # noqa: F401
    YOSYS_VERSION,
    query_version,
)

if TYPE_CHECKING:
    from eda_setup.stages.base import Stage

logger = logging.getLogger(__name__)


def detect_stage(stage: Stage, state: InstallationState) -> Detection:
    """Probe whether ``stage`` is already satisfied under the install root.

    Never raises: a probe that crashes means the stage still needs to run.
    """
    try:
        detection = stage.detect(state)
    except Exception as exc:
        logger.debug("Detection for %s raised, assuming missing: %s", stage.name, exc)
        return Detection.missing(f"detection error: {exc}")
    if not isinstance(detection, Detection):
        logger.debug("Detection for %s returned %r, assuming missing", stage.name, detection)
        return Detection.missing("detection returned no result")
    return detection
