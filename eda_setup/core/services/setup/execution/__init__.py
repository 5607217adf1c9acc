"""
L4 Execution — ``__init__.py`` re-exports all execution functions.

These functions WRITE to the system: subprocess calls, log files,
tmux sessions.
"""

from eda_setup.core.services.setup.execution.launcher import (  # noqa: F401
    USAGE,
    LaunchError,
    LaunchResult,
    launch_job,
    session_name,
)
from eda_setup.core.services.setup.execution.stage_runner import (  # noqa: F401
    StageRunner,
    tail_file,
)
