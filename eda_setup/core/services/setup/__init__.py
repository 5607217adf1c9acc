"""
Toolchain setup service — package re-exports.

Each symbol lives in its single-responsibility module inside the
appropriate layer (data → domain → detection → execution →
orchestration → emission)::

    from eda_setup.core.services.setup import run_pipeline, build_descriptor
"""

# ── L0: Data ──
from eda_setup.core.services.setup.data.constants import (  # noqa: F401
    DEFAULT_INSTALL_DIR,
    HINT_VARS,
    SYSTEM_PACKAGES,
)

# ── L1: Domain ──
from eda_setup.core.services.setup.domain import (  # noqa: F401
    Variant,
    VersionRequirement,
    choose_variant,
    parse_version,
    topological_order,
    validate_dag,
)

# ── L3: Detection ──
from eda_setup.core.services.setup.detection import (  # noqa: F401
    PreconditionError,
    check_preconditions,
    detect_stage,
)

# ── L4: Execution ──
from eda_setup.core.services.setup.execution import (  # noqa: F401
    LaunchError,
    LaunchResult,
    StageRunner,
    launch_job,
    session_name,
)

# ── L5: Orchestration ──
from eda_setup.core.services.setup.orchestration import (  # noqa: F401
    PipelineError,
    PipelineReport,
    run_pipeline,
    run_self_tests,
    survey,
)

# ── L6: Emission ──
from eda_setup.core.services.setup.emission import (  # noqa: F401
    build_descriptor,
    write_environment_files,
)
