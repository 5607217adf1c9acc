"""
L5 Orchestration — ``__init__.py`` re-exports the pipeline coordinator.
"""

from eda_setup.core.services.setup.orchestration.orchestrator import (  # noqa: F401
    VARIANT_SOURCE,
    VARIANT_SYSTEM,
    PipelineError,
    PipelineReport,
    run_pipeline,
    run_self_tests,
    survey,
)
