"""
L1 Domain — ``__init__.py`` re-exports all pure domain functions.

No I/O at import time; the version gate only probes when asked to.
"""

from eda_setup.core.services.setup.domain.dag import (  # noqa: F401
    ready_stages,
    topological_order,
    transitive_dependents,
    validate_dag,
)
from eda_setup.core.services.setup.domain.version_gate import (  # noqa: F401
    Variant,
    VersionRequirement,
    choose_variant,
    meets_minimum,
    parse_version,
)
