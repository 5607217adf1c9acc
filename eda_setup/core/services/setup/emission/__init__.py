"""
L6 Emission — ``__init__.py`` re-exports the environment emitter.

Builds the EnvironmentDescriptor after orchestration and serialises
it into the generated scripts.
"""

from eda_setup.core.services.setup.emission.descriptor import (  # noqa: F401
    build_descriptor,
)
from eda_setup.core.services.setup.emission.templates import (  # noqa: F401
    env_script_path,
    launcher_script_path,
    render_environment_script,
    render_launcher_script,
    render_readme,
)
from eda_setup.core.services.setup.emission.writer import (  # noqa: F401
    write_environment_files,
)
