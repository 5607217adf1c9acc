"""
SetupConfig — the optional ``eda-setup.yml`` file.

Every field has a default, so running without a config file installs
the standard toolchain into ``~/openroad-setup``.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from eda_setup.core.services.setup.data.constants import (
    DEFAULT_INSTALL_DIR,
    DEFAULT_REPOSITORIES,
    SYSTEM_PACKAGES,
    YOSYS_MIN_VERSION,
)


class Repository(BaseModel):
    """A git source for one component."""

    url: str
    branch: str | None = None


class SetupConfig(BaseModel):
    """Installer configuration, validated from YAML."""

    install_dir: str = DEFAULT_INSTALL_DIR
    jobs: int | None = Field(default=None, ge=1)
    log_tail_lines: int = Field(default=20, ge=1)

    packages: list[str] = Field(default_factory=lambda: list(SYSTEM_PACKAGES))
    repositories: dict[str, Repository] = Field(
        default_factory=lambda: {
            name: Repository(url=url) for name, url in DEFAULT_REPOSITORIES.items()
        },
    )

    yosys_min_version: str = YOSYS_MIN_VERSION
    openroad_system_install: bool = False
    pip_break_system_packages: bool = True

    def repository(self, component: str) -> Repository:
        """Repository for ``component``, falling back to the built-in default."""
        repo = self.repositories.get(component)
        if repo is not None:
            return repo
        return Repository(url=DEFAULT_REPOSITORIES[component])
