"""
InstallationState — the host evidence threaded through one run.

Never persisted. It is rebuilt at the start of every invocation from
the CLI flags and the process environment, then passed explicitly to
every detector, stage plan and the environment emitter. A freshly
started orchestrator therefore always reflects host reality.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, field_validator


class InstallationState(BaseModel):
    """Resolved inputs and decisions for one orchestrator run."""

    # ── Where ────────────────────────────────────────────────────
    install_root: Path

    # ── Evidence from the environment ────────────────────────────
    env_hints: dict[str, str] = Field(default_factory=dict)
    fresh: bool = False

    # ── Run options ──────────────────────────────────────────────
    upgrade: bool = False
    forced: set[str] = Field(default_factory=set)
    jobs: int = 1

    # ── Decisions taken during the run ───────────────────────────
    variants: dict[str, str] = Field(default_factory=dict)

    @field_validator("install_root")
    @classmethod
    def _absolute_root(cls, value: Path) -> Path:
        return Path(value).expanduser().resolve()

    @property
    def log_dir(self) -> Path:
        return self.install_root / "logs"

    def hint_path(self, var: str) -> Path | None:
        """Return the hinted path for ``var`` if it lies inside the install root.

        Hints pointing elsewhere belong to an unrelated installation and
        are ignored so that detection stays scoped to this root.
        """
        raw = self.env_hints.get(var)
        if not raw:
            return None
        candidate = Path(raw).expanduser().resolve()
        if candidate.is_relative_to(self.install_root):
            return candidate
        return None

    def component_home(self, var: str, default_dirname: str) -> Path:
        """Resolve a component's checkout directory under the install root."""
        return self.hint_path(var) or self.install_root / default_dirname
