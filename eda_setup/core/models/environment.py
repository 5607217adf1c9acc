"""
EnvironmentDescriptor — resolved bindings needed to use installed tools.

One canonical in-memory structure; the generated scripts are
serialisations of it (see ``emission/templates.py``).
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class EnvironmentDescriptor(BaseModel):
    """Variables and search-path entries, all absolute, in a fixed order."""

    install_root: str
    variables: dict[str, str] = Field(default_factory=dict)
    path_prepend: list[str] = Field(default_factory=list)
    pythonpath_prepend: list[str] = Field(default_factory=list)

    # Launcher target (OpenRAM checkout), None when OpenRAM is absent
    job_workdir: str | None = None

    def add_variable(self, name: str, value: str) -> None:
        self.variables[name] = value

    def add_path(self, entry: str) -> None:
        if entry not in self.path_prepend:
            self.path_prepend.append(entry)

    def add_pythonpath(self, entry: str) -> None:
        if entry not in self.pythonpath_prepend:
            self.pythonpath_prepend.append(entry)
