"""
L6 Emission — Script and README templates.

Pure functions of an ``EnvironmentDescriptor``: same descriptor in,
byte-identical text out. No timestamps, no host lookups.
"""

from __future__ import annotations

from eda_setup.core.models.environment import EnvironmentDescriptor
from eda_setup.core.services.setup.data.constants import (
    ENV_SCRIPT_NAME,
    JOB_SESSION_PREFIX,
    LAUNCHER_SCRIPT_NAME,
)

_LABELS = {
    "OPENROAD_HOME": "OpenROAD",
    "OPENROAD_FLOW_HOME": "OpenROAD-flow-scripts",
    "OPENRAM_HOME": "OpenRAM",
    "YOSYS_HOME": "Yosys",
}


def _escape(value: str) -> str:
    """Escape for use inside a double-quoted bash string."""
    for char in ("\\", '"', "$", "`"):
        value = value.replace(char, "\\" + char)
    return value


def _dq(value: str) -> str:
    return f'"{_escape(value)}"'


def env_script_path(descriptor: EnvironmentDescriptor) -> str:
    return f"{descriptor.install_root}/{ENV_SCRIPT_NAME}"


def launcher_script_path(descriptor: EnvironmentDescriptor) -> str:
    return f"{descriptor.install_root}/{LAUNCHER_SCRIPT_NAME}"


def render_environment_script(descriptor: EnvironmentDescriptor) -> str:
    """Render ``setup_environment.sh`` (meant to be sourced)."""
    lines = [
        "#!/bin/bash",
        "# Environment for the OpenROAD + OpenRAM toolchain.",
        f"# Install root: {descriptor.install_root}",
        "# Source this file: source setup_environment.sh",
        "",
    ]

    for name, value in descriptor.variables.items():
        lines.append(f"export {name}={_dq(value)}")

    if descriptor.path_prepend:
        lines.append("")
        joined = ":".join(descriptor.path_prepend)
        lines.append(f'export PATH="{_escape(joined)}:$PATH"')

    if descriptor.pythonpath_prepend:
        joined = ":".join(descriptor.pythonpath_prepend)
        lines.append(f'export PYTHONPATH="{_escape(joined)}${{PYTHONPATH:+:$PYTHONPATH}}"')

    lines += [
        "",
        'if [[ $- == *i* ]]; then',
        '    echo "OpenROAD + OpenRAM environment ready!"',
    ]
    for name in descriptor.variables:
        if name in _LABELS:
            lines.append(f'    echo "{_LABELS[name]}: ${name}"')
    lines += ["fi", ""]
    return "\n".join(lines)


def render_launcher_script(descriptor: EnvironmentDescriptor) -> str:
    """Render ``run_openram.sh``.

    The script takes exactly one argument, a configuration file. With
    any other count it prints usage and exits 1 before touching tmux.
    The session name is ``openram_`` plus the file's base name with its
    last extension removed, dots and colons replaced by underscores.

    Raises:
        ValueError: The descriptor has no OpenRAM working directory.
    """
    if not descriptor.job_workdir:
        raise ValueError("descriptor has no job working directory")

    return "\n".join([
        "#!/bin/bash",
        "# Run an OpenRAM configuration in a detached tmux session.",
        "",
        'if [ "$#" -ne 1 ]; then',
        '    echo "Usage: $0 <config_file.py>"',
        '    echo ""',
        '    echo "Example:"',
        '    echo "  $0 my_sram_config.py"',
        '    echo ""',
        '    echo "Runs OpenRAM in a tmux session that persists even if you disconnect."',
        "    exit 1",
        "fi",
        "",
        f"OPENRAM_DIR={_dq(descriptor.job_workdir)}",
        f"ENV_SCRIPT={_dq(env_script_path(descriptor))}",
        "",
        'case "$1" in',
        '    /*) CONFIG_FILE="$1" ;;',
        '    *)  CONFIG_FILE="$PWD/$1" ;;',
        "esac",
        "",
        'name=$(basename -- "$1")',
        'stem="${name%.*}"',
        '[ -n "$stem" ] || stem="$name"',
        'stem="${stem//[.:]/_}"',
        f'SESSION_NAME="{JOB_SESSION_PREFIX}$stem"',
        "",
        "if ! command -v tmux >/dev/null 2>&1; then",
        '    echo "Error: tmux is not installed" >&2',
        "    exit 1",
        "fi",
        'if [ ! -d "$OPENRAM_DIR" ]; then',
        '    echo "Error: OpenRAM checkout not found: $OPENRAM_DIR" >&2',
        "    exit 1",
        "fi",
        "",
        'tmux new-session -d -s "$SESSION_NAME" -c "$OPENRAM_DIR" || exit 1',
        'tmux send-keys -t "$SESSION_NAME" "cd $(printf %q "$OPENRAM_DIR")" Enter',
        'tmux send-keys -t "$SESSION_NAME" "source $(printf %q "$ENV_SCRIPT")" Enter',
        'tmux send-keys -t "$SESSION_NAME" "python3 sram_compiler.py $(printf %q "$CONFIG_FILE")" Enter',
        "",
        'echo "OpenRAM started in tmux session: $SESSION_NAME"',
        'echo ""',
        'echo "Commands:"',
        'echo "  Attach to session:    tmux attach-session -t $SESSION_NAME"',
        'echo "  Detach from session:  Ctrl+B, then D"',
        'echo "  List all sessions:    tmux list-sessions"',
        'echo "  Kill session:         tmux kill-session -t $SESSION_NAME"',
        "",
    ])


def render_readme(descriptor: EnvironmentDescriptor) -> str:
    """Render the README placed next to the generated scripts."""
    root = descriptor.install_root
    lines = [
        "# OpenROAD + OpenRAM toolchain",
        "",
        f"Installed under `{root}` by `eda-setup`.",
        "",
        "## Components",
        "",
    ]
    components = [
        f"- **{_LABELS[name]}**: `{value}`"
        for name, value in descriptor.variables.items() if name in _LABELS
    ]
    lines += components or ["- (none installed yet)"]
    lines += [
        "",
        "## Environment",
        "",
        "```bash",
        f"source {env_script_path(descriptor)}",
        "```",
        "",
    ]
    if descriptor.job_workdir:
        lines += [
            "## Running OpenRAM",
            "",
            "Long SRAM compiles run in a detached tmux session:",
            "",
            "```bash",
            f"{launcher_script_path(descriptor)} my_sram_config.py",
            "tmux attach-session -t openram_my_sram_config",
            "```",
            "",
            "Detach with `Ctrl+B`, then `D`.",
            "",
        ]
    lines += [
        "## Re-running the installer",
        "",
        "`eda-setup install` detects what is already installed and only",
        "runs the missing stages. Logs are kept in `logs/`, one per stage.",
        "",
    ]
    return "\n".join(lines)
