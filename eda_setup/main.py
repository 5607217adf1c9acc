"""
eda-setup — CLI entrypoint.

Usage:
    eda-setup --help
    eda-setup install --install-dir ~/openroad-setup
    eda-setup status
    eda-setup launch my_sram_config.py
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from eda_setup import __version__
from eda_setup.core.observability.logging_config import configure_logging
from eda_setup.core.models.stage import StageRecord, StageStatus
from eda_setup.core.services.setup.data.constants import VARIANT_SYSTEM

_STATUS_STYLE = {
    StageStatus.DETECTING: ("🔍", "cyan"),
    StageStatus.SKIPPED: ("⏭️ ", "green"),
    StageStatus.RUNNING: ("🔧", "cyan"),
    StageStatus.DONE: ("✅", "green"),
    StageStatus.FAILED: ("❌", "red"),
    StageStatus.BLOCKED: ("⛔", "yellow"),
    StageStatus.PENDING: ("•", "white"),
}

_INSTALL_DIR_HELP = "Install root (default: install_dir from eda-setup.yml, else ~/openroad-setup)."


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__, prog_name="eda-setup")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to eda-setup.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """Install OpenROAD, OpenROAD-flow-scripts, OpenRAM and Yosys."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    configure_logging(debug=debug, verbose=verbose, quiet=quiet)


def _echo_record(record: StageRecord) -> None:
    icon, color = _STATUS_STYLE.get(record.status, ("•", "white"))
    click.secho(f"   {icon} {record.name:<16}", fg=color, nl=False)
    label = str(record.status)
    if record.status == StageStatus.SKIPPED and record.variant:
        label += f" ({record.variant})"
    elif record.status == StageStatus.BLOCKED and record.blocked_by:
        label += f" (needs {record.blocked_by})"
    click.echo(f" {label}", nl=False)
    if record.detail and record.status in (StageStatus.SKIPPED, StageStatus.FAILED):
        click.echo(f"  — {record.detail}")
    else:
        click.echo()


# ── install ─────────────────────────────────────────────────────


@cli.command()
@click.option("--install-dir", default=None, help=_INSTALL_DIR_HELP)
@click.option("--fresh", is_flag=True, help="Ignore OPENROAD_HOME etc. from an earlier install and re-probe.")
@click.option("--upgrade", is_flag=True, help="Always refresh system packages, including apt-get upgrade.")
@click.option("--test-openram", is_flag=True, help="Run the OpenRAM quick test after installing.")
@click.option("--test-flow-scripts", is_flag=True, help="Run the default flow design after installing.")
@click.option("--jobs", "-j", type=click.IntRange(min=1), default=None, help="Parallel build jobs.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def install(
    ctx: click.Context,
    install_dir: str | None,
    fresh: bool,
    upgrade: bool,
    test_openram: bool,
    test_flow_scripts: bool,
    jobs: int | None,
    as_json: bool,
) -> None:
    """Install every missing stage; already installed stages are skipped."""
    from eda_setup.core.use_cases.install import install_toolchain

    quiet = ctx.obj.get("quiet", False)
    show_progress = not as_json and not quiet

    def _on_transition(record: StageRecord) -> None:
        # DETECTING is transient; print only the settled states
        if record.status != StageStatus.DETECTING:
            _echo_record(record)

    if show_progress:
        click.secho("\n🛠️  Installing OpenROAD + OpenRAM toolchain", fg="cyan", bold=True)

    result = install_toolchain(
        config_path=ctx.obj.get("config_path"),
        install_dir=install_dir,
        fresh=fresh,
        upgrade=upgrade,
        jobs=jobs,
        test_openram=test_openram,
        test_flow_scripts=test_flow_scripts,
        listener=_on_transition if show_progress else None,
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.ok else 1)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    report = result.report
    assert report is not None and result.state is not None

    if not report.ok:
        failed = report.record(report.failed_stage)
        click.echo()
        click.secho(f"❌ Stage '{failed.name}' failed (exit {failed.exit_code})", fg="red", bold=True)
        if failed.detail:
            click.echo(f"   {failed.detail}")
        click.echo(f"   Log: {failed.log_path}")
        if failed.log_tail:
            click.echo()
            click.secho("   Last lines of the log:", fg="white", bold=True)
            for line in failed.log_tail.splitlines():
                click.echo(f"     {line}")
        click.echo()
        click.secho(
            "   Fix the problem and re-run 'eda-setup install'; "
            "completed stages will be skipped.",
            fg="yellow",
        )
        sys.exit(1)

    warnings = [(n, w) for n, r in report.records.items() for w in r.warnings]
    if warnings:
        click.echo()
        click.secho("⚠️  Warnings:", fg="yellow")
        for name, warning in warnings:
            click.echo(f"   • {name}: {warning}")

    if not quiet:
        click.echo()
        if len(report.names_with(StageStatus.SKIPPED)) == len(report.records):
            click.secho("✅ Everything already installed", fg="green", bold=True)
        else:
            click.secho("✅ Installation complete", fg="green", bold=True)
        for path in result.files:
            click.echo(f"   📄 {path}")
        click.echo()
        click.echo(f"   source {result.state.install_root}/setup_environment.sh")
        click.echo()


# ── status ──────────────────────────────────────────────────────


@cli.command()
@click.option("--install-dir", default=None, help=_INSTALL_DIR_HELP)
@click.option("--fresh", is_flag=True, help="Ignore OPENROAD_HOME etc. from an earlier install.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def status(ctx: click.Context, install_dir: str | None, fresh: bool, as_json: bool) -> None:
    """Show which stages are installed (detection only, changes nothing)."""
    from eda_setup.core.use_cases.status import survey_toolchain

    result = survey_toolchain(
        config_path=ctx.obj.get("config_path"),
        install_dir=install_dir,
        fresh=fresh,
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(1 if result.error else 0)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    assert result.state is not None and result.report is not None
    click.secho(f"\n📋 {result.state.install_root}", fg="cyan", bold=True)
    for record in result.report.records.values():
        if record.completed:
            mark = "system copy" if record.variant == VARIANT_SYSTEM else "installed"
            click.secho(f"   ✓ {record.name:<16}", fg="green", nl=False)
            click.echo(f" {mark}")
        else:
            click.secho(f"   ✗ {record.name:<16}", fg="red", nl=False)
            click.echo(f" {record.detection or 'missing'}  — {record.detail}")
    click.echo()


# ── env ─────────────────────────────────────────────────────────


@cli.command()
@click.option("--install-dir", default=None, help=_INSTALL_DIR_HELP)
@click.option("--write", is_flag=True, help="Regenerate the scripts under the install root.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def env(ctx: click.Context, install_dir: str | None, write: bool, as_json: bool) -> None:
    """Print the environment script for what is installed."""
    from eda_setup.core.use_cases.env import environment_for

    result = environment_for(
        config_path=ctx.obj.get("config_path"),
        install_dir=install_dir,
        write=write,
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(1 if result.error else 0)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    if write:
        for path in result.files:
            click.secho(f"📄 {path}", fg="green")
        return
    click.echo(result.script, nl=False)


# ── launch ──────────────────────────────────────────────────────


@cli.command()
@click.argument("config_files", nargs=-1, metavar="CONFIG_FILE")
@click.option("--install-dir", default=None, help=_INSTALL_DIR_HELP)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def launch(
    ctx: click.Context,
    config_files: tuple[str, ...],
    install_dir: str | None,
    as_json: bool,
) -> None:
    """Run OpenRAM on CONFIG_FILE in a detached tmux session."""
    from eda_setup.core.services.setup.execution.launcher import USAGE
    from eda_setup.core.use_cases.launch import launch_openram

    # Exactly one argument; checked here so no session is ever started otherwise
    if len(config_files) != 1:
        click.echo(USAGE.format(prog="eda-setup launch"), err=True)
        sys.exit(1)

    outcome = launch_openram(
        config_files[0],
        config_path=ctx.obj.get("config_path"),
        install_dir=install_dir,
    )

    if as_json:
        click.echo(json.dumps(outcome.to_dict(), indent=2))
        sys.exit(1 if outcome.error else 0)

    if outcome.error:
        click.secho(f"❌ {outcome.error}", fg="red")
        sys.exit(1)

    assert outcome.launch is not None
    name = outcome.launch.session
    click.secho(f"✅ OpenRAM started in tmux session: {name}", fg="green", bold=True)
    if not ctx.obj.get("quiet", False):
        click.echo()
        click.echo("Commands:")
        click.echo(f"  Attach to session:    tmux attach-session -t {name}")
        click.echo("  Detach from session:  Ctrl+B, then D")
        click.echo("  List all sessions:    tmux list-sessions")
        click.echo(f"  Kill session:         tmux kill-session -t {name}")


if __name__ == "__main__":
    cli()
