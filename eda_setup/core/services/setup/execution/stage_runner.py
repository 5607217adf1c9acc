"""
L4 Execution — Stage runner.

The SINGLE PLACE where install/build commands are executed. Every
step's combined stdout/stderr is appended to the stage's log file,
and every step result is checked before the next one starts.

Log files are truncated the first time a stage runs in this process
and appended to afterwards, so a retry within one run keeps the full
history while a new run starts with a clean log.
"""

from __future__ import annotations

import logging
import os
import signal
import subprocess
import time
from collections import deque
from pathlib import Path
from typing import IO, Mapping

from eda_setup.core.models.stage import PlanStep, StageOutcome

logger = logging.getLogger(__name__)

EXIT_TIMEOUT = 124
EXIT_NOT_FOUND = 127


def tail_file(path: Path, lines: int = 20) -> str:
    """Last ``lines`` lines of a text file ('' if unreadable)."""
    try:
        with path.open("r", encoding="utf-8", errors="replace") as f:
            return "".join(deque(f, maxlen=lines)).rstrip("\n")
    except OSError:
        return ""


def _kill_tree(proc: subprocess.Popen) -> None:
    """Kill a timed-out step and everything it spawned."""
    try:
        os.killpg(proc.pid, signal.SIGKILL)
    except ProcessLookupError:
        pass
    except OSError as exc:
        logger.debug("killpg %s failed, killing child only: %s", proc.pid, exc)
        proc.kill()


class StageRunner:
    """Execute stage plans, recording output to per-stage logs.

    Args:
        log_dir: Directory holding ``<stage>.log`` files.
        tail_lines: Lines of log returned with a failure.
        base_env: Environment for child processes (default: ``os.environ``).
    """

    def __init__(
        self,
        log_dir: Path,
        *,
        tail_lines: int = 20,
        base_env: Mapping[str, str] | None = None,
    ):
        self._log_dir = log_dir
        self._tail_lines = tail_lines
        self._base_env = dict(base_env if base_env is not None else os.environ)
        self._opened: set[str] = set()
        self._commands_run = 0

    @property
    def commands_run(self) -> int:
        """Number of command steps started by this runner."""
        return self._commands_run

    def log_path(self, stage_name: str) -> Path:
        return self._log_dir / f"{stage_name}.log"

    def _open_log(self, stage_name: str) -> IO[str]:
        self._log_dir.mkdir(parents=True, exist_ok=True)
        path = self.log_path(stage_name)
        if stage_name not in self._opened:
            path.write_text("", encoding="utf-8")
            self._opened.add(stage_name)
        # O_APPEND: our writes and the child's share the end of file
        return path.open("a", encoding="utf-8")

    def run(self, stage_name: str, steps: list[PlanStep]) -> StageOutcome:
        """Run ``steps`` in order, stopping at the first failure.

        Returns:
            ``StageOutcome`` with ``ok=False``, the failing step's exit
            code and the log tail on failure. Never raises for step
            failures.
        """
        log_path = self.log_path(stage_name)
        outcome = StageOutcome(stage=stage_name, log_path=str(log_path))
        start = time.monotonic()

        with self._open_log(stage_name) as log:
            for step in steps:
                logger.info("[%s] %s", stage_name, step.label)
                exit_code = self._run_step(step, log)
                outcome.steps_run += 1

                if exit_code == 0:
                    continue

                if step.optional:
                    warning = f"{step.label} failed (exit {exit_code})"
                    logger.warning("[%s] %s, continuing", stage_name, warning)
                    outcome.warnings.append(warning)
                    continue

                outcome.ok = False
                outcome.exit_code = exit_code
                outcome.failed_step = step.label
                outcome.error = f"{step.label} failed (exit {exit_code})"
                break

        outcome.duration_ms = int((time.monotonic() - start) * 1000)
        if not outcome.ok:
            outcome.log_tail = tail_file(log_path, self._tail_lines)
        return outcome

    def record_error(self, stage_name: str, error: str, details: str = "") -> StageOutcome:
        """Fail ``stage_name`` without running anything, logging ``details``.

        Used when a stage cannot even produce its plan; the log still
        exists so the failure report can point at it.
        """
        log_path = self.log_path(stage_name)
        with self._open_log(stage_name) as log:
            log.write(f"error: {error}\n")
            if details:
                log.write(details.rstrip("\n") + "\n")
        return StageOutcome(
            stage=stage_name,
            ok=False,
            exit_code=1,
            error=error,
            log_path=str(log_path),
            log_tail=tail_file(log_path, self._tail_lines),
        )

    # ── Step execution ──────────────────────────────────────────

    def _run_step(self, step: PlanStep, log: IO[str]) -> int:
        if step.type == "write_file":
            return self._write_file(step, log)
        return self._run_command(step, log)

    def _write_file(self, step: PlanStep, log: IO[str]) -> int:
        log.write(f"==> {step.label}\n    write {step.path}\n")
        log.flush()
        if not step.path:
            log.write("error: write_file step without a path\n")
            return 1
        try:
            target = Path(step.path)
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(step.content, encoding="utf-8")
        except OSError as exc:
            log.write(f"error: {exc}\n")
            return 1
        return 0

    def _run_command(self, step: PlanStep, log: IO[str]) -> int:
        cmd = list(step.command)
        if not cmd:
            log.write(f"==> {step.label}\nerror: empty command\n")
            return 1
        if step.needs_sudo and os.geteuid() != 0:
            cmd = ["sudo", *cmd]

        env = dict(self._base_env)
        env.update(step.env)

        log.write(f"==> {step.label}\n    $ {' '.join(cmd)}")
        if step.cwd:
            log.write(f"  (in {step.cwd})")
        log.write("\n")
        log.flush()

        self._commands_run += 1
        try:
            proc = subprocess.Popen(
                cmd,
                cwd=step.cwd,
                env=env,
                stdout=log,
                stderr=subprocess.STDOUT,
                # Own process group so a timeout can kill the whole tree.
                # Only for timed steps: sudo needs the terminal to prompt.
                start_new_session=step.timeout is not None,
            )
        except FileNotFoundError as exc:
            log.write(f"error: {exc}\n")
            return EXIT_NOT_FOUND
        except OSError as exc:
            log.write(f"error: {exc}\n")
            return 1

        try:
            returncode = proc.wait(timeout=step.timeout)
        except subprocess.TimeoutExpired:
            _kill_tree(proc)
            proc.wait()
            log.write(f"\nerror: timed out after {step.timeout}s\n")
            return EXIT_TIMEOUT

        log.flush()
        if returncode != 0:
            log.write(f"\n<== exit {returncode}\n")
        return returncode
