"""
Logging configuration for the eda-setup CLI.

The click group calls ``configure_logging`` once per process with its
flags. Every module logs through ``logging.getLogger(__name__)``.

Console level, highest precedence first::

    --debug  >  --verbose  >  --quiet  >  EDA_SETUP_LOG_LEVEL  >  WARNING

``EDA_SETUP_LOG_FILE`` adds a file handler, at ``EDA_SETUP_LOG_FILE_LEVEL``
if set, else at the console level. Build output never goes through
logging: it lands in ``<install root>/logs/<stage>.log``.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Mapping

ENV_LEVEL = "EDA_SETUP_LOG_LEVEL"
ENV_FILE = "EDA_SETUP_LOG_FILE"
ENV_FILE_LEVEL = "EDA_SETUP_LOG_FILE_LEVEL"

DEFAULT_LEVEL = logging.WARNING

# Console format per level; the first threshold the level reaches wins
_CONSOLE_FORMATS: tuple[tuple[int, str, str | None], ...] = (
    (logging.DEBUG, "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d  %(message)s", "%H:%M:%S"),
    (logging.INFO, "%(asctime)s [%(name)s] %(message)s", "%H:%M:%S"),
)
_CONSOLE_DEFAULT = "%(levelname)s: %(message)s"

_FILE_FORMAT = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d  %(message)s"
_FILE_DATEFMT = "%Y-%m-%d %H:%M:%S"


def parse_level(level: str | int | None, default: int = DEFAULT_LEVEL) -> int:
    """Numeric level for a name like ``"info"``; ``default`` if unknown."""
    if isinstance(level, int):
        return level
    if not level:
        return default
    numeric = logging.getLevelName(level.strip().upper())
    return numeric if isinstance(numeric, int) else default


def resolve_level(
    *,
    debug: bool = False,
    verbose: bool = False,
    quiet: bool = False,
    environ: Mapping[str, str] | None = None,
) -> int:
    """Console level from the CLI flags, falling back to the environment."""
    if debug:
        return logging.DEBUG
    if verbose:
        return logging.INFO
    if quiet:
        return logging.ERROR
    env = os.environ if environ is None else environ
    return parse_level(env.get(ENV_LEVEL))


def _console_formatter(level: int) -> logging.Formatter:
    for threshold, fmt, datefmt in _CONSOLE_FORMATS:
        if level <= threshold:
            return logging.Formatter(fmt, datefmt=datefmt)
    return logging.Formatter(_CONSOLE_DEFAULT)


def setup_logging(
    level: str | int = DEFAULT_LEVEL,
    log_file: str | os.PathLike | None = None,
    log_file_level: str | int | None = None,
) -> None:
    """Replace the root logger's handlers with a stderr (and file) handler.

    Calling it again reconfigures from scratch, so tests and repeated
    CLI invocations in one process never stack handlers.
    """
    console_level = parse_level(level)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(_console_formatter(console_level))

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
    root.addHandler(console)
    root_level = console_level

    if log_file:
        file_level = parse_level(log_file_level, default=console_level)
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(file_level)
        fh.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt=_FILE_DATEFMT))
        root.addHandler(fh)
        root_level = min(root_level, file_level)

    root.setLevel(root_level)


def configure_logging(
    *,
    debug: bool = False,
    verbose: bool = False,
    quiet: bool = False,
    environ: Mapping[str, str] | None = None,
) -> int:
    """Set up logging for one CLI invocation. Returns the console level."""
    env = os.environ if environ is None else environ
    level = resolve_level(debug=debug, verbose=verbose, quiet=quiet, environ=env)
    setup_logging(level, log_file=env.get(ENV_FILE), log_file_level=env.get(ENV_FILE_LEVEL))
    return level
