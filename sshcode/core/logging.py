"""
Logging and console output

Log records go to stderr through rich, interleaved with the output of the
ssh and rsync processes sshcode runs. User-facing status lines use the
stdout console.
"""
import logging
from typing import Optional
from pathlib import Path

from rich.logging import RichHandler
from rich.console import Console
from rich.traceback import install as install_traceback


# Resolved against sys.stdout/sys.stderr on every write
_stdout_console = Console()
_stderr_console = Console(stderr=True)

install_traceback(show_locals=False, width=120)

# Third-party loggers that are only useful when something is wrong.
# urllib3 logs every refused connection of the readiness probe at DEBUG.
NOISY_LOGGERS = ("urllib3", "paramiko")

LOG_FILE_FORMAT = "%(asctime)s %(levelname)-8s %(threadName)s %(name)s: %(message)s"


def setup_logging(
    level: str = "INFO",
    log_file: Optional[Path] = None,
    rich_tracebacks: bool = True,
) -> None:
    """
    Configure the root logger for a CLI run.

    Safe to call more than once; previous handlers are replaced.

    Args:
        level: Level name, unknown names fall back to INFO
        log_file: Also append records to this file
        rich_tracebacks: Render exception tracebacks with rich
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    # Messages carry paths, scripts and [v6] addresses, never rich markup
    console_handler = RichHandler(
        console=_stderr_console,
        show_path=log_level <= logging.DEBUG,
        rich_tracebacks=rich_tracebacks,
        markup=False,
    )
    console_handler.setLevel(log_level)
    root_logger.addHandler(console_handler)

    if log_file:
        log_file = log_file.expanduser()
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(log_level)
        file_handler.setFormatter(logging.Formatter(LOG_FILE_FORMAT))
        root_logger.addHandler(file_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))


def get_logger(name: str) -> logging.Logger:
    """Module logger, e.g. get_logger(__name__)"""
    return logging.getLogger(name)


def get_stdout_console() -> Console:
    """Console for status lines meant for the user"""
    return _stdout_console


def get_stderr_console() -> Console:
    """Console for errors"""
    return _stderr_console
