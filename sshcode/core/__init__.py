"""
Core infrastructure layer
"""
from .constants import *
from .exceptions import *
from .build_info import BuildInfo
from .command import Command, CommandResult
from .logging import setup_logging, get_logger, get_stdout_console, get_stderr_console
from .interfaces import CommandRunner, PathTranslator
from .telemetry import Telemetry, get_telemetry
from .utils import (
    expand_path,
    ensure_dir,
    validate_is_file,
    split_user_host,
    load_ssh_config,
)

__all__ = [
    "BuildInfo",
    "Command",
    "CommandResult",
    "setup_logging",
    "get_logger",
    "get_stdout_console",
    "get_stderr_console",
    "CommandRunner",
    "PathTranslator",
    "Telemetry",
    "get_telemetry",
    "expand_path",
    "ensure_dir",
    "validate_is_file",
    "split_user_host",
    "load_ssh_config",
]
