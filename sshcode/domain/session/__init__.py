"""
Session domain module
"""
from .models import (
    BindAddress,
    Dataset,
    MasterState,
    ResolvedHost,
    SessionOptions,
    SessionResult,
    SessionState,
    SyncDirection,
)
from .master import MasterConnection, check_ssh_directory
from .ports import random_port, parse_bind_addr
from .resolver import resolve_host
from .readiness import wait_ready
from .sync import Synchronizer
from .service import SessionService

__all__ = [
    "BindAddress",
    "Dataset",
    "MasterState",
    "ResolvedHost",
    "SessionOptions",
    "SessionResult",
    "SessionState",
    "SyncDirection",
    "MasterConnection",
    "check_ssh_directory",
    "random_port",
    "parse_bind_addr",
    "resolve_host",
    "wait_ready",
    "Synchronizer",
    "SessionService",
]
