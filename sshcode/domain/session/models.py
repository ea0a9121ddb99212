"""
Session domain models
"""
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Tuple

from ...core.constants import (
    REMOTE_SETTINGS_DIR,
    REMOTE_EXTENSIONS_DIR,
    SETTINGS_EXCLUDES,
)


@dataclass(frozen=True)
class BindAddress:
    """Local address the tunnel listens on"""
    host: str
    port: int

    def __str__(self) -> str:
        if ":" in self.host:
            return f"[{self.host}]:{self.port}"
        return f"{self.host}:{self.port}"

    @property
    def url(self) -> str:
        return f"http://{self}"


@dataclass(frozen=True)
class ResolvedHost:
    """Connectable ssh target plus flags contributed by host resolution"""
    host: str
    extra_flags: str = ""


@dataclass(frozen=True)
class SessionOptions:
    """
    Options for one session.

    Attributes:
        host: Host token as given by the user (may be "gcp:<instance>")
        remote_dir: Remote working directory for code-server
        skip_sync: Skip settings/extensions sync in both directions
        sync_back: Sync remote state back to local on exit
        no_open: Don't launch a browser
        reuse_connection: Start an SSH master and multiplex through it
        bind_addr: Local bind address, "[host]:[port]"; blanks are filled in
        remote_port: Remote code-server port; random if empty
        ssh_flags: Extra ssh flags, shell syntax
        upload_code_server: Local code-server binary to upload instead of downloading
    """
    host: str
    remote_dir: str = "~"
    skip_sync: bool = False
    sync_back: bool = False
    no_open: bool = False
    reuse_connection: bool = True
    bind_addr: str = ""
    remote_port: str = ""
    ssh_flags: str = ""
    upload_code_server: str = ""

    def with_changes(self, **changes) -> "SessionOptions":
        """Return a copy with the given fields replaced"""
        return replace(self, **changes)


class SessionState(str, Enum):
    """Lifecycle controller states"""
    RESOLVING = "resolving"
    BOOTSTRAPPING = "bootstrapping"
    SYNCING_FORWARD = "syncing_forward"
    TUNNELING = "tunneling"
    PROBING_READY = "probing_ready"
    RUNNING = "running"
    SHUTTING_DOWN = "shutting_down"
    SYNCING_REVERSE = "syncing_reverse"
    DONE = "done"
    ABORTED = "aborted"


class MasterState(str, Enum):
    """SSH master connection states"""
    ABSENT = "absent"
    STARTING = "starting"
    READY = "ready"
    CLOSING = "closing"
    CLOSED = "closed"


class SyncDirection(str, Enum):
    """forward: local -> remote, reverse: remote -> local"""
    FORWARD = "forward"
    REVERSE = "reverse"


class Dataset(str, Enum):
    """Independently synced state trees"""
    SETTINGS = "settings"
    EXTENSIONS = "extensions"

    @property
    def remote_dir(self) -> str:
        if self is Dataset.SETTINGS:
            return REMOTE_SETTINGS_DIR
        return REMOTE_EXTENSIONS_DIR

    @property
    def excludes(self) -> Tuple[str, ...]:
        if self is Dataset.SETTINGS:
            return SETTINGS_EXCLUDES
        return ()


# Order datasets are synced in, per direction
SYNC_ORDER = {
    SyncDirection.FORWARD: (Dataset.SETTINGS, Dataset.EXTENSIONS),
    SyncDirection.REVERSE: (Dataset.EXTENSIONS, Dataset.SETTINGS),
}


@dataclass
class SessionResult:
    """Outcome of a session run"""
    host: str
    bind_addr: BindAddress
    remote_port: int
    interrupted: bool = False
    reused_connection: bool = False
    tunnel_exit_code: Optional[int] = None
    synced_back: bool = False
