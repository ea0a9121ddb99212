"""
sshcode - run code-server on a remote host over SSH

Provisions code-server on the remote host, tunnels a local port to it,
opens a browser and keeps VS Code settings and extensions in sync:
- Optional SSH master connection so authentication happens once
- Upload of a local code-server binary, or download of the latest release
- rsync of settings and extensions before and (optionally) after the session
"""

__version__ = "0.1.0"

from .core import BuildInfo, get_telemetry
from .domain.session import (
    SessionOptions,
    SessionResult,
    SessionService,
    SessionState,
)

__all__ = [
    "__version__",
    "BuildInfo",
    "get_telemetry",
    "SessionOptions",
    "SessionResult",
    "SessionService",
    "SessionState",
]
