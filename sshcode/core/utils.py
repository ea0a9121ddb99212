"""
Core utility functions
"""
import os
import getpass
from pathlib import Path
from typing import Dict, Any

import paramiko

from .constants import SSH_CONFIG_PATH, DEFAULT_SSH_PORT
from .exceptions import ConfigError, NotAFileError


# ============================================================
# Local Path Helpers
# ============================================================

def expand_path(path: str) -> Path:
    """
    Expand environment variables and a leading ~ in a local path.
    
    A tilde in the middle of a file name is left alone.
    """
    return Path(os.path.expandvars(path)).expanduser()


def ensure_dir(path: Path, mode: int = 0o750) -> None:
    """Create a directory (and parents) if it does not exist"""
    if not path.exists():
        path.mkdir(mode=mode, parents=True, exist_ok=True)


def validate_is_file(path: Path) -> None:
    """
    Ensure path exists and is a regular file.
    
    Raises:
        FileNotFoundError: If path does not exist
        NotAFileError: If path is a directory or another non-regular file
    """
    if not path.exists():
        raise FileNotFoundError(f"No such file: {path}")
    if not path.is_file():
        raise NotAFileError(f"{path} is not a regular file")


# ============================================================
# SSH Config Management
# ============================================================

def split_user_host(target: str) -> tuple[str | None, str]:
    """Split 'user@host' into (user, host)"""
    if "@" in target:
        user, host = target.rsplit("@", 1)
        return user, host
    return None, target


def load_ssh_config(target: str) -> Dict[str, Any]:
    """
    Load the effective connection parameters for a target from ~/.ssh/config.
    
    Args:
        target: Host alias or 'user@host'
    
    Returns:
        Dictionary containing host, user, port
    
    Raises:
        ConfigError: If ~/.ssh/config cannot be parsed
    """
    user, hostname = split_user_host(target)
    
    entry: Dict[str, Any] = {}
    config_path = Path(SSH_CONFIG_PATH).expanduser()
    if config_path.exists():
        try:
            ssh_config = paramiko.SSHConfig.from_path(str(config_path))
        except Exception as e:
            raise ConfigError(f"Failed to parse {SSH_CONFIG_PATH}: {e}") from e
        entry = ssh_config.lookup(hostname)
    
    return {
        "host": entry.get("hostname", hostname),
        "user": user or entry.get("user") or getpass.getuser(),
        "port": int(entry.get("port", DEFAULT_SSH_PORT)),
    }
