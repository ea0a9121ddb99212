"""
Settings and extensions sync through rsync
"""
import os
import platform
import time
from pathlib import Path
from typing import Mapping, Optional

from ...core.constants import (
    LOCAL_DIR_MODE,
    VSCODE_CONFIG_DIR_ENV,
    VSCODE_EXTENSIONS_DIR_ENV,
)
from ...core.exceptions import SyncError
from ...core.interfaces import CommandRunner, PathTranslator
from ...core.logging import get_logger
from ...core.telemetry import get_telemetry
from ...core.utils import ensure_dir, expand_path
from .commands import rsync_command
from .models import Dataset, SyncDirection, SYNC_ORDER

logger = get_logger(__name__)
telemetry = get_telemetry()


# ============================================================
# Local Directories
# ============================================================

def config_dir(system: Optional[str] = None, environ: Optional[Mapping[str, str]] = None) -> Path:
    """
    Local VS Code user settings directory.

    VSCODE_CONFIG_DIR overrides the platform default.

    Raises:
        SyncError: On an unsupported platform
    """
    environ = os.environ if environ is None else environ
    if environ.get(VSCODE_CONFIG_DIR_ENV):
        return expand_path(environ[VSCODE_CONFIG_DIR_ENV])

    system = (system or platform.system()).lower()
    if system in ("linux", "windows"):
        return expand_path("~/.config/Code/User")
    if system == "darwin":
        return expand_path("~/Library/Application Support/Code/User")
    raise SyncError(f"unsupported platform: {system}")


def extensions_dir(system: Optional[str] = None, environ: Optional[Mapping[str, str]] = None) -> Path:
    """
    Local VS Code extensions directory.

    VSCODE_EXTENSIONS_DIR overrides the platform default.

    Raises:
        SyncError: On an unsupported platform
    """
    environ = os.environ if environ is None else environ
    if environ.get(VSCODE_EXTENSIONS_DIR_ENV):
        return expand_path(environ[VSCODE_EXTENSIONS_DIR_ENV])

    system = (system or platform.system()).lower()
    if system in ("linux", "darwin", "windows"):
        return expand_path("~/.vscode/extensions")
    raise SyncError(f"unsupported platform: {system}")


# ============================================================
# Synchronizer
# ============================================================

class Synchronizer:
    """Mirrors the settings and extensions datasets to or from one host"""

    def __init__(
        self,
        runner: CommandRunner,
        host: str,
        ssh_flags: str,
        translator: Optional[PathTranslator] = None,
        system: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None,
    ):
        self.runner = runner
        self.host = host
        self.ssh_flags = ssh_flags
        self.translator = translator
        self.system = system
        self.environ = environ

    def local_dir(self, dataset: Dataset) -> Path:
        if dataset is Dataset.SETTINGS:
            return config_dir(self.system, self.environ)
        return extensions_dir(self.system, self.environ)

    def endpoints(self, dataset: Dataset, direction: SyncDirection) -> tuple[str, str]:
        """
        (source, destination) for a dataset and direction.

        The local side ends in "/" so rsync copies the directory contents.
        """
        local = self.local_dir(dataset)
        try:
            ensure_dir(local, LOCAL_DIR_MODE)
        except OSError as e:
            raise SyncError(f"failed to create {local}: {e}") from e

        local_str = str(local)
        if self.translator:
            local_str = self.translator.translate(local_str)
        src = local_str.rstrip("/") + "/"
        dest = f"{self.host}:{dataset.remote_dir}"

        if direction is SyncDirection.REVERSE:
            src, dest = dest, src
        return src, dest

    def sync(self, dataset: Dataset, direction: SyncDirection) -> None:
        """
        Mirror one dataset.

        Raises:
            SyncError: If rsync exits non-zero
        """
        src, dest = self.endpoints(dataset, direction)
        command = rsync_command(src, dest, self.ssh_flags, dataset.excludes)

        start = time.monotonic()
        result = self.runner.run(command)
        elapsed = time.monotonic() - start

        telemetry.record_event("session.sync", {
            "dataset": dataset.value,
            "direction": direction.value,
            "src": src,
            "dest": dest,
            "exit_code": result.exit_code,
        })
        if not result.success:
            raise SyncError(f"failed to rsync '{src}' to '{dest}': exit code {result.exit_code}")

        telemetry.record_metric("sync.duration", elapsed, {"dataset": dataset.value, "direction": direction.value})
        logger.info(f"synced {dataset.value} in {elapsed:.2f}s")

    def sync_all(self, direction: SyncDirection) -> None:
        """Sync both datasets: settings first going forward, extensions first going back"""
        for dataset in SYNC_ORDER[direction]:
            logger.info(f"syncing {dataset.value}" + (" back" if direction is SyncDirection.REVERSE else ""))
            try:
                self.sync(dataset, direction)
            except SyncError as e:
                suffix = " back" if direction is SyncDirection.REVERSE else ""
                raise SyncError(f"failed to sync {dataset.value}{suffix}: {e}") from e
