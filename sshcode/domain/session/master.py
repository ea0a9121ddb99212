"""
SSH master connection (connection multiplexing)

A master ssh process owns one authenticated connection; every later ssh and
rsync invocation in the session passes the same ControlPath and rides on it,
so the user is only asked for a password once.
"""
import os
import signal
import stat
import subprocess
import threading
import time
from typing import Callable, Optional

from ...core.constants import (
    MASTER_CHECK_TRIES,
    MASTER_CHECK_INTERVAL,
    MASTER_STOP_TIMEOUT,
    SSH_DIRECTORY_UNSAFE_MODE_MASK,
)
from ...core.exceptions import ConfigError, MasterError, MasterNotRunningError, MasterNotReadyError
from ...core.interfaces import CommandRunner
from ...core.logging import get_logger
from ...core.telemetry import get_telemetry
from ...core.utils import expand_path, load_ssh_config
from .commands import master_command, master_check_command, with_control_path
from .models import MasterState

logger = get_logger(__name__)
telemetry = get_telemetry()


def check_ssh_directory(ssh_directory: str, reuse_connection: bool) -> bool:
    """
    Sanity and safety checks on the ssh directory.

    Control sockets live in the ssh directory, so connection reuse is
    turned off when it is missing or not a directory. Unsafe permissions
    only produce a warning.

    Returns:
        New value for reuse_connection
    """
    try:
        info = os.lstat(expand_path(ssh_directory))
    except OSError as e:
        if reuse_connection:
            logger.info(f"failed to stat {ssh_directory} directory, disabling connection reuse feature: {e}")
        return False

    if not stat.S_ISDIR(info.st_mode):
        if reuse_connection:
            logger.info(f"{ssh_directory} is not a directory, disabling connection reuse feature")
        else:
            logger.warning(f"{ssh_directory} is not a directory")
        reuse_connection = False

    if stat.S_IMODE(info.st_mode) & SSH_DIRECTORY_UNSAFE_MODE_MASK:
        logger.warning(
            f"the {ssh_directory} directory has unsafe permissions, they should only be writable by "
            "the owner (and files inside should be set to 0600)"
        )

    return reuse_connection


def control_socket_path(template: str, target: str) -> Optional[str]:
    """
    Expand %h, %p and %r in a ControlPath template the way ssh would.

    Only used for diagnostics; returns None if ~/.ssh/config can't be read.
    """
    try:
        params = load_ssh_config(target)
    except ConfigError as e:
        logger.debug(f"cannot expand control path: {e}")
        return None

    expanded = (
        template.replace("%%", "\0")
        .replace("%h", str(params["host"]))
        .replace("%p", str(params["port"]))
        .replace("%r", str(params["user"]))
        .replace("\0", "%")
    )
    return str(expand_path(expanded))


class MasterConnection:
    """
    Handle for one background `ssh -MN` process.

    States go absent -> starting -> ready -> closing -> closed. close() may
    be called any number of times, from any exit path; only the first call
    does anything. The handle is also a context manager.
    """

    def __init__(
        self,
        runner: CommandRunner,
        ssh_flags: str,
        control_path: str,
        host: str,
        check_tries: int = MASTER_CHECK_TRIES,
        check_interval: float = MASTER_CHECK_INTERVAL,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.runner = runner
        self.host = host
        self.control_path = control_path
        self.flags = with_control_path(ssh_flags, control_path)
        self.check_tries = check_tries
        self.check_interval = check_interval
        self._sleep = sleep

        self.state = MasterState.ABSENT
        self._process: Optional[subprocess.Popen] = None
        self._exited = threading.Event()
        self._close_lock = threading.Lock()
        self._closed = False

    def __enter__(self) -> "MasterConnection":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def is_alive(self) -> bool:
        return self._process is not None and not self._exited.is_set()

    def start(self) -> str:
        """
        Start the master and wait until it accepts `-O check`.

        Returns:
            ssh flags for child processes (given flags + ControlPath)

        Raises:
            MasterNotRunningError: If the master could not start or exited early
            MasterNotReadyError: If it was not ready after all checks
        """
        self._set_state(MasterState.STARTING)

        command = master_command(self.flags, self.host)
        try:
            self._process = self.runner.start(command)
        except OSError as e:
            self.close()
            raise MasterNotRunningError(f"failed to start SSH master '{command.display()}': {e}") from e

        # Reap the master so it never lingers as a zombie if it dies first
        reaper = threading.Thread(target=self._reap, daemon=True, name="ssh-master-reaper")
        reaper.start()

        try:
            self._wait_ready()
        except MasterError:
            self.close()
            raise

        self._set_state(MasterState.READY)
        return self.flags

    def _reap(self) -> None:
        try:
            self._process.wait()
        finally:
            self._exited.set()

    def _wait_ready(self) -> None:
        check = master_check_command(self.flags, self.host)
        for _ in range(self.check_tries):
            if not self.is_alive:
                raise MasterNotRunningError("SSH master process is not running")

            if self.runner.run(check, capture=True).success:
                return
            self._sleep(self.check_interval)

        raise MasterNotReadyError(f"SSH master wasn't ready on time: max number of tries exceeded: {self.check_tries}")

    def close(self) -> None:
        """Gracefully stop the master (SIGTERM) if it is still running"""
        with self._close_lock:
            if self._closed:
                return
            self._closed = True

        if self.state is MasterState.ABSENT:
            self._set_state(MasterState.CLOSED)
            return

        self._set_state(MasterState.CLOSING)
        if self.is_alive:
            try:
                self._process.send_signal(signal.SIGTERM)
            except OSError as e:
                logger.error(f"failed to send SIGTERM to SSH master process: {e}")
            self._exited.wait(MASTER_STOP_TIMEOUT)
        self._set_state(MasterState.CLOSED)

    def _set_state(self, state: MasterState) -> None:
        logger.debug(f"ssh master: {self.state.value} -> {state.value}")
        self.state = state
        telemetry.record_event("session.master", {"host": self.host, "state": state.value})
