"""
Session domain service - lifecycle controller
"""
import queue
import signal
import subprocess
import threading
import time
from contextlib import ExitStack
from typing import Callable, Dict, Optional

from ...core.constants import (
    CODE_SERVER_PATH,
    READY_TIMEOUT,
    SSH_CONTROL_PATH,
    SSH_DIRECTORY,
    TUNNEL_EXIT_GRACE,
)
from ...core.exceptions import MasterError, TunnelStartError
from ...core.interfaces import CommandRunner, PathTranslator
from ...core.logging import get_logger
from ...core.telemetry import get_telemetry
from .bootstrap import bootstrap
from .commands import join_flags, tunnel_command
from .master import MasterConnection, check_ssh_directory, control_socket_path
from .models import (
    BindAddress,
    SessionOptions,
    SessionResult,
    SessionState,
    SyncDirection,
)
from .ports import parse_bind_addr, parse_port, random_port
from .readiness import wait_ready
from .resolver import resolve_host
from .sync import Synchronizer
from .viewer import open_browser

logger = get_logger(__name__)
telemetry = get_telemetry()

# Events that end the running state
EVENT_EXITED = "exited"
EVENT_INTERRUPTED = "interrupted"


class SessionService:
    """
    Runs one code-server session end to end.

    Resolve host -> (ssh master) -> bootstrap -> forward sync -> tunnel ->
    wait ready -> browser -> run until the tunnel exits or the process is
    interrupted -> (reverse sync). The ssh master, if any, is released on
    every exit path.

    A service instance runs a single session.
    """

    def __init__(
        self,
        runner: CommandRunner,
        translator: Optional[PathTranslator] = None,
        ssh_directory: str = SSH_DIRECTORY,
        control_path: str = SSH_CONTROL_PATH,
        server_path: str = CODE_SERVER_PATH,
        ready_timeout: float = READY_TIMEOUT,
        tunnel_grace: float = TUNNEL_EXIT_GRACE,
        probe: Callable[..., int] = wait_ready,
        open_viewer: Callable[[str], bool] = open_browser,
        on_ready: Optional[Callable[[str], None]] = None,
        handle_signals: bool = True,
    ):
        """
        Initialize session service.

        Args:
            runner: External command runner
            translator: Local path translation for rsync
            ssh_directory: Directory checked before enabling connection reuse
            control_path: ControlPath template for the ssh master
            server_path: Remote code-server path
            ready_timeout: Seconds to wait for code-server to answer
            tunnel_grace: Seconds the tunnel gets to exit on shutdown before SIGTERM
            probe: Readiness probe (url, timeout=...)
            open_viewer: Browser launcher, must not raise
            on_ready: Callback once code-server answers (receives URL)
            handle_signals: Install SIGINT/SIGTERM handlers while running
        """
        self.runner = runner
        self.translator = translator
        self.ssh_directory = ssh_directory
        self.control_path = control_path
        self.server_path = server_path
        self.ready_timeout = ready_timeout
        self.tunnel_grace = tunnel_grace
        self.probe = probe
        self.open_viewer = open_viewer
        self.on_ready = on_ready
        self.handle_signals = handle_signals

        self.state: Optional[SessionState] = None
        self.states: list[SessionState] = []
        # put() is reentrant, so the signal handler may call it while get() waits
        self._events: "queue.SimpleQueue[str]" = queue.SimpleQueue()
        self._tunnel_exited = threading.Event()
        self._result: Optional[SessionResult] = None

    # ------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------

    def interrupt(self) -> None:
        """Ask a running session to shut down (safe from any thread)"""
        self._events.put(EVENT_INTERRUPTED)

    def run(self, options: SessionOptions) -> SessionResult:
        """
        Run a session.

        Returns:
            SessionResult

        Raises:
            SshcodeError: On any fatal step; cleanup has already run
        """
        try:
            with ExitStack() as stack:
                self._run(options, stack)
        except BaseException:
            self._set_state(SessionState.ABORTED)
            raise

        self._set_state(SessionState.DONE)
        return self._result

    # ------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------

    def _run(self, options: SessionOptions, stack: ExitStack) -> None:
        self._set_state(SessionState.RESOLVING)
        resolved = resolve_host(options.host, self.runner)
        host = resolved.host
        ssh_flags = join_flags(resolved.extra_flags, options.ssh_flags)

        bind_addr = parse_bind_addr(options.bind_addr)
        remote_port = parse_port(options.remote_port) if options.remote_port else random_port()
        self._result = SessionResult(host=host, bind_addr=bind_addr, remote_port=remote_port)

        reuse = check_ssh_directory(self.ssh_directory, options.reuse_connection)
        if reuse:
            ssh_flags, reuse = self._start_master(ssh_flags, host, stack)
        self._result.reused_connection = reuse

        self._set_state(SessionState.BOOTSTRAPPING)
        bootstrap(
            self.runner,
            ssh_flags,
            host,
            upload_path=options.upload_code_server,
            remote_path=self.server_path,
            translator=self.translator,
        )

        synchronizer = Synchronizer(self.runner, host, ssh_flags, translator=self.translator)
        if not options.skip_sync:
            self._set_state(SessionState.SYNCING_FORWARD)
            synchronizer.sync_all(SyncDirection.FORWARD)

        self._set_state(SessionState.TUNNELING)
        process = self._start_tunnel(ssh_flags, host, bind_addr, remote_port, options.remote_dir)
        stack.callback(self._stop_tunnel, process)

        self._set_state(SessionState.PROBING_READY)
        start = time.monotonic()
        self.probe(bind_addr.url, timeout=self.ready_timeout)
        telemetry.record_metric("ready.duration", time.monotonic() - start)

        if self.on_ready:
            self.on_ready(bind_addr.url)
        if not options.no_open:
            self.open_viewer(bind_addr.url)

        event = self._wait_for_shutdown()
        self._result.interrupted = event == EVENT_INTERRUPTED

        self._set_state(SessionState.SHUTTING_DOWN)
        logger.info("shutting down")
        self._stop_tunnel(process)
        self._result.tunnel_exit_code = process.poll()

        if options.sync_back and not options.skip_sync:
            self._set_state(SessionState.SYNCING_REVERSE)
            logger.info("synchronizing VS Code back to local")
            synchronizer.sync_all(SyncDirection.REVERSE)
            self._result.synced_back = True

    def _start_master(self, ssh_flags: str, host: str, stack: ExitStack) -> tuple[str, bool]:
        """
        Start the ssh master. Failure only disables connection reuse.

        Returns:
            (ssh flags to use, whether reuse is active)
        """
        logger.info("starting SSH master connection...")
        socket_path = control_socket_path(self.control_path, host)
        if socket_path:
            logger.debug(f"control socket: {socket_path}")

        master = stack.enter_context(MasterConnection(self.runner, ssh_flags, self.control_path, host))
        try:
            return master.start(), True
        except MasterError as e:
            logger.error(f"failed to start SSH master connection: {e}")
            return ssh_flags, False

    def _start_tunnel(
        self,
        ssh_flags: str,
        host: str,
        bind_addr: BindAddress,
        remote_port: int,
        remote_dir: str,
    ) -> subprocess.Popen:
        logger.info("starting code-server...")
        logger.info(f"Tunneling remote port {remote_port} to {bind_addr}")

        command = tunnel_command(ssh_flags, host, bind_addr, remote_port, remote_dir, self.server_path)
        try:
            process = self.runner.start(command)
        except OSError as e:
            raise TunnelStartError(f"failed to start code-server:\n---ssh cmd---\n{command.display()}: {e}") from e

        watcher = threading.Thread(
            target=self._watch_tunnel,
            args=(process,),
            daemon=True,
            name="tunnel-watcher",
        )
        watcher.start()
        return process

    def _watch_tunnel(self, process: subprocess.Popen) -> None:
        try:
            code = process.wait()
            if code:
                logger.warning(f"code-server tunnel exited with code {code}")
        finally:
            self._tunnel_exited.set()
            self._events.put(EVENT_EXITED)

    def _stop_tunnel(self, process: subprocess.Popen) -> None:
        """Give the tunnel a grace period to exit, then terminate it"""
        if self._tunnel_exited.wait(self.tunnel_grace):
            return

        logger.debug("tunnel still running, sending SIGTERM")
        try:
            process.terminate()
        except OSError as e:
            logger.debug(f"failed to terminate tunnel: {e}")
        if self._tunnel_exited.wait(self.tunnel_grace):
            return

        logger.warning("tunnel ignored SIGTERM, killing it")
        try:
            process.kill()
        except OSError as e:
            logger.error(f"failed to kill tunnel process: {e}")
        self._tunnel_exited.wait(self.tunnel_grace)

    def _wait_for_shutdown(self) -> str:
        """Enter the running state and block until the tunnel exits or an interrupt arrives; first one wins"""
        previous = self._install_signal_handlers()
        try:
            self._set_state(SessionState.RUNNING)
            while True:
                try:
                    event = self._events.get(timeout=0.5)
                except queue.Empty:
                    continue
                logger.debug(f"running state ended: {event}")
                return event
        finally:
            for sig, handler in previous.items():
                signal.signal(sig, handler)

    def _install_signal_handlers(self) -> Dict[int, object]:
        # signal.signal only works on the main thread
        if not self.handle_signals or threading.current_thread() is not threading.main_thread():
            return {}

        previous = {}
        for sig in (signal.SIGINT, signal.SIGTERM):
            previous[sig] = signal.signal(sig, self._on_signal)
        return previous

    def _on_signal(self, signum, frame) -> None:
        self.interrupt()

    def _set_state(self, state: SessionState) -> None:
        if self.state is not None:
            logger.debug(f"session: {self.state.value} -> {state.value}")
        self.state = state
        self.states.append(state)
        telemetry.record_event("session.state", {"state": state.value})
