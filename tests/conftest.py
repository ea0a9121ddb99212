"""Pytest configuration and fixtures for sshcode tests.

External tools (ssh, rsync, gcloud) are never executed: tests use
FakeRunner, which records every Command and returns scripted results.
"""

import os
import signal
import socket
import subprocess
import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest

from sshcode.core.command import Command, CommandResult
from sshcode.core.interfaces import CommandRunner
from sshcode.core.telemetry import get_telemetry
from sshcode.domain.session.models import SessionState


class FakeProcess:
    """Stand-in for subprocess.Popen that exits when told to (or when signalled)."""

    _next_pid = 40000

    def __init__(self, command: Command, exit_code=None, exit_on_signal=True):
        self.command = command
        self.pid = FakeProcess._next_pid
        FakeProcess._next_pid += 1
        self.returncode = None
        self.signals = []
        self.exit_on_signal = exit_on_signal
        self._done = threading.Event()
        if exit_code is not None:
            self.finish(exit_code)

    def finish(self, code=0):
        if self.returncode is None:
            self.returncode = code
        self._done.set()

    def poll(self):
        return self.returncode

    def wait(self, timeout=None):
        if not self._done.wait(timeout):
            raise subprocess.TimeoutExpired(self.command.argv, timeout)
        return self.returncode

    def send_signal(self, sig):
        self.signals.append(sig)
        if self.exit_on_signal:
            self.finish(-sig)

    def terminate(self):
        self.send_signal(signal.SIGTERM)

    def kill(self):
        self.signals.append(signal.SIGKILL)
        self.finish(-signal.SIGKILL)


class FakeRunner(CommandRunner):
    """Records commands; results come from registered handlers (default: success)."""

    def __init__(self):
        self.calls = []
        self.processes = []
        self._run_handlers = []
        self._start_handlers = []
        self._lock = threading.Lock()

    def on_run(self, predicate, result):
        """result: CommandResult, or callable(command) -> CommandResult"""
        self._run_handlers.append((predicate, result))

    def on_start(self, predicate, factory):
        """factory: callable(command) -> process; may raise"""
        self._start_handlers.append((predicate, factory))

    def run(self, command, capture=False):
        with self._lock:
            self.calls.append(("run", command))
        for predicate, result in reversed(self._run_handlers):
            if predicate(command):
                return result(command) if callable(result) else result
        return CommandResult(exit_code=0)

    def start(self, command):
        with self._lock:
            self.calls.append(("start", command))
        process = None
        for predicate, factory in reversed(self._start_handlers):
            if predicate(command):
                process = factory(command)
                break
        if process is None:
            process = FakeProcess(command)
        self.processes.append(process)
        return process

    def commands(self, program=None, kind=None):
        return [
            c for k, c in self.calls
            if (program is None or c.program == program) and (kind is None or k == kind)
        ]


def is_master(command):
    return command.program == "ssh" and "-MNq" in command.args


def is_master_check(command):
    return command.program == "ssh" and "check" in command.args and "-O" in command.args


def is_tunnel(command):
    return command.program == "ssh" and "-L" in command.args


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Point HOME (and so ~/.ssh, ~/.vscode, ...) at a temporary directory."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    for name in ("VSCODE_CONFIG_DIR", "VSCODE_EXTENSIONS_DIR"):
        monkeypatch.delenv(name, raising=False)
    for name in list(os.environ):
        if name.startswith("SSHCODE_"):
            monkeypatch.delenv(name, raising=False)
    return home


@pytest.fixture(autouse=True)
def clear_telemetry():
    get_telemetry().clear()
    yield
    get_telemetry().clear()


@pytest.fixture
def runner():
    return FakeRunner()


@pytest.fixture
def ssh_dir(isolated_home):
    path = isolated_home / ".ssh"
    path.mkdir(mode=0o700)
    path.chmod(0o700)
    return path


@pytest.fixture
def vscode_dirs(tmp_path, monkeypatch):
    settings = tmp_path / "vscode" / "User"
    extensions = tmp_path / "vscode" / "extensions"
    monkeypatch.setenv("VSCODE_CONFIG_DIR", str(settings))
    monkeypatch.setenv("VSCODE_EXTENSIONS_DIR", str(extensions))
    return settings, extensions


class _OkHandler(BaseHTTPRequestHandler):
    status = 200

    def do_GET(self):
        self.send_response(self.status)
        self.send_header("Content-Length", "2")
        self.end_headers()
        self.wfile.write(b"ok")

    def log_message(self, format, *args):
        pass


def start_http_stub(port=0, status=200):
    handler = type("StubHandler", (_OkHandler,), {"status": status})
    server = ThreadingHTTPServer(("127.0.0.1", port), handler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    return server


@pytest.fixture
def http_stub():
    server = start_http_stub()
    yield server
    server.shutdown()
    server.server_close()


def free_port():
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()
    return port


def signal_when_running(service, signum, timeout=5.0):
    """
    Send signum to this process once service is running.

    Returns the sender thread; its `installed` attribute holds the handler
    seen for signum at the moment the signal was sent. If the session never
    gets there, it is interrupted directly instead so the test can't hang.
    """
    def send():
        deadline = time.monotonic() + timeout
        while service.state is not SessionState.RUNNING:
            if time.monotonic() > deadline:
                service.interrupt()
                return
            time.sleep(0.01)
        sender.installed = signal.getsignal(signum)
        os.kill(os.getpid(), signum)

    sender = threading.Thread(target=send, daemon=True, name="signal-sender")
    sender.installed = None
    sender.start()
    return sender
