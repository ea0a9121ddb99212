"""Tests for settings and extensions synchronization."""

import pytest

from sshcode.core.command import CommandResult
from sshcode.core.exceptions import SyncError
from sshcode.core.telemetry import get_telemetry
from sshcode.domain.session.models import Dataset, SyncDirection
from sshcode.domain.session.sync import Synchronizer, config_dir, extensions_dir


class TestLocalDirectories:
    def test_env_override(self):
        env = {"VSCODE_CONFIG_DIR": "/tmp/conf", "VSCODE_EXTENSIONS_DIR": "/tmp/ext"}
        assert str(config_dir("linux", env)) == "/tmp/conf"
        assert str(extensions_dir("linux", env)) == "/tmp/ext"

    @pytest.mark.parametrize("system,suffix", [
        ("Linux", ".config/Code/User"),
        ("Windows", ".config/Code/User"),
        ("Darwin", "Library/Application Support/Code/User"),
    ])
    def test_config_dir_defaults(self, isolated_home, system, suffix):
        assert config_dir(system, {}) == isolated_home / suffix

    def test_extensions_dir_default(self, isolated_home):
        assert extensions_dir("darwin", {}) == isolated_home / ".vscode" / "extensions"

    def test_unsupported_platform(self):
        with pytest.raises(SyncError, match="unsupported platform"):
            config_dir("plan9", {})
        with pytest.raises(SyncError, match="unsupported platform"):
            extensions_dir("plan9", {})


class TestSynchronizer:
    def test_forward_endpoints(self, runner, vscode_dirs):
        settings, _ = vscode_dirs
        sync = Synchronizer(runner, "dev", "")

        src, dest = sync.endpoints(Dataset.SETTINGS, SyncDirection.FORWARD)

        assert src == f"{settings}/"
        assert dest == "dev:~/.local/share/code-server/User/"
        assert settings.is_dir()

    def test_reverse_endpoints_are_swapped(self, runner, vscode_dirs):
        _, extensions = vscode_dirs
        sync = Synchronizer(runner, "dev", "")

        src, dest = sync.endpoints(Dataset.EXTENSIONS, SyncDirection.REVERSE)

        assert src == "dev:~/.local/share/code-server/extensions/"
        assert dest == f"{extensions}/"

    def test_settings_excludes(self, runner, vscode_dirs):
        Synchronizer(runner, "dev", "-p 2222").sync(Dataset.SETTINGS, SyncDirection.FORWARD)

        args = runner.commands("rsync")[0].args
        for name in ("workspaceStorage", "logs", "CachedData"):
            assert f"--exclude={name}" in args
        assert args[args.index("-e") + 1] == "ssh -p 2222"

    def test_extensions_have_no_excludes(self, runner, vscode_dirs):
        Synchronizer(runner, "dev", "").sync(Dataset.EXTENSIONS, SyncDirection.FORWARD)
        args = runner.commands("rsync")[0].args
        assert not any(a.startswith("--exclude") for a in args)
        assert "--delete" in args

    def test_failure(self, runner, vscode_dirs):
        settings, _ = vscode_dirs
        runner.on_run(lambda c: c.program == "rsync", CommandResult(exit_code=12))

        with pytest.raises(SyncError) as exc_info:
            Synchronizer(runner, "dev", "").sync(Dataset.SETTINGS, SyncDirection.FORWARD)

        message = str(exc_info.value)
        assert f"'{settings}/'" in message
        assert "dev:~/.local/share/code-server/User/" in message
        assert "exit code 12" in message

    def test_forward_order(self, runner, vscode_dirs):
        Synchronizer(runner, "dev", "").sync_all(SyncDirection.FORWARD)

        dests = [c.args[-1] for c in runner.commands("rsync")]
        assert dests == [
            "dev:~/.local/share/code-server/User/",
            "dev:~/.local/share/code-server/extensions/",
        ]

    def test_reverse_order(self, runner, vscode_dirs):
        settings, extensions = vscode_dirs
        Synchronizer(runner, "dev", "").sync_all(SyncDirection.REVERSE)

        pairs = [tuple(c.args[-2:]) for c in runner.commands("rsync")]
        assert pairs == [
            ("dev:~/.local/share/code-server/extensions/", f"{extensions}/"),
            ("dev:~/.local/share/code-server/User/", f"{settings}/"),
        ]

    def test_sync_all_stops_on_first_failure(self, runner, vscode_dirs):
        runner.on_run(lambda c: c.program == "rsync", CommandResult(exit_code=1))

        with pytest.raises(SyncError, match="failed to sync extensions back"):
            Synchronizer(runner, "dev", "").sync_all(SyncDirection.REVERSE)
        assert len(runner.commands("rsync")) == 1

    def test_records_telemetry(self, runner, vscode_dirs):
        Synchronizer(runner, "dev", "").sync(Dataset.SETTINGS, SyncDirection.FORWARD)

        events = get_telemetry().get_events("session.sync")
        assert len(events) == 1
        assert events[0].metadata["dataset"] == "settings"
        assert events[0].metadata["direction"] == "forward"
        assert events[0].metadata["exit_code"] == 0
        assert [m.name for m in get_telemetry().get_metrics()] == ["sync.duration"]

    def test_uses_translator(self, runner, vscode_dirs):
        class Prefix:
            def translate(self, path):
                return "/c" + path

        src, _ = Synchronizer(runner, "dev", "", translator=Prefix()).endpoints(
            Dataset.SETTINGS, SyncDirection.FORWARD,
        )
        assert src.startswith("/c/")
