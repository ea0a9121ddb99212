"""Tests for ssh/rsync/gcloud command builders."""

import pytest

from sshcode.core.command import Command, CommandResult
from sshcode.core.exceptions import ConfigError
from sshcode.domain.session.commands import (
    bootstrap_command,
    download_script,
    join_flags,
    master_check_command,
    master_command,
    remote_path_arg,
    rsync_command,
    split_flags,
    tunnel_command,
    with_control_path,
)
from sshcode.domain.session.models import BindAddress


class TestCommandValue:
    def test_argv_and_display(self):
        command = Command("ssh", ("-p", "2222", "my host"))
        assert command.argv == ["ssh", "-p", "2222", "my host"]
        assert command.display() == "ssh -p 2222 'my host'"
        assert str(command) == command.display()

    def test_result_success_follows_exit_code(self):
        assert CommandResult(exit_code=0).success
        assert not CommandResult(exit_code=3, stderr="boom").success
        assert CommandResult(exit_code=1, stdout="a", stderr="b").output == "ab"


class TestFlags:
    def test_split_respects_quotes(self):
        assert split_flags('-o "ControlPath=~/.ssh/x y" -p 22') == ["-o", "ControlPath=~/.ssh/x y", "-p", "22"]

    def test_split_empty(self):
        assert split_flags("") == []

    def test_split_unbalanced_quote(self):
        with pytest.raises(ConfigError):
            split_flags('-o "broken')

    def test_join_drops_blanks(self):
        assert join_flags("", " -p 22 ", "", "-A") == "-p 22 -A"

    def test_with_control_path(self):
        flags = with_control_path("-p 22", "~/.ssh/control-%h-%p-%r")
        assert split_flags(flags) == ["-p", "22", "-o", "ControlPath=~/.ssh/control-%h-%p-%r"]


class TestRemotePathArg:
    @pytest.mark.parametrize("path,expected", [
        ("~", "~"),
        ("~/project", "~/project"),
        ("~/my project", "~/'my project'"),
        ("/srv/app", "/srv/app"),
        ("/srv/a b", "'/srv/a b'"),
    ])
    def test_quoting(self, path, expected):
        assert remote_path_arg(path) == expected


class TestSshCommands:
    def test_master(self):
        command = master_command("-p 2222", "dev")
        assert command.argv == ["ssh", "-MNq", "-p", "2222", "dev"]

    def test_master_check(self):
        command = master_check_command("", "dev")
        assert command.argv == ["ssh", "-O", "check", "dev"]

    def test_bootstrap_pipes_script(self):
        command = bootstrap_command("", "dev", "echo hi")
        assert command.argv == ["ssh", "dev", "/usr/bin/env bash -l"]
        assert command.stdin == "echo hi"

    def test_tunnel(self):
        command = tunnel_command(
            "-p 2222", "user@dev", BindAddress("127.0.0.1", 8080), 13337, "~/src", "~/.cache/sshcode/sshcode-server",
        )
        assert command.program == "ssh"
        assert command.args[:4] == ("-tt", "-q", "-L", "127.0.0.1:8080:localhost:13337")
        assert command.args[4:7] == ("-p", "2222", "user@dev")
        remote = command.args[-1]
        assert remote.startswith("cd ~/src; ")
        assert "--host 127.0.0.1" in remote
        assert "--auth none" in remote
        assert "--port=13337" in remote

    def test_tunnel_ipv6_bind(self):
        command = tunnel_command("", "dev", BindAddress("::1", 8080), 9000, "~", "/opt/cs")
        assert "[::1]:8080:localhost:9000" in command.args


class TestDownloadScript:
    def test_contents(self):
        script = download_script("~/.cache/sshcode/sshcode-server", "https://example.com/latest-linux")
        assert "x86_64" in script
        assert "pkill -f ~/.cache/sshcode/sshcode-server" in script
        assert "mkdir -p ~/.local/share/code-server ~/.cache/sshcode" in script
        assert "-z latest-linux" in script
        assert "curl $curlflags https://example.com/latest-linux" in script
        assert "ln latest-linux ~/.cache/sshcode/sshcode-server" in script
        assert script.rstrip().endswith("chmod +x ~/.cache/sshcode/sshcode-server")


class TestRsyncCommand:
    def test_flags(self):
        command = rsync_command("/local/User/", "dev:~/.local/share/code-server/User/", "-p 2222", ("logs", "CachedData"))
        assert command.program == "rsync"
        args = list(command.args)
        assert args[:2] == ["--exclude=logs", "--exclude=CachedData"]
        for flag in ("-azvr", "-u", "--times", "--delete", "--copy-unsafe-links"):
            assert flag in args
        assert args[args.index("-e") + 1] == "ssh -p 2222"
        assert args[-2:] == ["/local/User/", "dev:~/.local/share/code-server/User/"]

    def test_no_flags(self):
        command = rsync_command("a/", "b", "")
        assert command.args[command.args.index("-e") + 1] == "ssh"
        assert not any(a.startswith("--exclude") for a in command.args)
