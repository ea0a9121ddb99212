"""
Command builders for ssh, rsync and gcloud

Every external invocation is assembled here as a Command value. The only
shell text left is what runs on the remote side: the tunnel's remote command
and the download script, which is piped over stdin.
"""
import posixpath
import shlex
from typing import List, Optional, Sequence

from ...core.command import Command
from ...core.constants import CODE_SERVER_DOWNLOAD_URL
from ...core.exceptions import ConfigError
from .models import BindAddress


# ============================================================
# Helpers
# ============================================================

def split_flags(flags: str) -> List[str]:
    """
    Split an ssh flags string using shell rules.

    Raises:
        ConfigError: If quoting is unbalanced
    """
    try:
        return shlex.split(flags or "")
    except ValueError as e:
        raise ConfigError(f"invalid ssh flags {flags!r}: {e}") from e


def join_flags(*parts: str) -> str:
    """Join flag strings, dropping empty parts"""
    return " ".join(p.strip() for p in parts if p and p.strip())


def with_control_path(flags: str, control_path: str) -> str:
    """Add a ControlPath override so child ssh processes use the master socket"""
    return join_flags(flags, f'-o "ControlPath={control_path}"')


def remote_path_arg(path: str) -> str:
    """
    Quote a remote path for the remote shell, keeping a leading ~ expandable.
    """
    if path == "~":
        return path
    if path.startswith("~/"):
        return "~/" + shlex.quote(path[2:])
    return shlex.quote(path)


# ============================================================
# ssh
# ============================================================

def ssh_command(
    flags: str,
    host: str,
    remote_command: Optional[str] = None,
    options: Sequence[str] = (),
    stdin: Optional[str] = None,
) -> Command:
    """
    Build an ssh invocation.

    Args:
        flags: User/session ssh flags (shell syntax)
        host: ssh target
        remote_command: Command text for the remote shell
        options: ssh options placed before the user flags
        stdin: Text piped to ssh
    """
    args = [*options, *split_flags(flags), host]
    if remote_command is not None:
        args.append(remote_command)
    return Command("ssh", tuple(args), stdin=stdin)


def master_command(flags: str, host: str) -> Command:
    """Start a master socket without opening a session (-MN)"""
    return ssh_command(flags, host, options=("-MNq",))


def master_check_command(flags: str, host: str) -> Command:
    """Ask a running master whether it is ready"""
    return ssh_command(flags, host, options=("-O", "check"))


def chmod_command(flags: str, host: str, path: str) -> Command:
    return ssh_command(flags, host, f"chmod +x {remote_path_arg(path)}")


def bootstrap_command(flags: str, host: str, script: str) -> Command:
    """Run a script through a remote login shell, script on stdin"""
    return ssh_command(flags, host, "/usr/bin/env bash -l", stdin=script)


def tunnel_command(
    flags: str,
    host: str,
    bind_addr: BindAddress,
    remote_port: int,
    remote_dir: str,
    server_path: str,
) -> Command:
    """
    Start code-server on the remote loopback and forward bind_addr to it.

    code-server runs without its own auth; only the ssh tunnel reaches it.
    """
    forward = f"{bind_addr}:localhost:{remote_port}"
    remote = (
        f"cd {remote_path_arg(remote_dir)}; "
        f"{remote_path_arg(server_path)} --host 127.0.0.1 --auth none --port={remote_port}"
    )
    return ssh_command(flags, host, remote, options=("-tt", "-q", "-L", forward))


def download_script(server_path: str, url: str = CODE_SERVER_DOWNLOAD_URL) -> str:
    """
    Render the remote script that installs or updates code-server.

    curl -z only downloads when the cached copy is older than the release.
    """
    server_dir = posixpath.dirname(server_path)
    return f"""set -euxo pipefail || exit 1

[ "$(uname -m)" != "x86_64" ] && echo "Unsupported server architecture $(uname -m). code-server only has releases for x86_64 systems." && exit 1
pkill -f {server_path} || true
mkdir -p ~/.local/share/code-server {server_dir}
cd {server_dir}
curlflags="-o latest-linux"
if [ -f latest-linux ]; then
	curlflags="$curlflags -z latest-linux"
fi
curl $curlflags {url}
[ -f {server_path} ] && rm {server_path}
ln latest-linux {server_path}
chmod +x {server_path}"""


# ============================================================
# rsync
# ============================================================

def rsync_command(
    src: str,
    dest: str,
    ssh_flags: str,
    excludes: Sequence[str] = (),
) -> Command:
    """
    Mirror src to dest.

    Only newer files are copied, timestamps are kept, and files missing
    from src are deleted from dest.
    """
    args = [f"--exclude={path}" for path in excludes]
    args += [
        "-azvr",
        "-e", join_flags("ssh", ssh_flags),
        "-u", "--times",
        "--delete",
        "--copy-unsafe-links",
        src, dest,
    ]
    return Command("rsync", tuple(args))


# ============================================================
# gcloud
# ============================================================

def gcloud_dry_run_command(instance: str) -> Command:
    """Print the ssh command gcloud would use for an instance"""
    return Command("gcloud", ("compute", "ssh", "--dry-run", instance))
