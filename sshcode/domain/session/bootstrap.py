"""
Remote code-server provisioning
"""
from typing import Optional

from ...core.constants import CODE_SERVER_PATH
from ...core.exceptions import BootstrapError
from ...core.interfaces import CommandRunner, PathTranslator
from ...core.logging import get_logger
from ...core.utils import expand_path, validate_is_file
from .commands import bootstrap_command, chmod_command, download_script, rsync_command

logger = get_logger(__name__)


def upload_code_server(
    runner: CommandRunner,
    ssh_flags: str,
    host: str,
    local_path: str,
    remote_path: str = CODE_SERVER_PATH,
    translator: Optional[PathTranslator] = None,
) -> None:
    """
    Copy a local code-server binary to the remote cache path and make it executable.

    Raises:
        NotAFileError: If local_path is a directory
        BootstrapError: If the file is missing, or the copy or chmod fails
    """
    path = expand_path(local_path)
    try:
        validate_is_file(path)
    except FileNotFoundError as e:
        raise BootstrapError(str(e)) from e

    src = translator.translate(str(path)) if translator else str(path)
    copy = rsync_command(src, f"{host}:{remote_path}", ssh_flags)
    result = runner.run(copy)
    if not result.success:
        raise BootstrapError(
            f"failed to upload local code-server binary to remote server:\n"
            f"---rsync cmd---\n{copy.display()}\n(exit code {result.exit_code})"
        )

    chmod = chmod_command(ssh_flags, host, remote_path)
    result = runner.run(chmod)
    if not result.success:
        raise BootstrapError(
            f"failed to make code-server binary executable:\n"
            f"---ssh cmd---\n{chmod.display()}\n(exit code {result.exit_code})"
        )


def download_code_server(
    runner: CommandRunner,
    ssh_flags: str,
    host: str,
    remote_path: str = CODE_SERVER_PATH,
) -> None:
    """
    Install or update code-server on the remote host.

    Raises:
        BootstrapError: With the ssh command and script, if the script fails
    """
    script = download_script(remote_path)
    command = bootstrap_command(ssh_flags, host, script)
    result = runner.run(command)
    if not result.success:
        raise BootstrapError(
            f"failed to update code-server:\n---ssh cmd---\n{command.display()}"
            f"\n---download script---\n{script}\n(exit code {result.exit_code})"
        )


def bootstrap(
    runner: CommandRunner,
    ssh_flags: str,
    host: str,
    upload_path: str = "",
    remote_path: str = CODE_SERVER_PATH,
    translator: Optional[PathTranslator] = None,
) -> None:
    """Upload upload_path if given, otherwise download the latest release remotely"""
    if upload_path:
        logger.info("uploading local code-server binary...")
        upload_code_server(runner, ssh_flags, host, upload_path, remote_path, translator)
    else:
        logger.info("ensuring code-server is updated...")
        download_code_server(runner, ssh_flags, host, remote_path)
