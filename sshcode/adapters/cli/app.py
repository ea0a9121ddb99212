"""
Main CLI application
"""
import typer
from pathlib import Path
from typing import Optional, Dict, Any

from rich.markup import escape

from ... import __version__
from ...core.build_info import BuildInfo
from ...core.exceptions import SshcodeError
from ...core.logging import setup_logging, get_logger, get_stdout_console, get_stderr_console
from ...domain.session import SessionOptions, SessionService
from ...infrastructure import SubprocessRunner, get_path_translator
from ..config.loader import ConfigLoader

logger = get_logger(__name__)
stdout_console = get_stdout_console()
stderr_console = get_stderr_console()


def build_options(host: str, directory: str, cfg: Dict[str, Any]) -> SessionOptions:
    """Build session options from the merged configuration"""
    return SessionOptions(
        host=host,
        remote_dir=directory or "~",
        skip_sync=cfg["skip_sync"],
        sync_back=cfg["sync_back"],
        no_open=cfg["no_open"],
        reuse_connection=cfg["reuse_connection"],
        bind_addr=cfg["bind"],
        remote_port=str(cfg["remote_port"] or ""),
        ssh_flags=cfg["ssh_flags"],
        upload_code_server=cfg["upload_code_server"],
    )


def create_app(build_info: BuildInfo) -> typer.Typer:
    """
    Create the CLI application.
    
    Args:
        build_info: Version information shown by --version
    """
    app = typer.Typer(
        name="sshcode",
        add_completion=False,
        help="Start code-server over SSH",
        rich_markup_mode="rich",
    )
    
    def version_callback(value: bool) -> None:
        if value:
            stdout_console.print(build_info.describe(), markup=False)
            raise typer.Exit()
    
    @app.command()
    def main(
        ctx: typer.Context,
        host: Optional[str] = typer.Argument(None, help="SSH host, user@host, or gcp:<instance>"),
        directory: str = typer.Argument("~", help="Remote working directory"),
        skip_sync: bool = typer.Option(
            False, "--skipsync",
            help="Skip syncing local settings and extensions to the remote host",
        ),
        sync_back: bool = typer.Option(
            False, "--sync-back", "-b",
            help="Sync extensions and settings back to local on exit",
        ),
        no_reuse_connection: bool = typer.Option(
            False, "--no-reuse-connection",
            help="Don't start an SSH master connection to reuse for every ssh and rsync call",
        ),
        bind: Optional[str] = typer.Option(
            None, "--bind",
            help="Local bind address, [HOST][:PORT] (default: 127.0.0.1:<random>)",
        ),
        remote_port: Optional[int] = typer.Option(
            None, "--remote-port",
            help="Remote code-server port (default: random)",
        ),
        ssh_flags: Optional[str] = typer.Option(
            None, "--ssh-flags",
            help="Custom SSH flags, e.g. '-p 2222 -i ~/.ssh/key'",
        ),
        upload_code_server: Optional[str] = typer.Option(
            None, "--upload-code-server",
            help="Upload a local code-server binary instead of downloading the latest release",
        ),
        no_open: bool = typer.Option(
            False, "--no-open",
            help="Don't open a browser",
        ),
        config_file: Optional[Path] = typer.Option(
            None, "--config", "-c",
            help="Configuration file path (TOML)",
        ),
        log_level: str = typer.Option(
            "INFO", "--log-level", "-l",
            help="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
        ),
        log_file: Optional[Path] = typer.Option(
            None, "--log-file",
            help="Log file path",
        ),
        version: bool = typer.Option(
            False, "--version",
            help="Print version information and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ):
        """
        Start code-server over SSH
        
        Examples:
            sshcode user@my-server
            sshcode user@my-server ~/project --sync-back
            sshcode gcp:my-instance --bind 127.0.0.1:8080
        """
        setup_logging(level=log_level, log_file=log_file)
        
        if not host:
            # Usage, like a missing positional, but exit code 1
            stdout_console.print(ctx.get_help(), markup=False)
            raise typer.Exit(1)
        
        try:
            cfg = ConfigLoader().load(
                toml_path=config_file,
                cli_overrides={
                    "skip_sync": skip_sync or None,
                    "sync_back": sync_back or None,
                    "no_open": no_open or None,
                    "reuse_connection": False if no_reuse_connection else None,
                    "bind": bind,
                    "remote_port": str(remote_port) if remote_port is not None else None,
                    "ssh_flags": ssh_flags,
                    "upload_code_server": upload_code_server,
                },
            )
            options = build_options(host, directory, cfg)
            
            runner = SubprocessRunner()
            service = SessionService(
                runner,
                translator=get_path_translator(runner),
                on_ready=lambda url: stdout_console.print(f"[green]✓[/green] code-server is ready at [cyan]{url}[/cyan]"),
            )
            result = service.run(options)
        except SshcodeError as e:
            stderr_console.print(f"[red]Error:[/red] {escape(str(e))}")
            raise typer.Exit(1)
        except Exception as e:
            logger.exception("Session failed")
            stderr_console.print(f"[red]Error:[/red] {escape(str(e))}")
            raise typer.Exit(1)
        
        if result.synced_back:
            stdout_console.print("[green]✓[/green] Synced settings and extensions back to local")
    
    return app


def run():
    """CLI entry point"""
    app = create_app(BuildInfo(version=__version__))
    app()


if __name__ == "__main__":
    run()
