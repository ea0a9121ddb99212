"""
Subprocess-based command runner
"""
import subprocess

from ..core.command import Command, CommandResult
from ..core.interfaces import CommandRunner
from ..core.logging import get_logger

logger = get_logger(__name__)


class SubprocessRunner(CommandRunner):
    """
    Runs external tools with the subprocess module.
    
    Commands are always executed from an argument vector, never through a
    local shell.
    """
    
    def run(self, command: Command, capture: bool = False) -> CommandResult:
        """
        Run a command to completion.
        
        Args:
            command: Command to run
            capture: Capture stdout/stderr instead of sharing the terminal
        
        Returns:
            CommandResult (exit code 127 if the program could not be started)
        """
        logger.debug(f"exec: {command.display()}")
        try:
            result = subprocess.run(
                command.argv,
                input=command.stdin,
                capture_output=capture,
                text=True,
            )
        except OSError as e:
            return CommandResult(
                exit_code=127,
                stderr=f"failed to execute {command.program}: {e}",
            )
        
        return CommandResult(
            exit_code=result.returncode,
            stdout=result.stdout if capture else "",
            stderr=result.stderr if capture else "",
        )
    
    def start(self, command: Command) -> subprocess.Popen:
        """
        Start a command in the background.
        
        Raises:
            OSError: If the program cannot be started
        """
        logger.debug(f"start: {command.display()}")
        return subprocess.Popen(command.argv)
