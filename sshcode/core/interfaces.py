"""
Core interfaces for dependency injection
"""
import subprocess
from abc import ABC, abstractmethod

from .command import Command, CommandResult


class CommandRunner(ABC):
    """External process runner interface"""
    
    @abstractmethod
    def run(self, command: Command, capture: bool = False) -> CommandResult:
        """
        Run a command to completion.
        
        Without capture the process shares this terminal's stdout/stderr.
        A command carrying stdin text has it piped in, otherwise stdin is
        inherited.
        """
        pass
    
    @abstractmethod
    def start(self, command: Command) -> subprocess.Popen:
        """Start a command in the background with inherited stdio"""
        pass


class PathTranslator(ABC):
    """Local path translation interface (e.g. Windows paths for git-bash rsync)"""
    
    @abstractmethod
    def translate(self, path: str) -> str:
        """Translate a native local path into the form rsync expects"""
        pass
