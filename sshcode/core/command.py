"""
Structured external command values
"""
import shlex
from dataclasses import dataclass, field
from typing import Optional, Tuple, List


@dataclass(frozen=True)
class Command:
    """
    One invocation of an external tool.
    
    Attributes:
        program: Executable name (resolved through PATH)
        args: Argument list, passed without a shell
        stdin: Optional text piped to the process
    """
    program: str
    args: Tuple[str, ...] = field(default_factory=tuple)
    stdin: Optional[str] = None
    
    @property
    def argv(self) -> List[str]:
        """Full argument vector"""
        return [self.program, *self.args]
    
    def display(self) -> str:
        """Shell-quoted command line, suitable for copy/paste"""
        return shlex.join(self.argv)
    
    def __str__(self) -> str:
        return self.display()


@dataclass
class CommandResult:
    """Command execution result"""
    exit_code: int
    stdout: str = ""
    stderr: str = ""
    success: bool = True
    
    def __post_init__(self):
        """Set success based on exit_code"""
        self.success = self.exit_code == 0
    
    @property
    def output(self) -> str:
        """Combined stdout and stderr"""
        return self.stdout + self.stderr
    
    def __str__(self) -> str:
        if self.success:
            return self.stdout
        return f"Error (exit code {self.exit_code}): {self.stderr}"
