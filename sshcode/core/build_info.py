"""
Build metadata
"""
from dataclasses import dataclass


@dataclass(frozen=True)
class BuildInfo:
    """Version information, created once at startup and passed to the CLI"""
    version: str
    commit: str = "unknown"
    
    def describe(self) -> str:
        """Human readable version line"""
        if self.commit and self.commit != "unknown":
            return f"sshcode {self.version} ({self.commit})"
        return f"sshcode {self.version}"
