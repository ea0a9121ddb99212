"""
Infrastructure layer: processes and platform paths
"""
from .process import SubprocessRunner
from .paths import PosixPathTranslator, MountPathTranslator, get_path_translator

__all__ = [
    "SubprocessRunner",
    "PosixPathTranslator",
    "MountPathTranslator",
    "get_path_translator",
]
