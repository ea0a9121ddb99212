"""
Local path translation strategies
"""
import platform
import re
from typing import List, Optional, Tuple

from ..core.command import Command
from ..core.interfaces import CommandRunner, PathTranslator
from ..core.logging import get_logger

logger = get_logger(__name__)

# e.g. "C:/Program Files/Git on / type ntfs (binary,noacl,auto)"
#      "C: on /c type ntfs (binary,noacl,posix=0,user,noumount,auto)"
_MOUNT_LINE = re.compile(r"^(?P<native>[A-Za-z]:\S*(?: \S+)*?) on (?P<posix>/\S*) type ")


class PosixPathTranslator(PathTranslator):
    """Identity translation for Linux and macOS"""
    
    def translate(self, path: str) -> str:
        return path


class MountPathTranslator(PathTranslator):
    """
    Translates Windows paths into git-bash/cygwin form using `mount` output.
    
    The mount table is read once. Any failure leaves paths untranslated.
    """
    
    def __init__(self, runner: CommandRunner):
        self.runner = runner
        self._mounts: Optional[List[Tuple[str, str]]] = None
    
    def _load_mounts(self) -> List[Tuple[str, str]]:
        if self._mounts is not None:
            return self._mounts
        
        result = self.runner.run(Command("mount"), capture=True)
        if not result.success:
            logger.warning(f"failed to read mount table, paths will not be translated: {result.stderr.strip()}")
            self._mounts = []
            return self._mounts
        
        self._mounts = parse_mount_table(result.stdout)
        return self._mounts
    
    def translate(self, path: str) -> str:
        normalized = path.replace("\\", "/")
        for native, posix in self._load_mounts():
            if normalized.lower() == native.lower():
                return posix
            prefix = native.rstrip("/") + "/"
            if normalized.lower().startswith(prefix.lower()):
                rest = normalized[len(prefix):]
                return posix.rstrip("/") + "/" + rest
        
        logger.debug(f"no mount entry for {path}, using it unchanged")
        return path


def parse_mount_table(output: str) -> List[Tuple[str, str]]:
    """
    Parse `mount` output into (native prefix, posix mount point) pairs.
    
    Longest native prefix first, so nested mounts win.
    """
    mounts = []
    for line in output.splitlines():
        match = _MOUNT_LINE.match(line.strip())
        if match:
            native = match.group("native").replace("\\", "/")
            mounts.append((native, match.group("posix")))
    mounts.sort(key=lambda m: len(m[0]), reverse=True)
    return mounts


def get_path_translator(runner: CommandRunner, system: Optional[str] = None) -> PathTranslator:
    """Pick the translation strategy for the local platform"""
    system = (system or platform.system()).lower()
    if system == "windows":
        return MountPathTranslator(runner)
    return PosixPathTranslator()
