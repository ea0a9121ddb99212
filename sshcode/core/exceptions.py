"""
Unified exception definitions
"""


class SshcodeError(Exception):
    """Base exception class"""
    pass


class ConfigError(SshcodeError):
    """Configuration error"""
    pass


class ResolutionError(SshcodeError):
    """Host resolution error"""
    pass


class PortExhaustedError(SshcodeError):
    """No free local port could be found"""
    pass


class MasterError(SshcodeError):
    """SSH master connection error (connection reuse is disabled, not fatal)"""
    pass


class MasterNotRunningError(MasterError):
    """SSH master process exited before becoming ready"""
    pass


class MasterNotReadyError(MasterError):
    """SSH master did not become ready in time"""
    pass


class BootstrapError(SshcodeError):
    """Remote code-server provisioning error"""
    pass


class NotAFileError(BootstrapError):
    """Local code-server path is not a regular file"""
    pass


class SyncError(SshcodeError):
    """Settings or extensions sync error"""
    pass


class TunnelStartError(SshcodeError):
    """Tunnel process failed to start"""
    pass


class ReadinessTimeoutError(SshcodeError):
    """code-server did not answer in time"""
    pass


class ViewerLaunchError(SshcodeError):
    """Browser launch error (logged, never fatal)"""
    pass
