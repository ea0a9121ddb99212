"""
Project constants definitions
"""

# ============================================================
# Remote Paths
# ============================================================

CODE_SERVER_PATH = "~/.cache/sshcode/sshcode-server"
CODE_SERVER_DOWNLOAD_URL = "https://codesrv-ci.cdr.sh/latest-linux"
REMOTE_SETTINGS_DIR = "~/.local/share/code-server/User/"
REMOTE_EXTENSIONS_DIR = "~/.local/share/code-server/extensions/"

# ============================================================
# SSH
# ============================================================

SSH_DIRECTORY = "~/.ssh"
SSH_DIRECTORY_UNSAFE_MODE_MASK = 0o022
SSH_CONTROL_PATH = SSH_DIRECTORY + "/control-%h-%p-%r"
SSH_CONFIG_PATH = "~/.ssh/config"
DEFAULT_SSH_PORT = 22

MASTER_CHECK_TRIES = 30
MASTER_CHECK_INTERVAL = 1.0
MASTER_STOP_TIMEOUT = 2.0

# ============================================================
# Ports
# ============================================================

MIN_PORT = 1024
MAX_PORT = 65535
PORT_MAX_TRIES = 10
DEFAULT_BIND_HOST = "127.0.0.1"

# ============================================================
# Readiness
# ============================================================

READY_TIMEOUT = 15.0
READY_REQUEST_TIMEOUT = 3.0
TUNNEL_EXIT_GRACE = 2.0

# ============================================================
# Sync
# ============================================================

VSCODE_CONFIG_DIR_ENV = "VSCODE_CONFIG_DIR"
VSCODE_EXTENSIONS_DIR_ENV = "VSCODE_EXTENSIONS_DIR"
SETTINGS_EXCLUDES = ("workspaceStorage", "logs", "CachedData")
LOCAL_DIR_MODE = 0o750

# ============================================================
# Configuration
# ============================================================

DEFAULT_CONFIG_PATH = "~/.config/sshcode/config.toml"
ENV_PREFIX = "SSHCODE_"

# ============================================================
# Address Resolution
# ============================================================

GCP_PREFIX = "gcp:"
