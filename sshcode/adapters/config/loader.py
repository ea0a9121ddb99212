"""
Configuration loader with priority: CLI > env > TOML > defaults
"""
import os
import tomllib
from pathlib import Path
from typing import Dict, Any, Optional, Mapping

from ...core.constants import DEFAULT_CONFIG_PATH, ENV_PREFIX
from ...core.exceptions import ConfigError

# Session option defaults, overridden by TOML, environment and CLI in that order
DEFAULTS: Dict[str, Any] = {
    "skip_sync": False,
    "sync_back": False,
    "no_open": False,
    "reuse_connection": True,
    "bind": "",
    "remote_port": "",
    "ssh_flags": "",
    "upload_code_server": "",
}


class ConfigLoader:
    """Configuration loader with priority support"""
    
    def __init__(self, environ: Optional[Mapping[str, str]] = None):
        self._env_prefix = ENV_PREFIX
        self._environ = os.environ if environ is None else environ
    
    def load_toml(self, path: Path) -> Dict[str, Any]:
        """Load TOML configuration file"""
        if not path.exists():
            raise ConfigError(f"Configuration file not found: {path}")
        
        try:
            return tomllib.loads(path.read_text(encoding='utf-8'))
        except (tomllib.TOMLDecodeError, UnicodeDecodeError) as e:
            raise ConfigError(f"Failed to parse TOML configuration {path}: {e}") from e
    
    def load_env(self) -> Dict[str, Any]:
        """Load configuration from SSHCODE_* environment variables"""
        config = {}
        
        for key in DEFAULTS:
            value = self._environ.get(self._env_prefix + key.upper())
            if value:
                config[key] = self._convert_value(key, value)
        
        return config
    
    def _convert_value(self, key: str, value: str) -> Any:
        """Convert string value to the type of its default"""
        if isinstance(DEFAULTS[key], bool):
            if value.lower() in ("true", "yes", "1"):
                return True
            if value.lower() in ("false", "no", "0"):
                return False
            raise ConfigError(f"invalid boolean for {self._env_prefix}{key.upper()}: {value!r}")
        
        return value
    
    def merge_configs(self, *configs: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merge multiple configurations with priority.
        Later configs override earlier ones.
        """
        result = {}
        
        for config in configs:
            result = self._deep_merge(result, config)
        
        return result
    
    def _deep_merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge two dictionaries"""
        result = base.copy()
        
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value
        
        return result
    
    def _validate(self, config: Dict[str, Any]) -> Dict[str, Any]:
        unknown = sorted(set(config) - set(DEFAULTS))
        if unknown:
            raise ConfigError(f"Unknown configuration keys: {', '.join(unknown)}")
        
        for key, value in config.items():
            expected = type(DEFAULTS[key])
            if key == "remote_port" and isinstance(value, int) and not isinstance(value, bool):
                config[key] = str(value)
            elif not isinstance(value, expected):
                raise ConfigError(f"'{key}' must be a {expected.__name__}, got {value!r}")
        
        return config
    
    def load(
        self,
        toml_path: Optional[Path] = None,
        cli_overrides: Optional[Dict[str, Any]] = None,
        use_env: bool = True,
    ) -> Dict[str, Any]:
        """
        Load configuration with priority: CLI > env > TOML > defaults
        
        Args:
            toml_path: Path to TOML configuration file; the default path is
                used when it exists
            cli_overrides: CLI parameter overrides (None values are ignored)
            use_env: Whether to load from environment variables
        
        Returns:
            Merged configuration dictionary
        """
        configs = [dict(DEFAULTS)]
        
        # 1. Load TOML
        if toml_path is None:
            default_path = Path(DEFAULT_CONFIG_PATH).expanduser()
            if default_path.exists():
                toml_path = default_path
        if toml_path:
            configs.append(self._validate(self.load_toml(Path(toml_path).expanduser())))
        
        # 2. Load environment variables
        if use_env:
            env_config = self.load_env()
            if env_config:
                configs.append(env_config)
        
        # 3. Apply CLI overrides (highest priority)
        if cli_overrides:
            configs.append({k: v for k, v in cli_overrides.items() if v is not None})
        
        return self.merge_configs(*configs)
