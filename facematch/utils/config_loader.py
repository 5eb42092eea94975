"""Config loader with environment variable support."""
import os
import re
import yaml
import threading

_config = None
_config_lock = threading.Lock()

DEFAULT_CONFIG_PATH = os.environ.get("FACEMATCH_CONFIG", "config/config.yaml")


def _resolve_env_vars(value):
    """Resolve ${VAR:-default} patterns in config values."""
    if isinstance(value, str):
        pattern = r'\$\{(\w+)(?::-([^}]*))?\}'
        def replacer(match):
            var_name = match.group(1)
            default = match.group(2) or ""
            return os.environ.get(var_name, default)
        return re.sub(pattern, replacer, value)
    elif isinstance(value, dict):
        return {k: _resolve_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [_resolve_env_vars(item) for item in value]
    return value


def load_config(path: str = DEFAULT_CONFIG_PATH) -> dict:
    """Load configuration from YAML file with thread safety."""
    global _config
    with _config_lock:
        if _config is None:
            with open(path) as f:
                raw_config = yaml.safe_load(f) or {}
            _config = _resolve_env_vars(raw_config)
            # Env substitution leaves strings behind
            if "api" in _config and "port" in _config["api"]:
                _config["api"]["port"] = int(_config["api"]["port"])
            storage = _config.get("storage", {})
            if isinstance(storage.get("demo_mode"), str):
                storage["demo_mode"] = storage["demo_mode"].lower() in ("1", "true", "yes")
    return _config


def get_config() -> dict:
    """Get loaded configuration."""
    return _config or load_config()
