"""Global configuration management.

Config is loaded at module import time and available globally via:
    from gatewaysync.config import config
"""

import os
from pathlib import Path

from dotenv import load_dotenv

from gatewaysync.config.loader import DEFAULT_CONFIG_PATH, load_config
from gatewaysync.config.schema import SyncConfig
from gatewaysync.constants import ENV_CONFIG_PATH, ENV_DOTENV_PATH

# Project root (relative to this file)
_project_root = Path(__file__).parent.parent.parent

# Load .env (allow override for tests)
_env_path = os.getenv(ENV_DOTENV_PATH)
_dotenv_path = Path(_env_path).expanduser() if _env_path else _project_root / ".env"
if not _dotenv_path.is_absolute():
    _dotenv_path = (_project_root / _dotenv_path).resolve()

load_dotenv(_dotenv_path)


def config_path() -> Path:
    """Resolve the config file location (env override first)."""
    env_path = os.getenv(ENV_CONFIG_PATH)
    if env_path:
        return Path(env_path).expanduser()
    return DEFAULT_CONFIG_PATH.expanduser()


config: SyncConfig = load_config(config_path())

__all__ = ["SyncConfig", "config", "config_path", "load_config"]
