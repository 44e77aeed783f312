import logging
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel

from gatewaysync.config.schema import SyncConfig
from gatewaysync.utils import expand_env_vars

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("~/.gatewaysync/gatewaysync.yml")


def _warn_unknown_keys(model: BaseModel, path: str, config_path: Path) -> None:
    """Warn about keys the schema does not know."""
    if model.model_extra:
        logger.warning("Unknown keys in %s at %s: %s", path, config_path, list(model.model_extra.keys()))


def load_config(path: Optional[Path] = None) -> SyncConfig:
    """Load and validate configuration from a YAML file.

    Args:
        path: Path to the gatewaysync.yml file. Defaults to ~/.gatewaysync/gatewaysync.yml.

    Returns:
        The validated configuration model. Defaults when the file is missing or unreadable.
    """
    if path is None:
        path = DEFAULT_CONFIG_PATH.expanduser()

    if not path.exists():
        return SyncConfig()

    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Failed to read config file %s: %s", path, e)
        return SyncConfig()

    if not isinstance(raw, dict):
        logger.warning("Config file %s does not contain a mapping, using defaults", path)
        return SyncConfig()

    expanded = expand_env_vars(raw)
    model = SyncConfig.model_validate(expanded)
    _warn_unknown_keys(model, "root", path)
    return model
