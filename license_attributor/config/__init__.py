"""Configuration handling for license-attributor."""
from __future__ import annotations

from license_attributor.config.defaults import DEFAULT_CONFIG_NAMES, get_default_config
from license_attributor.config.loader import (
    check_config,
    find_config_file,
    load_config,
    load_config_file,
)
from license_attributor.models.config import AttributorConfig, CrateConfig

__all__ = [
    "AttributorConfig",
    "CrateConfig",
    "DEFAULT_CONFIG_NAMES",
    "check_config",
    "find_config_file",
    "get_default_config",
    "load_config",
    "load_config_file",
]
