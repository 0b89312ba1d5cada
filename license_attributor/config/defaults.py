"""Default configuration values for license-attributor."""

from __future__ import annotations

from license_attributor.models.config import AttributorConfig

# Default configuration file names to search for
DEFAULT_CONFIG_NAMES = [".license-attributor.yaml", ".license-attributor.yml"]


def get_default_config() -> AttributorConfig:
    """Get the default configuration.

    Returns:
        AttributorConfig with all defaults: nothing accepted, every target,
        every dependency kind and the remote harvest source enabled.
    """
    return AttributorConfig()
