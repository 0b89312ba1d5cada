"""Configuration file discovery and loading for license-attributor."""
from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import ValidationError

from license_attributor.analysis.expression import NodeKind, parse_expression
from license_attributor.config.defaults import DEFAULT_CONFIG_NAMES, get_default_config
from license_attributor.exceptions import ConfigurationError, ExpressionParseError
from license_attributor.models.config import AttributorConfig
from license_attributor.resolvers.workarounds import WORKAROUNDS


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Find configuration file in the specified directory.

    Searches for `.license-attributor.yaml` first, then `.license-attributor.yml`.

    Args:
        start_dir: Directory to search. Defaults to current working directory.

    Returns:
        Path to the configuration file if found, None otherwise.
    """
    search_dir = start_dir or Path.cwd()
    for name in DEFAULT_CONFIG_NAMES:
        config_path = search_dir / name
        if config_path.exists():
            return config_path
    return None


def load_config_file(path: Path) -> AttributorConfig:
    """Load and validate configuration from a YAML file.

    Args:
        path: Path to the configuration file.

    Returns:
        Validated AttributorConfig instance.

    Raises:
        ConfigurationError: If file cannot be read, has invalid YAML,
            fails Pydantic validation, or names invalid licenses or
            unknown workarounds.
    """
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, PermissionError) as e:
        raise ConfigurationError(
            f"Cannot read configuration file '{path}': {e}"
        ) from e

    # Handle empty files - return default config
    if not content.strip():
        return get_default_config()

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Invalid YAML syntax in '{path}': {e}"
        ) from e

    # Handle YAML that parses to None (empty or just comments)
    if data is None:
        return get_default_config()

    # Ensure root is a dict
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Invalid configuration in '{path}': "
            f"expected a mapping at root level, got {type(data).__name__}"
        )

    try:
        config = AttributorConfig.model_validate(data)
    except ValidationError as e:
        error_messages = _format_validation_errors(e)
        raise ConfigurationError(
            f"Invalid configuration in '{path}': {error_messages}"
        ) from e

    problems = check_config(config)
    if problems:
        raise ConfigurationError(
            f"Invalid configuration in '{path}': {'; '.join(problems)}"
        )
    return config


def _format_validation_errors(error: ValidationError) -> str:
    """Format Pydantic validation errors into a readable string.

    Args:
        error: The Pydantic ValidationError.

    Returns:
        Formatted error message string.
    """
    messages: list[str] = []
    for err in error.errors():
        loc = ".".join(str(x) for x in err["loc"]) if err["loc"] else "root"
        msg = err["msg"]
        messages.append(f"{loc}: {msg}")
    return "; ".join(messages)


def _check_license_id(location: str, value: str) -> str | None:
    try:
        node = parse_expression(value)
    except ExpressionParseError as e:
        return f"{location}: {e.detail}"
    if node.kind != NodeKind.LEAF:
        return f"{location}: '{value}' is an expression, not a single license"
    return None


def _check_expression(location: str, value: str) -> str | None:
    try:
        parse_expression(value)
    except ExpressionParseError as e:
        return f"{location}: {e.detail}"
    return None


def check_config(config: AttributorConfig) -> list[str]:
    """Check the parts of a configuration Pydantic cannot validate.

    Args:
        config: A configuration that passed model validation.

    Returns:
        Human-readable problems, empty when the configuration is valid.
    """
    problems: list[str] = []

    for index, license_id in enumerate(config.accepted):
        problems.append(_check_license_id(f"accepted.{index}", license_id) or "")

    for name in config.workarounds:
        if name not in WORKAROUNDS:
            known = ", ".join(sorted(WORKAROUNDS))
            problems.append(f"workarounds: unknown workaround '{name}' (known: {known})")

    for crate_name, crate in config.crates.items():
        for index, license_id in enumerate(crate.accepted):
            problems.append(
                _check_license_id(f"crates.{crate_name}.accepted.{index}", license_id)
                or ""
            )
        if crate.clarify is None:
            continue
        location = f"crates.{crate_name}.clarify"
        problems.append(
            _check_expression(f"{location}.license", crate.clarify.license) or ""
        )
        for group in ("files", "git"):
            for index, claim in enumerate(getattr(crate.clarify, group)):
                if claim.license is not None:
                    problems.append(
                        _check_expression(
                            f"{location}.{group}.{index}.license", claim.license
                        )
                        or ""
                    )

    return [problem for problem in problems if problem]


def load_config(config_path: str | None = None) -> AttributorConfig:
    """Load configuration from file or use defaults.

    If a config_path is provided, loads from that file.
    Otherwise, searches for a configuration file in the current directory.
    If no file is found, returns default configuration.

    Args:
        config_path: Optional path to configuration file.
            If provided, must exist and be valid.

    Returns:
        AttributorConfig with loaded or default values.

    Raises:
        ConfigurationError: If the specified config file is invalid,
            or if auto-discovered config file is invalid.
    """
    if config_path is not None:
        # User specified a path - load it (Click validates existence)
        return load_config_file(Path(config_path))

    # Auto-discover config file
    discovered = find_config_file()
    if discovered is not None:
        return load_config_file(discovered)

    # No config file found - use defaults
    return get_default_config()
