"""``${VAR}`` placeholder expansion for config.yaml."""

import os
import re
from pathlib import Path

import yaml
from loguru import logger
from pydantic import ValidationError

from src.dailymenu.runtime.config.config_data import ConfigData

PLACEHOLDER = re.compile(r"\$\{([^}]+)\}")


def _resolve(expression: str) -> str:
    name, default_sep, default = expression.partition(":-")
    if default_sep:
        return os.getenv(name, default)

    name, error_sep, message = expression.partition(":?")
    value = os.getenv(name)
    if value is not None:
        return value
    if error_sep:
        raise ValueError(f"Required environment variable {name}: {message}")
    raise ValueError(f"Required environment variable {name} not set")


def substitute_env_vars(text: str) -> str:
    """Expand environment placeholders in ``text``.

    ``${VAR}`` must be set, ``${VAR:-default}`` falls back to ``default`` and
    ``${VAR:?message}`` fails with ``message`` when unset.
    """
    return PLACEHOLDER.sub(lambda match: _resolve(match.group(1)), text)


def apply_environment_overrides(env_mode: str) -> None:
    """Promote ``<ENV>_``-prefixed variables to their unprefixed names.

    ``PRODUCTION_DATABASE_URL`` becomes ``DATABASE_URL`` when running with
    ``APP_ENVIRONMENT=production``.
    """
    prefix = f"{env_mode.upper()}_"
    promoted = {
        name.removeprefix(prefix): value
        for name, value in os.environ.items()
        if name.startswith(prefix)
    }
    if promoted:
        logger.info("Environment overrides for {}: {}", env_mode, sorted(promoted))
    os.environ.update(promoted)


def load_templated_yaml(file_path: Path) -> ConfigData:
    """Read ``file_path``, expand placeholders and validate the ``config`` root.

    Raises:
        ValueError: A required variable is unset, or the file is not valid config
        FileNotFoundError: ``file_path`` does not exist
    """
    env_mode = os.getenv("APP_ENVIRONMENT", "development")
    logger.info("Loading configuration for environment: {}", env_mode)
    apply_environment_overrides(env_mode)

    expanded = substitute_env_vars(Path(file_path).read_text())
    try:
        document = yaml.safe_load(expanded)
    except yaml.YAMLError as e:
        raise ValueError(f"Error parsing YAML: {e}") from e
    if not document:
        raise ValueError("Failed to parse YAML")

    try:
        return ConfigData(**document.get("config", {}))
    except ValidationError as e:
        raise ValueError(f"Invalid configuration: {e}") from e
