"""Context-local application configuration.

``get_config()`` returns the configuration active in the current context.
Tests and the CLI narrow it for a block of code with ``with_context``.
"""

import os
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from pathlib import Path
from typing import Any

from loguru import logger
from pydantic import BaseModel

from src.dailymenu.runtime.config.config_data import ConfigData
from src.dailymenu.runtime.config.config_template import load_templated_yaml

CONFIG_PATH_ENV = "DAILYMENU_CONFIG"


def load_config(path: Path | None = None) -> ConfigData:
    """Read ``config.yaml`` (or ``$DAILYMENU_CONFIG``); built-in defaults if missing."""
    config_path = path or Path(os.getenv(CONFIG_PATH_ENV, "config.yaml"))
    if not config_path.exists():
        logger.warning("{} not found; using built-in defaults", config_path)
        return ConfigData()
    return load_templated_yaml(config_path)


_current_config: ContextVar[ConfigData] = ContextVar(
    "dailymenu_config", default=load_config()
)


def _overlay(base: BaseModel, override: BaseModel) -> dict[str, Any]:
    """Dump ``base`` with the explicitly set fields of ``override`` on top.

    Nested models merge field by field, so overriding ``database.url`` keeps
    the rest of ``database`` as it was.
    """
    merged = base.model_dump()
    for name in override.model_fields_set:
        value = getattr(override, name)
        current = getattr(base, name)
        if isinstance(value, BaseModel) and isinstance(current, BaseModel):
            merged[name] = _overlay(current, value)
        elif isinstance(value, BaseModel):
            merged[name] = value.model_dump()
        else:
            merged[name] = value
    return merged


@contextmanager
def with_context(config_override: ConfigData | None = None) -> Iterator[ConfigData]:
    """Layer ``config_override`` over the current configuration for a block.

    Example:
        with with_context(ConfigData(app=AppConfig(environment="test"))):
            assert get_config().app.environment == "test"
    """
    if config_override is None:
        yield get_config()
        return

    if not isinstance(config_override, ConfigData):
        raise ValueError(
            f"config_override must be ConfigData, or None, got {type(config_override)}"
        )

    merged = ConfigData.model_validate(_overlay(get_config(), config_override))
    token = _current_config.set(merged)
    try:
        yield merged
    finally:
        _current_config.reset(token)


def get_config() -> ConfigData:
    return _current_config.get()
