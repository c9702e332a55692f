"""Configuration handling helper functions and default configuration.

Configuration is composed from (highest precedence first):

1. Values passed in code (``additional_config``)
2. ``COURIER_*`` environment variables, also read from a ``.env`` file;
   nested keys use ``__``, e.g. ``COURIER_STORAGE_PROVIDER__OPTIONS__PATH``
3. YAML in the ``COURIER_CONFIG_STR`` environment variable
4. A YAML file named by the ``COURIER_CONFIG_FILE`` environment variable
5. Defaults (``default_config``); nested mappings are merged key by key
"""
import copy
import os
from collections.abc import Callable
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PREFIX = "COURIER_"
ENV_FILE = ".env"

load_dotenv(ENV_FILE)


class ComponentConfig(BaseModel):
    """A pluggable component: a ``package.module:callable`` factory and the
    keyword arguments to call it with.
    """

    factory: str
    options: dict[str, Any] = Field(default_factory=dict)


default_config = {
    "storage_provider": {
        "factory": "courier.storage.local_storage:LocalStorage",
        "options": {"path": "lfs-storage"},
    },
    "mapping_store": {
        "factory": "courier.config_store:GitConfigStore",
        "options": {"config_file": ".git/config"},
    },
}


def _defaults_source() -> dict[str, Any]:
    return copy.deepcopy(default_config)


def _yaml_file_source() -> dict[str, Any]:
    path = os.environ.get(f"{ENV_PREFIX}CONFIG_FILE")
    if not path:
        return {}
    with Path(path).open() as f:
        return _as_mapping(yaml.safe_load(f), path)


def _yaml_str_source() -> dict[str, Any]:
    config_str = os.environ.get(f"{ENV_PREFIX}CONFIG_STR")
    if not config_str:
        return {}
    return _as_mapping(yaml.safe_load(config_str), f"{ENV_PREFIX}CONFIG_STR")


def _as_mapping(data: Any, source: str) -> dict[str, Any]:
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Configuration must be a mapping: {source}")
    return {k.lower(): v for k, v in data.items()}


class Settings(BaseSettings):
    """Courier configuration."""

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_nested_delimiter="__",
        extra="ignore",
    )

    debug: bool = False
    log_file: str | None = None
    transfer_name: str = "courier"
    download_dir: str = ".git/lfs/tmp/courier"
    address_scheme: str | None = None
    storage_provider: ComponentConfig
    mapping_store: ComponentConfig

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: Any,
        env_settings: Any,
        dotenv_settings: Any,
        file_secret_settings: Any,
    ) -> tuple[Callable[[], dict[str, Any]], ...]:
        """Layer settings sources in descending order of precedence."""
        return (
            init_settings,
            env_settings,
            _yaml_str_source,
            _yaml_file_source,
            _defaults_source,
        )


def configure(additional_config: dict[str, Any] | None = None) -> Settings:
    """Compose configuration object from all available sources."""
    overrides = {k.lower(): v for k, v in (additional_config or {}).items()}
    return Settings(**overrides)
