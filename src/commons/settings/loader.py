"""Layered settings loader: JSON files first, environment variables last."""

import json
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from src.commons.settings.models import Settings

ENV_PREFIX = "VIDEO_INTAKE__"
CONFIG_DIR_ENV = "VIDEO_INTAKE_CONFIG_DIR"


def deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into a copy of ``base``."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def coerce_env_value(raw: str) -> Any:
    """Decode JSON lists and objects; leave scalars for pydantic to coerce."""
    # Lists and dicts, e.g. VIDEO_INTAKE__TASKS__SUBNETS='["subnet-1"]'
    if raw.startswith(("[", "{")):
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            return raw

    return raw


class SettingsLoader:
    """Loads and merges configuration from multiple sources.

    Precedence, highest first:
    1. ``VIDEO_INTAKE__*`` environment variables
    2. ``appsettings.{environment}.json``
    3. ``appsettings.json``
    """

    def __init__(
        self,
        config_dir: Path | None = None,
        environment: str | None = None,
    ) -> None:
        """Initialize the settings loader.

        Args:
            config_dir: Directory holding the JSON files. Defaults to
                ``$VIDEO_INTAKE_CONFIG_DIR`` or ``./config``.
            environment: Environment name. Defaults to
                ``VIDEO_INTAKE__APP__ENVIRONMENT`` or ``dev``.
        """
        self.config_dir = config_dir or Path(os.getenv(CONFIG_DIR_ENV, "config"))
        self.environment = environment or os.getenv(
            f"{ENV_PREFIX}APP__ENVIRONMENT", "dev"
        )

    def load(self) -> Settings:
        """Resolve all layers into a validated Settings object."""
        layers = (
            self._read_json("appsettings.json"),
            self._read_json(f"appsettings.{self.environment}.json"),
            self._read_env(os.environ),
        )
        config: dict[str, Any] = {}
        for layer in layers:
            config = deep_merge(config, layer)
        return Settings(**config)

    def _read_env(self, environ: Mapping[str, str]) -> dict[str, Any]:
        """Fold ``VIDEO_INTAKE__A__B=v`` variables into ``{"a": {"b": v}}``."""
        tree: dict[str, Any] = {}
        for key, raw in environ.items():
            if not key.startswith(ENV_PREFIX):
                continue
            *parents, leaf = key[len(ENV_PREFIX) :].lower().split("__")
            node = tree
            for part in parents:
                node = node.setdefault(part, {})
            node[leaf] = coerce_env_value(raw)
        return tree

    def _read_json(self, filename: str) -> dict[str, Any]:
        path = self.config_dir / filename
        if not path.exists():
            return {}
        with path.open(encoding="utf-8") as f:
            return dict(json.load(f))


class _SettingsHolder:
    """Holder for the settings singleton to avoid global statements."""

    instance: Settings | None = None


def get_settings(
    config_dir: Path | None = None,
    environment: str | None = None,
    *,
    reload: bool = False,
) -> Settings:
    """Get or create the process-wide settings instance.

    Args:
        config_dir: Optional config directory override.
        environment: Optional environment override.
        reload: Force a fresh load from files and environment.

    Returns:
        Settings instance.
    """
    if _SettingsHolder.instance is None or reload:
        loader = SettingsLoader(config_dir=config_dir, environment=environment)
        _SettingsHolder.instance = loader.load()
    return _SettingsHolder.instance


def reset_settings() -> None:
    """Drop the cached settings instance (tests)."""
    _SettingsHolder.instance = None
