"""
Import pipeline configuration.

Settings load from a YAML file and can be overridden per key through
TAXFLOW_* environment variables.

Expected YAML format:
```yaml
import:
  chunk_size: 5
  max_reported_errors: 20
  event_queue_size: 100

jurisdiction:
  strategy: bounding_box      # or: census
  geocoder:
    base_url: https://geocoding.geo.census.gov/geocoder
    timeout_seconds: 8
```
"""

import os
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field

from taxflow.core.jurisdiction.census_client import DEFAULT_BASE_URL, DEFAULT_TIMEOUT_SECONDS
from taxflow.observability.logger import get_logger

logger = get_logger(__name__)

DEFAULT_CONFIG_PATH = "config/import_settings.yaml"
ENV_PREFIX = "TAXFLOW_"


class ImportSettings(BaseModel):
    """
    Tunables for the import engine and jurisdiction lookup.

    Attributes:
        chunk_size: Rows resolved concurrently per chunk; bounds the number
            of in-flight geocoder calls
        geocoder_timeout_seconds: Per-request geocoder timeout
        max_reported_errors: Size of the error sample in the done event
        resolver_strategy: "bounding_box" (offline) or "census"
        census_base_url: Geocoder root URL
        event_queue_size: Event channel capacity before the engine waits
            for the consumer
    """

    chunk_size: int = Field(5, ge=1, le=100)
    geocoder_timeout_seconds: float = Field(DEFAULT_TIMEOUT_SECONDS, gt=0, le=60)
    max_reported_errors: int = Field(20, ge=0)
    resolver_strategy: Literal["bounding_box", "census"] = "bounding_box"
    census_base_url: str = DEFAULT_BASE_URL
    event_queue_size: int = Field(100, ge=1)


class SettingsLoader:
    """
    Loads ImportSettings from a YAML file plus environment overrides.
    """

    # YAML path -> settings field
    YAML_KEYS = {
        ("import", "chunk_size"): "chunk_size",
        ("import", "max_reported_errors"): "max_reported_errors",
        ("import", "event_queue_size"): "event_queue_size",
        ("jurisdiction", "strategy"): "resolver_strategy",
        ("jurisdiction", "geocoder", "base_url"): "census_base_url",
        ("jurisdiction", "geocoder", "timeout_seconds"): "geocoder_timeout_seconds",
    }

    def __init__(self, config_path: str | Path | None = None, environ: dict[str, str] | None = None):
        """
        Initialize the settings loader.

        Args:
            config_path: Path to the YAML file (missing file means defaults)
            environ: Environment mapping (defaults to os.environ)
        """
        self.config_path = Path(config_path or DEFAULT_CONFIG_PATH)
        self.environ = os.environ if environ is None else environ

    def load(self) -> ImportSettings:
        """
        Build settings: defaults, then YAML, then environment.

        Raises:
            ValueError: If the YAML is not a mapping
            pydantic.ValidationError: If a value is out of range
        """
        values = self._load_yaml()
        values.update(self._load_env())
        return ImportSettings(**values)

    def _load_yaml(self) -> dict[str, Any]:
        if not self.config_path.exists():
            logger.info(f"Settings file not found, using defaults: {self.config_path}")
            return {}

        with open(self.config_path) as f:
            config = yaml.safe_load(f) or {}

        if not isinstance(config, dict):
            raise ValueError(f"Settings file must contain a mapping: {self.config_path}")

        values = {}
        for path, field_name in self.YAML_KEYS.items():
            node: Any = config
            for key in path:
                if not isinstance(node, dict) or key not in node:
                    node = None
                    break
                node = node[key]
            if node is not None:
                values[field_name] = node
        return values

    def _load_env(self) -> dict[str, str]:
        values = {}
        for field_name in ImportSettings.model_fields:
            env_name = f"{ENV_PREFIX}{field_name.upper()}"
            if env_name in self.environ:
                values[field_name] = self.environ[env_name]
        return values


def load_settings(config_path: str | Path | None = None) -> ImportSettings:
    """Convenience wrapper around SettingsLoader."""
    return SettingsLoader(config_path).load()
