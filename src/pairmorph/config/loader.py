"""
Configuration loader for PairMorph.

Handles loading configuration from YAML files and writing the default one.
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .models import PairMorphConfig


class ConfigurationError(Exception):
    """Raised when configuration is invalid."""

    pass


DEFAULT_CONFIG_NAME = "pairmorph.yaml"


def load_config_from_yaml(config_path: Path) -> PairMorphConfig:
    """Load configuration from a YAML file."""
    if not config_path.exists():
        raise ConfigurationError(f"Configuration file not found: {config_path}")

    with open(config_path, encoding="utf-8") as f:
        try:
            raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in configuration file: {e}")

    if raw_config is None:
        raise ConfigurationError("Configuration file is empty")
    if not isinstance(raw_config, dict):
        raise ConfigurationError("Configuration file must contain a mapping")

    try:
        return PairMorphConfig(**raw_config)
    except ValidationError as e:
        raise ConfigurationError(f"Configuration validation failed:\n{e}")


def load_config(config_path: Path | None = None, search_dir: Path | None = None) -> PairMorphConfig:
    """
    Load an explicit config file, or pairmorph.yaml from the search directory.

    Falls back to the built-in defaults when neither exists.
    """
    if config_path is not None:
        return load_config_from_yaml(config_path)

    candidate = (search_dir or Path.cwd()) / DEFAULT_CONFIG_NAME
    if candidate.exists():
        return load_config_from_yaml(candidate)
    return PairMorphConfig()


def default_config() -> dict[str, Any]:
    """The default configuration as plain data."""
    return PairMorphConfig().model_dump(mode="json")


def generate_default_config(output_path: Path) -> None:
    """Generate a default configuration file."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        yaml.dump(default_config(), f, default_flow_style=False, sort_keys=False, allow_unicode=True)
