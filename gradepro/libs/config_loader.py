"""Layered YAML configuration for gradepro.

Files under ``config/`` are merged in order; later files override nested keys
of earlier ones. ``config/local.yaml`` is meant for API keys and other
machine-specific overrides and is not committed.
"""

import copy
import logging
from pathlib import Path
from typing import Any, Iterable, Optional, Union

import yaml

LOG = logging.getLogger(__name__)

ConfigType = dict[str, Any]
PathLike = Union[str, Path]

CONFIG_DIR = Path(__file__).resolve().parents[2] / "config"
YAML_SUFFIXES = (".yaml", ".yml")

_MISSING = object()


def merge_configs(base: Any, override: Any) -> Any:
    """Deep merge two config trees. Neither argument is modified.

    Dicts merge key by key; any other value in ``override`` replaces the base.
    """
    if not (isinstance(base, dict) and isinstance(override, dict)):
        return copy.deepcopy(override)
    merged = copy.deepcopy(base)
    for key, value in override.items():
        merged[key] = merge_configs(base[key], value) if key in base else copy.deepcopy(value)
    return merged


def _read_yaml(path: Path) -> Optional[ConfigType]:
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is not None and not isinstance(data, dict):
        raise TypeError(f"YAML config file {path} must be a dict")
    return data


def load_configs(*path_configs: PathLike) -> ConfigType:
    """Load and merge YAML configuration files.

    Args:
        *path_configs: Paths to YAML configuration files, lowest priority first

    Returns:
        Merged configuration dictionary

    Raises:
        TypeError: If a config file doesn't contain a dict
        ValueError: If no configs are loaded
    """
    result: ConfigType = {}
    for path in map(Path, path_configs):
        if not path.is_file():
            LOG.warning("Skipping missing config file %r", str(path))
            continue
        LOG.info("loading config from %s", path)
        data = _read_yaml(path)
        if data:
            result = merge_configs(result, data)
    if not result:
        raise ValueError("No configs loaded")
    return result


def _yaml_files(config_dir: Path) -> Iterable[Path]:
    return sorted(p for p in config_dir.iterdir() if p.suffix in YAML_SUFFIXES)


def load_default_configs(config_dir: Path = CONFIG_DIR) -> ConfigType:
    """Load ``default.yaml`` overlaid with ``local.yaml`` (if present)."""
    return load_configs(config_dir / "default.yaml", config_dir / "local.yaml")


def load_all_configs(config_dir: Path = CONFIG_DIR) -> ConfigType:
    """Load every ``*.yaml``/``*.yml`` file in the config directory, alphabetically.

    Raises:
        ValueError: If the directory is missing or holds no YAML files
    """
    if not config_dir.is_dir():
        raise ValueError(f"Config directory not found: {config_dir}")
    yaml_files = list(_yaml_files(config_dir))
    if not yaml_files:
        raise ValueError("No YAML files found in config directory")
    return load_configs(*yaml_files)


def get_config(key: str, config: Optional[ConfigType] = None, default: Any = _MISSING) -> Any:
    """Get a configuration value by dot-separated key.

    Args:
        key: Dot-separated path to config value (e.g., "grading.timeout_seconds")
        config: Configuration dict (if None, the default configs are loaded)
        default: Value returned when the key is absent (if omitted, a KeyError is raised)

    Raises:
        KeyError: If key not found in configuration and no default was given
    """
    value: Any = load_default_configs() if config is None else config
    for part in key.split('.'):
        if isinstance(value, dict) and part in value:
            value = value[part]
        elif default is not _MISSING:
            return default
        else:
            raise KeyError(f"Key {key} not found in configuration")
    return value
