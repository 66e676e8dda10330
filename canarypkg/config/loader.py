# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Config loader for canarypkg.

The config file is optional. Without one, every release is built with
the stock appcanary layout and plain `fpm`/`package_cloud` from PATH.
With one, it is read as YAML and validated against CanaryConfig; any
problem there ends the run before fpm is ever invoked.
"""

from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import ValidationError

from canarypkg.config.exceptions import ConfigLoadError, ConfigValidationError
from canarypkg.config.schema import CanaryConfig


def _read_yaml_file(config_path: Path) -> dict[str, Any]:
    """
    Parse a YAML mapping from disk.

    Raises:
        ConfigLoadError: Missing path, a directory, unreadable, not YAML,
            or YAML that isn't a mapping at the top level.
    """
    if not config_path.is_file():
        reason = "is not a file" if config_path.exists() else "not found"
        raise ConfigLoadError(f"Config file {reason}: {config_path}")

    try:
        with config_path.open(encoding="utf-8") as stream:
            parsed = yaml.safe_load(stream)
    except (OSError, UnicodeDecodeError) as err:
        raise ConfigLoadError(f"Cannot read config file {config_path}: {err}") from err
    except yaml.YAMLError as err:
        raise ConfigLoadError(f"Invalid YAML in {config_path}: {err}") from err

    # An empty file means "all defaults".
    if parsed is None:
        return {}
    if not isinstance(parsed, dict):
        raise ConfigLoadError(
            f"Config file must contain a YAML mapping, got {type(parsed).__name__}: {config_path}"
        )
    return parsed


def load_config(config_path: Path) -> CanaryConfig:
    """
    Load and validate a config file.

    Raises:
        ConfigLoadError: File I/O or YAML parse failures.
        ConfigValidationError: Unknown keys, wrong types, bad paths, or a
            `global:` section without config_version.
    """
    raw_data = _read_yaml_file(config_path)

    try:
        return CanaryConfig.model_validate(raw_data)
    except ValidationError as err:
        raise ConfigValidationError(f"Config validation failed for {config_path}:\n{err}") from err


def default_config() -> CanaryConfig:
    return CanaryConfig()


def load_config_or_default(config_path: Optional[Path]) -> CanaryConfig:
    """What --config resolves to: the file when given, the stock settings otherwise."""
    if config_path is None:
        return default_config()
    return load_config(config_path)
