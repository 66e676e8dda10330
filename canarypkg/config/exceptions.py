# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Configuration errors.

Everything here maps to CONFIG_ERROR at the CLI and is raised before a
single subprocess starts: a bad file, a bad value in it, or a recipe in
the registry that doesn't hold together.
"""


class ConfigError(Exception):
    """Base for all configuration errors."""


class ConfigLoadError(ConfigError):
    """The config file is missing, unreadable, or not a YAML mapping."""


class ConfigValidationError(ConfigError):
    """The YAML parsed but doesn't fit the schema (unknown key, wrong type, relative path)."""


class RecipeValidationError(ConfigError):
    """
    A declared recipe is malformed: no releases, a relative config
    destination, an unknown package type or hook, or a duplicate key.
    """
