# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Recipe registry: one declaration per supported distro family.

The registry is a plain tuple built at import time and never mutated. To
add a distro, add a Recipe literal to RECIPES and the matching
package/<distro>/<release>/ trees and hook scripts.

Validation is structural only. A malformed recipe is a defect in this
file, so it surfaces as RecipeValidationError (a ConfigError) and stops
the run before anything is built.
"""

import logging
from typing import Optional, Sequence

from canarypkg.config.exceptions import RecipeValidationError
from canarypkg.logging.logger import get_logger
from canarypkg.packaging.exceptions import UnknownRecipeError
from canarypkg.packaging.models import (
    HOOK_SCRIPTS,
    INIT_SYSTEMS,
    PACKAGE_TYPES,
    Recipe,
    ReleaseTarget,
)

logger: logging.Logger = get_logger(__name__)

DEFAULT_CONFIG_FILES: tuple[tuple[str, str], ...] = (
    ("etc/appcanary/agent.yml", "/etc/appcanary/agent.yml"),
    ("var/db/appcanary/server.yml", "/var/db/appcanary/server.yml"),
)

# deb and rpm agents ship a sample config so a fresh install does not
# start watching anything until the operator renames it.
DPKG_SAMPLE_CONFIG_FILES: tuple[tuple[str, str], ...] = (
    ("etc/appcanary/dpkg.agent.yml", "/etc/appcanary/agent.yml.sample"),
    ("var/db/appcanary/server.yml", "/var/db/appcanary/server.yml.sample"),
)

RPM_SAMPLE_CONFIG_FILES: tuple[tuple[str, str], ...] = (
    ("etc/appcanary/rpm.agent.yml", "/etc/appcanary/agent.yml.sample"),
    ("var/db/appcanary/server.yml", "/var/db/appcanary/server.yml.sample"),
)


def _releases(init_system: Optional[str], *names: str) -> tuple[ReleaseTarget, ...]:
    return tuple(ReleaseTarget(name=name, init_system=init_system) for name in names)


RECIPES: tuple[Recipe, ...] = (
    Recipe(
        distro="ubuntu",
        releases=(
            ReleaseTarget("trusty", "upstart"),
            ReleaseTarget("precise", "upstart"),
            ReleaseTarget("vivid", "systemd"),
            ReleaseTarget("utopic", "upstart"),
            ReleaseTarget("wily", "systemd"),
            ReleaseTarget("xenial", "systemd"),
            ReleaseTarget("yakkety", "systemd"),
            ReleaseTarget("zesty", "systemd"),
        ),
        package_type="deb",
        config_files=DPKG_SAMPLE_CONFIG_FILES,
    ),
    # amazon/2015.03 is el/6 underneath; it is left out until someone
    # checks the el/6 packages actually install there.
    Recipe(
        distro="centos",
        releases=(
            ReleaseTarget("5", "sysv", config_files=DEFAULT_CONFIG_FILES),
            ReleaseTarget("6", "sysv", config_files=DEFAULT_CONFIG_FILES),
            ReleaseTarget("7", "systemd"),
        ),
        package_type="rpm",
        # only el7 ships a sample; 5 and 6 install a live config
        config_files=RPM_SAMPLE_CONFIG_FILES,
        publish_distro="el",
    ),
    Recipe(
        distro="redhat",
        releases=(ReleaseTarget("6", "sysv"), ReleaseTarget("7", "systemd")),
        package_type="rpm",
        config_files=DEFAULT_CONFIG_FILES,
    ),
    Recipe(
        distro="debian",
        releases=(
            ReleaseTarget("jessie", "systemd"),
            ReleaseTarget("wheezy", "sysv"),
            ReleaseTarget("squeeze", "sysv"),
        ),
        package_type="deb",
        config_files=DPKG_SAMPLE_CONFIG_FILES,
    ),
    Recipe(
        distro="linuxmint",
        releases=_releases("upstart", "rosa", "rafaela", "rebecca", "qiana"),
        package_type="deb",
        config_files=DEFAULT_CONFIG_FILES,
        skip_docker=True,
    ),
    Recipe(
        distro="fedora",
        releases=_releases("systemd", "24", "23"),
        package_type="rpm",
        config_files=DEFAULT_CONFIG_FILES,
        skip_docker=True,
    ),
)


def _validate_config_files(where: str, config_files: Sequence[tuple[str, str]]) -> None:
    for source, destination in config_files:
        if not source or source.startswith("/"):
            raise RecipeValidationError(
                f"{where} config template '{source}' must be a non-empty relative path"
            )
        if not destination.startswith("/"):
            raise RecipeValidationError(
                f"{where} config destination '{destination}' must be absolute"
            )


def validate_recipe(recipe: Recipe) -> None:
    """
    Check one recipe's structure.

    Raises:
        RecipeValidationError: On the first structural problem found.
    """
    where = f"recipe '{recipe.distro}'"

    if not recipe.distro:
        raise RecipeValidationError("Recipe has an empty distro identifier")

    if not recipe.releases:
        raise RecipeValidationError(f"{where} declares no releases")

    seen: set[str] = set()
    for target in recipe.releases:
        if not target.name:
            raise RecipeValidationError(f"{where} has an empty release name")
        if target.name in seen:
            raise RecipeValidationError(f"{where} declares release '{target.name}' twice")
        seen.add(target.name)
        if target.init_system is not None and target.init_system not in INIT_SYSTEMS:
            raise RecipeValidationError(
                f"{where} release '{target.name}' has unknown init system "
                f"'{target.init_system}'. Expected one of: {', '.join(sorted(INIT_SYSTEMS))}"
            )
        if target.config_files is not None:
            _validate_config_files(f"{where} release '{target.name}'", target.config_files)

    if recipe.package_type not in PACKAGE_TYPES:
        raise RecipeValidationError(
            f"{where} has unknown package type '{recipe.package_type}'. "
            f"Expected one of: {', '.join(sorted(PACKAGE_TYPES))}"
        )

    _validate_config_files(where, recipe.config_files)

    if "after-install" not in recipe.hooks:
        raise RecipeValidationError(f"{where} must wire the after-install hook")
    for hook in recipe.hooks:
        if hook not in HOOK_SCRIPTS:
            raise RecipeValidationError(
                f"{where} has unknown hook '{hook}'. "
                f"Expected one of: {', '.join(HOOK_SCRIPTS)}"
            )
    if len(set(recipe.hooks)) != len(recipe.hooks):
        raise RecipeValidationError(f"{where} lists a hook more than once")


def validate_registry(recipes: Sequence[Recipe] = RECIPES) -> None:
    """Validate every recipe and make sure each distro is declared once."""
    seen: set[str] = set()
    for recipe in recipes:
        validate_recipe(recipe)
        if recipe.distro in seen:
            raise RecipeValidationError(f"Distro '{recipe.distro}' is declared by more than one recipe")
        seen.add(recipe.distro)

    logger.debug("Recipe registry validated", extra={"recipe_count": len(recipes)})


def list_recipes() -> tuple[Recipe, ...]:
    return RECIPES


def get_recipe(distro: str, recipes: Sequence[Recipe] = RECIPES) -> Recipe:
    """
    Look up a recipe by distro identifier.

    Raises:
        UnknownRecipeError: If no recipe declares that distro.
    """
    for recipe in recipes:
        if recipe.distro == distro:
            return recipe
    known = ", ".join(r.distro for r in recipes)
    raise UnknownRecipeError(f"No recipe for distro '{distro}'. Known distros: {known}")


def select_recipes(
    distros: Optional[Sequence[str]] = None,
    recipes: Sequence[Recipe] = RECIPES,
) -> list[Recipe]:
    """
    Pick the recipes to work on, always in registry declaration order.

    None or an empty selection means every recipe. Unknown names fail the
    whole selection rather than silently building less than was asked for.
    """
    if not distros:
        return list(recipes)

    for distro in distros:
        get_recipe(distro, recipes)
    wanted = set(distros)

    return [recipe for recipe in recipes if recipe.distro in wanted]
