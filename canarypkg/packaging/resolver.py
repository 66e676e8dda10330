# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Build unit resolver: expands a recipe into its release × architecture matrix.

For a recipe with R releases the resolver yields R × len(ARCHITECTURES)
units, releases in declaration order and architectures in ARCHITECTURES
order within each release. That order is the build order and the log
order, so it is part of the contract.

Resolution is pure. It computes every path the builder will need but
never looks at the filesystem; missing inputs show up as fpm failures
for the affected unit.
"""

import logging
import re
from pathlib import PurePosixPath
from typing import Optional, Sequence

from canarypkg.config.schema import PackagingConfig
from canarypkg.logging.logger import get_logger
from canarypkg.packaging.exceptions import InvalidVersionError
from canarypkg.packaging.models import ARCHITECTURES, HOOK_SCRIPTS, BuildUnit, Recipe, ReleaseTarget
from canarypkg.packaging.recipes import validate_recipe

logger: logging.Logger = get_logger(__name__)

# Versions end up verbatim in artifact filenames and in dist/<version>/.
_VERSION_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9.+~_-]*$")


def validate_version(version: str) -> str:
    """
    Make sure a version string is non-empty and safe to use as a path segment.

    Raises:
        InvalidVersionError: If it is empty or contains anything outside
            letters, digits and . + ~ _ -
    """
    if not version:
        raise InvalidVersionError("Version must not be empty")
    if not _VERSION_PATTERN.match(version):
        raise InvalidVersionError(
            f"Version '{version}' is not path-safe. Use letters, digits and . + ~ _ - only, "
            f"starting with a letter or digit."
        )
    return version


def compose_version(base: str, date: Optional[str] = None) -> str:
    """
    Build the package version from a base version and an optional build date.

    Releases have always been stamped as <version>-<date>, e.g.
    1.2.3-20170101, so rebuilding the same agent on a later day produces
    distinct, ordered package versions.
    """
    version = f"{base}-{date}" if date else base
    return validate_version(version)


def artifact_filename(name: str, version: str, arch: str, distro: str, release: str, package_type: str) -> str:
    return f"{name}_{version}_{arch}_{distro}_{release}.{package_type}"


def _resolve_unit(
    recipe: Recipe,
    target: ReleaseTarget,
    arch: str,
    version: str,
    settings: PackagingConfig,
) -> BuildUnit:
    package_dir = PurePosixPath(settings.package_root) / recipe.distro / target.name
    arch_dir = settings.binary_arch_dirs.get(arch, arch)
    binary_source = (
        PurePosixPath(settings.dist_root) / version / f"linux_{arch_dir}" / settings.binary_name
    )
    output_path = PurePosixPath(settings.output_dir) / artifact_filename(
        settings.name, version, arch, recipe.distro, target.name, recipe.package_type
    )
    config_root = PurePosixPath(settings.config_root)
    config_files = target.config_files if target.config_files is not None else recipe.config_files

    return BuildUnit(
        distro=recipe.distro,
        release=target.name,
        init_system=target.init_system,
        arch=arch,
        version=version,
        package_type=recipe.package_type,
        publish_distro=recipe.publish_distro,
        skip_docker=recipe.skip_docker,
        name=settings.name,
        vendor=settings.vendor,
        license=settings.license,
        target_os=settings.target_os,
        directories=tuple(settings.directories),
        builder_command=tuple(settings.builder_command),
        package_dir=package_dir,
        files_dir=package_dir / "files",
        binary_source=binary_source,
        binary_destination=settings.binary_destination,
        output_path=output_path,
        hook_scripts=tuple((hook, package_dir / HOOK_SCRIPTS[hook]) for hook in recipe.hooks),
        config_files=tuple(
            (config_root / source, destination) for source, destination in config_files
        ),
    )


def resolve_build_units(
    recipe: Recipe,
    version: str,
    settings: Optional[PackagingConfig] = None,
) -> list[BuildUnit]:
    """
    Expand one recipe into its ordered list of build units.

    Args:
        recipe: The recipe to expand.
        version: Full package version, e.g. "1.2.3-20170101".
        settings: Packaging settings; stock defaults when None.

    Returns:
        One BuildUnit per (release, arch), release-major order.

    Raises:
        RecipeValidationError: If the recipe is structurally invalid.
        InvalidVersionError: If the version is empty or not path-safe.
    """
    validate_recipe(recipe)
    validate_version(version)
    if settings is None:
        settings = PackagingConfig()

    units = [
        _resolve_unit(recipe, target, arch, version, settings)
        for target in recipe.releases
        for arch in ARCHITECTURES
    ]

    logger.debug(
        "Resolved build units",
        extra={
            "distro": recipe.distro,
            "version": version,
            "releases": len(recipe.releases),
            "unit_count": len(units),
        },
    )
    return units


def resolve_all(
    recipes: Sequence[Recipe],
    version: str,
    settings: Optional[PackagingConfig] = None,
) -> list[BuildUnit]:
    """Resolve several recipes back to back, keeping recipe order."""
    units: list[BuildUnit] = []
    for recipe in recipes:
        units.extend(resolve_build_units(recipe, version, settings))
    return units
