# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Subcommand handlers for the canarypkg CLI.

Each function here corresponds to one CLI subcommand and returns an exit
code from canarypkg.cli.exit_codes. Errors are mapped, never re-raised:

  - bad config file or malformed recipe  -> CONFIG_ERROR, nothing is run
  - unknown distro or unsafe version     -> USER_ERROR, nothing is run
  - any unit failed to build or push     -> RUNTIME_ERROR, after the rest ran
  - manifest missing or artifacts altered -> VALIDATION_ERROR

No print() calls. Everything goes through the structured logger; only the
child processes write straight to the terminal.
"""

import argparse
import logging
from dataclasses import replace
from pathlib import Path
from typing import Optional

from canarypkg.cli.exit_codes import CONFIG_ERROR, RUNTIME_ERROR, SUCCESS, USER_ERROR, VALIDATION_ERROR
from canarypkg.config.exceptions import ConfigError
from canarypkg.config.loader import load_config_or_default
from canarypkg.config.schema import CanaryConfig
from canarypkg.logging.logger import configure_package_logging, get_logger
from canarypkg.packaging.command import format_build_command, render_command
from canarypkg.packaging.exceptions import PackagingError
from canarypkg.packaging.manifest import (
    create_manifest,
    filter_packages,
    load_manifest,
    manifest_path,
    merge_packages,
    verify_manifest,
    write_manifest,
)
from canarypkg.packaging.models import ARCHITECTURES, BuildReport, Package
from canarypkg.packaging.recipes import select_recipes, validate_registry
from canarypkg.packaging.resolver import compose_version, resolve_all
from canarypkg.packaging.runner import build_units, package_for_unit
from canarypkg.publishing.publisher import PackagePublisher, remap_distro


def _load_and_configure(
    args: argparse.Namespace,
    command_name: str,
) -> tuple[int, Optional[CanaryConfig], logging.Logger]:
    """
    The shared setup every command needs: load config, settle logging.

    Returns (exit_code, config, logger). If exit_code is not SUCCESS the
    caller returns it immediately.

    --log-level on the command line wins over global.log_level in the file.
    """
    logger = get_logger(f"canarypkg.cli.{command_name}", log_level=args.log_level or "INFO")

    config_path = Path(args.config) if args.config is not None else None
    try:
        config = load_config_or_default(config_path)
    except ConfigError as err:
        logger.error(
            "Configuration error",
            extra={"command": command_name, "error": str(err)},
        )
        return CONFIG_ERROR, None, logger

    if config_path is None:
        logger.debug(
            "No config provided, running with defaults",
            extra={"command": command_name},
        )

    log_level = args.log_level
    log_file: Optional[Path] = None
    if config.global_config is not None:
        log_level = log_level or config.global_config.log_level
        if config.global_config.log_file is not None:
            log_file = _project_root(args) / config.global_config.log_file

    try:
        configure_package_logging(log_level or "INFO", log_file)
    except ValueError as err:
        logger.error("Configuration error", extra={"command": command_name, "error": str(err)})
        return CONFIG_ERROR, None, logger

    return SUCCESS, config, logger


def _project_root(args: argparse.Namespace) -> Path:
    """The directory fpm and package_cloud run in; all recipe paths are relative to it."""
    return Path(args.root).resolve()


def _version_from_args(args: argparse.Namespace) -> str:
    return compose_version(args.version, getattr(args, "date", None))


def _manifest_location(args: argparse.Namespace, config: CanaryConfig, version: str) -> Path:
    explicit = getattr(args, "manifest", None)
    if explicit is not None:
        return Path(explicit)
    return manifest_path(_project_root(args) / config.packaging.output_dir, version)


def _previous_packages(logger: logging.Logger, location: Path, version: str) -> list[Package]:
    """
    Packages an earlier run recorded at `location` for the same version.

    Building one distro at a time must not forget the others, so a build
    folds its results into these rather than starting over.
    """
    if not location.is_file():
        return []
    try:
        previous = load_manifest(location)
    except ValueError as err:
        logger.warning("Replacing unreadable manifest", extra={"path": str(location), "error": str(err)})
        return []
    if previous.version != version:
        logger.warning(
            "Replacing manifest for another version",
            extra={"path": str(location), "recorded": previous.version, "version": version},
        )
        return []
    return previous.packages


def _log_build_report(logger: logging.Logger, report: BuildReport) -> None:
    for failure in report.failures:
        logger.error(
            "Failed unit",
            extra={
                "distro": failure.distro,
                "release": failure.release,
                "arch": failure.arch,
                "exit_code": failure.exit_code,
                "reason": failure.reason,
                "command": failure.command,
            },
        )
    logger.info(
        "Build summary",
        extra={
            "built": len(report.packages),
            "failed": len(report.failures),
            "skipped": report.skipped,
        },
    )


def _publish(
    logger: logging.Logger,
    publisher: PackagePublisher,
    packages: list[Package],
    root: Path,
    dry_run: bool,
) -> bool:
    """Push packages (or just show the commands). Returns whether every push succeeded."""
    if dry_run:
        for package in packages:
            logger.info(
                "Dry run: would publish",
                extra={"command": render_command(publisher.format_push_command(package))},
            )
        return True

    report = publisher.publish_all(packages, root)
    return report.ok


def handle_build(args: argparse.Namespace) -> int:
    """Build the package matrix for a version, write the manifest, optionally publish."""
    exit_code, config, logger = _load_and_configure(args, "build")
    if exit_code != SUCCESS or config is None:
        return exit_code

    try:
        version = _version_from_args(args)
        validate_registry()
        recipes = select_recipes(args.distro)
        units = resolve_all(recipes, version, config.packaging)
    except ConfigError as err:
        logger.error("Invalid recipe", extra={"error": str(err)})
        return CONFIG_ERROR
    except PackagingError as err:
        logger.error("Invalid build request", extra={"error": str(err)})
        return USER_ERROR

    root = _project_root(args)
    settings = config.packaging
    fail_fast = args.fail_fast or settings.fail_fast

    logger.info(
        "Starting build",
        extra={
            "version": version,
            "distros": [recipe.distro for recipe in recipes],
            "architectures": list(ARCHITECTURES),
            "unit_count": len(units),
            "root": str(root),
            "fail_fast": fail_fast,
            "dry_run": args.dry_run,
        },
    )

    try:
        if args.dry_run:
            for unit in units:
                logger.info(
                    "Dry run: would build",
                    extra={"label": unit.label, "command": render_command(format_build_command(unit))},
                )
            if args.publish:
                publisher = PackagePublisher(config.publish)
                _publish(logger, publisher, [package_for_unit(u) for u in units], root, dry_run=True)
            return SUCCESS

        report = build_units(
            units,
            root,
            timeout_seconds=settings.timeout_seconds,
            verify_artifacts=settings.verify_artifacts,
            fail_fast=fail_fast,
        )
        _log_build_report(logger, report)

        location = _manifest_location(args, config, version)
        previous = _previous_packages(logger, location, version)
        if report.packages or previous:
            packages = merge_packages(previous, report.packages, [recipe.distro for recipe in recipes])
            write_manifest(create_manifest(version, packages, cwd=root), location)

        published_ok = True
        if args.publish and report.packages:
            publisher = PackagePublisher(config.publish)
            published_ok = _publish(logger, publisher, report.packages, root, dry_run=False)

        if not report.ok or not published_ok:
            return RUNTIME_ERROR

        logger.info("Build complete", extra={"version": version, "packages": len(report.packages)})
        return SUCCESS

    except Exception as err:
        logger.error("Build run crashed", extra={"error": str(err)}, exc_info=True)
        return RUNTIME_ERROR


def handle_publish(args: argparse.Namespace) -> int:
    """Push the packages recorded in a build manifest."""
    exit_code, config, logger = _load_and_configure(args, "publish")
    if exit_code != SUCCESS or config is None:
        return exit_code

    try:
        version = _version_from_args(args)
        validate_registry()
        if args.distro:
            select_recipes(args.distro)
    except ConfigError as err:
        logger.error("Invalid recipe", extra={"error": str(err)})
        return CONFIG_ERROR
    except PackagingError as err:
        logger.error("Invalid publish request", extra={"error": str(err)})
        return USER_ERROR

    root = _project_root(args)
    location = _manifest_location(args, config, version)

    try:
        manifest = load_manifest(location)
    except (FileNotFoundError, ValueError) as err:
        logger.error("Cannot read build manifest", extra={"path": str(location), "error": str(err)})
        return VALIDATION_ERROR

    try:
        packages = filter_packages(manifest.packages, args.distro)
        unrecorded = [d for d in args.distro or () if all(p.distro != d for p in packages)]
        if unrecorded:
            logger.error(
                "No packages recorded for requested distros",
                extra={"path": str(location), "distros": unrecorded},
            )
            return VALIDATION_ERROR
        if not packages:
            logger.warning("Nothing to publish", extra={"path": str(location), "distros": args.distro})
            return SUCCESS

        # Never push something other than what the build produced.
        verification = verify_manifest(replace(manifest, packages=packages), root)
        if not verification.is_valid:
            logger.error(
                "Refusing to publish altered or missing artifacts",
                extra={
                    "mismatches": verification.mismatches,
                    "missing": verification.missing_files,
                },
            )
            return VALIDATION_ERROR

        publisher = PackagePublisher(config.publish)
        if not _publish(logger, publisher, packages, root, args.dry_run):
            return RUNTIME_ERROR

        logger.info("Publish complete", extra={"version": version, "packages": len(packages)})
        return SUCCESS

    except Exception as err:
        logger.error("Publish run crashed", extra={"error": str(err)}, exc_info=True)
        return RUNTIME_ERROR


def handle_recipes(args: argparse.Namespace) -> int:
    """Show the declared recipes and how many units each expands to."""
    exit_code, config, logger = _load_and_configure(args, "recipes")
    if exit_code != SUCCESS or config is None:
        return exit_code

    try:
        validate_registry()
        recipes = select_recipes(args.distro)
    except ConfigError as err:
        logger.error("Invalid recipe", extra={"error": str(err)})
        return CONFIG_ERROR
    except PackagingError as err:
        logger.error("Invalid selection", extra={"error": str(err)})
        return USER_ERROR

    total_units = 0
    for recipe in recipes:
        units = len(recipe.releases) * len(ARCHITECTURES)
        total_units += units
        hosting_name = recipe.publish_distro or remap_distro(
            recipe.distro, config.publish.distro_aliases
        )
        logger.info(
            "Recipe",
            extra={
                "distro": recipe.distro,
                "package_type": recipe.package_type,
                "releases": [
                    f"{t.name}:{t.init_system}" if t.init_system else t.name
                    for t in recipe.releases
                ],
                "hooks": list(recipe.hooks),
                "config_files": dict(recipe.config_files),
                "publish_distro": hosting_name,
                "skip_docker": recipe.skip_docker,
                "unit_count": units,
            },
        )

    logger.info("Recipe registry", extra={"recipes": len(recipes), "unit_count": total_units})
    return SUCCESS


def handle_verify(args: argparse.Namespace) -> int:
    """Check built artifacts against their manifest."""
    exit_code, config, logger = _load_and_configure(args, "verify")
    if exit_code != SUCCESS or config is None:
        return exit_code

    try:
        version = _version_from_args(args)
    except PackagingError as err:
        logger.error("Invalid version", extra={"error": str(err)})
        return USER_ERROR

    location = _manifest_location(args, config, version)
    try:
        manifest = load_manifest(location)
    except (FileNotFoundError, ValueError) as err:
        logger.error("Cannot read build manifest", extra={"path": str(location), "error": str(err)})
        return VALIDATION_ERROR

    result = verify_manifest(manifest, _project_root(args))
    if not result.is_valid:
        return VALIDATION_ERROR

    logger.info(
        "Verification complete",
        extra={"version": version, "checked": result.checked_count, "unhashed": len(result.unhashed)},
    )
    return SUCCESS


def handle_info(args: argparse.Namespace) -> int:
    """Display environment, tool availability and effective settings."""
    exit_code, config, logger = _load_and_configure(args, "info")
    if exit_code != SUCCESS or config is None:
        return exit_code

    from canarypkg import __version__
    from canarypkg.runtime.environment import check_tool, get_system_info

    system_info = get_system_info()
    logger.info(
        "System information",
        extra={
            "canarypkg_version": __version__,
            "python_version": system_info.python_version,
            "platform": system_info.platform,
            "architecture": system_info.architecture,
            "hostname": system_info.hostname,
            "config": args.config,
            "root": str(_project_root(args)),
        },
    )

    for check in (
        check_tool("builder", config.packaging.builder_command),
        check_tool("publisher", config.publish.command),
    ):
        level = logging.INFO if check.found else logging.WARNING
        logger.log(
            level,
            "Tool check",
            extra={"tool": check.name, "command": check.command, "found": check.found, "location": check.location},
        )

    logger.info(
        "Effective settings",
        extra={
            "packaging": config.packaging.model_dump(),
            "publish_target": f"{config.publish.user}/{config.publish.repo}",
        },
    )
    return SUCCESS
