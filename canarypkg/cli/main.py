# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
CLI entrypoint for canarypkg.

This is the single root command; every operation is a subcommand.

The global options (--config, --log-level, --dry-run, --root) are
inherited by every subcommand through argparse's parent parser mechanism.

Usage:
    canarypkg build 1.2.3 --date 20170101
    canarypkg build 1.2.3-20170101 --distro ubuntu --distro centos --publish
    canarypkg publish 1.2.3-20170101 --distro centos
    canarypkg verify 1.2.3-20170101
    canarypkg recipes
    canarypkg info --config packaging.yaml
"""

import argparse
import sys

from canarypkg.cli.commands import (
    handle_build,
    handle_info,
    handle_publish,
    handle_recipes,
    handle_verify,
)
from canarypkg.cli.exit_codes import USER_ERROR


def _build_global_parser() -> argparse.ArgumentParser:
    """
    Build the parent parser with global options.

    add_help=False so help text doesn't collide between the parent and
    the subcommand parsers.
    """
    parent = argparse.ArgumentParser(add_help=False)
    parent.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to YAML configuration file.",
    )
    parent.add_argument(
        "--log-level",
        type=str,
        default=None,
        dest="log_level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set the logging verbosity level (overrides global.log_level).",
    )
    parent.add_argument(
        "--dry-run",
        action="store_true",
        default=False,
        dest="dry_run",
        help="Log the commands that would run without running them.",
    )
    parent.add_argument(
        "--root",
        type=str,
        default=".",
        help="Project root holding package/, dist/ and releases/ (default: current directory).",
    )
    return parent


def _add_version_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "version",
        help="Agent version, e.g. 1.2.3, or a full package version like 1.2.3-20170101.",
    )
    parser.add_argument(
        "--date",
        type=str,
        default=None,
        help="Build date appended as <version>-<date>.",
    )


def _add_distro_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--distro",
        action="append",
        default=None,
        help="Only work on this distro. Repeat for several; default is every recipe.",
    )


def _add_manifest_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--manifest",
        type=str,
        default=None,
        help="Build manifest path (default: <output_dir>/manifest-<version>.json).",
    )


def _register_subcommands(
    subparsers: argparse._SubParsersAction,  # type: ignore[type-arg]
    parent: argparse.ArgumentParser,
) -> None:
    """
    Register all subcommands with their handler functions.

    Each subcommand gets the global options from the parent parser and sets
    its handler via set_defaults(func=...).
    """
    build = subparsers.add_parser(
        "build", parents=[parent], help="Build packages for every distro, release and architecture."
    )
    _add_version_arguments(build)
    _add_distro_argument(build)
    _add_manifest_argument(build)
    build.add_argument(
        "--fail-fast",
        action="store_true",
        default=False,
        dest="fail_fast",
        help="Stop at the first failed build instead of reporting and continuing.",
    )
    build.add_argument(
        "--publish",
        action="store_true",
        default=False,
        help="Push every successfully built package afterwards.",
    )
    build.set_defaults(func=handle_build)

    publish = subparsers.add_parser(
        "publish", parents=[parent], help="Push packages listed in a build manifest."
    )
    _add_version_arguments(publish)
    _add_distro_argument(publish)
    _add_manifest_argument(publish)
    publish.set_defaults(func=handle_publish)

    verify = subparsers.add_parser(
        "verify", parents=[parent], help="Check built packages against their manifest."
    )
    _add_version_arguments(verify)
    _add_manifest_argument(verify)
    verify.set_defaults(func=handle_verify)

    recipes = subparsers.add_parser(
        "recipes", parents=[parent], help="Show the declared distro recipes."
    )
    _add_distro_argument(recipes)
    recipes.set_defaults(func=handle_recipes)

    info = subparsers.add_parser(
        "info", parents=[parent], help="Display environment, tools and settings."
    )
    info.set_defaults(func=handle_info)


def main() -> None:
    """
    Main CLI entrypoint. This is what pyproject.toml's [project.scripts] points to.

    If no subcommand is given, we show help and exit with USER_ERROR.
    """
    parent = _build_global_parser()

    root_parser = argparse.ArgumentParser(
        prog="canarypkg",
        description="Build and publish appcanary agent packages.",
        parents=[parent],
    )
    subparsers = root_parser.add_subparsers(dest="command")
    _register_subcommands(subparsers, parent)

    args = root_parser.parse_args()

    if not hasattr(args, "func") or args.func is None:
        root_parser.print_help()
        sys.exit(USER_ERROR)

    exit_code = args.func(args)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
