# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
In-process tests for the subcommand handlers.

The smoke tests drive the shipped registry through a subprocess; these
swap in a failing registry check to make sure build and publish refuse to
start anything when the declarations themselves are wrong.
"""

import argparse
from pathlib import Path
from typing import Callable
from unittest.mock import patch

from canarypkg.cli.commands import handle_build, handle_publish
from canarypkg.cli.exit_codes import CONFIG_ERROR
from canarypkg.config.exceptions import RecipeValidationError

_DUPLICATE = RecipeValidationError("Distro 'centos' is declared by more than one recipe")


def _make_args(**kwargs) -> argparse.Namespace:
    """Build a fake argparse.Namespace for testing CLI handlers."""
    defaults = {
        "config": None,
        "log_level": "DEBUG",
        "dry_run": False,
        "root": ".",
        "version": "1.2.3",
        "date": "20170101",
        "distro": None,
        "manifest": None,
        "fail_fast": False,
        "publish": False,
    }
    defaults.update(kwargs)
    return argparse.Namespace(**defaults)


class TestRegistryCheckedBeforeWork:
    def test_build_stops_with_config_error(
        self, tmp_config_file: Path, project_root: Path, tool_calls: Callable[[], list[dict]]
    ) -> None:
        args = _make_args(config=str(tmp_config_file), root=str(project_root), publish=True)

        with patch("canarypkg.cli.commands.validate_registry", side_effect=_DUPLICATE):
            assert handle_build(args) == CONFIG_ERROR

        assert tool_calls() == []
        assert not (project_root / "releases").exists()

    def test_publish_stops_with_config_error(
        self, tmp_config_file: Path, project_root: Path, tool_calls: Callable[[], list[dict]]
    ) -> None:
        args = _make_args(config=str(tmp_config_file), root=str(project_root))

        with patch("canarypkg.cli.commands.validate_registry", side_effect=_DUPLICATE):
            assert handle_publish(args) == CONFIG_ERROR

        assert tool_calls() == []
