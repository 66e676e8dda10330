# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""Tests for environment inspection used by `canarypkg info`."""

import sys
from pathlib import Path

from canarypkg.runtime.environment import check_tool, get_system_info


class TestSystemInfo:
    def test_fields_are_populated(self) -> None:
        info = get_system_info()
        assert info.python_version.count(".") == 2
        assert info.platform


class TestCheckTool:
    def test_finds_interpreter(self) -> None:
        check = check_tool("builder", [sys.executable, "fake_fpm.py"])
        assert check.found
        assert check.location == sys.executable
        assert check.command == f"{sys.executable} fake_fpm.py"

    def test_only_first_word_is_checked(self) -> None:
        check = check_tool("builder", [sys.executable, "exec", "definitely-not-a-tool"])
        assert check.found

    def test_missing_tool(self, tmp_path: Path) -> None:
        check = check_tool("publisher", [str(tmp_path / "package_cloud")])
        assert not check.found
        assert check.location == "not found"
