# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""Tests for path helpers used to lay out fpm arguments."""

from pathlib import Path, PurePosixPath

import pytest

from canarypkg.utils.paths import ensure_directory, relative_to_dir, resolve_under_root


class TestRelativeToDir:
    def test_binary_from_files_dir(self) -> None:
        assert relative_to_dir(
            PurePosixPath("dist/1.2.3-20170101/linux_amd64/appcanary"),
            PurePosixPath("package/ubuntu/trusty/files"),
        ) == "../../../../dist/1.2.3-20170101/linux_amd64/appcanary"

    def test_config_template_from_files_dir(self) -> None:
        assert relative_to_dir(
            PurePosixPath("package/config/etc/appcanary/agent.yml"),
            PurePosixPath("package/centos/7/files"),
        ) == "../../../config/etc/appcanary/agent.yml"

    def test_does_not_touch_disk(self, tmp_path: Path) -> None:
        # neither path exists
        assert relative_to_dir(PurePosixPath("a/b"), PurePosixPath("a/c")) == "../b"

    def test_absolute_target_is_unchanged(self) -> None:
        assert relative_to_dir(
            PurePosixPath("/opt/dist/1.2.3/linux_amd64/appcanary"),
            PurePosixPath("package/redhat/6/files"),
        ) == "/opt/dist/1.2.3/linux_amd64/appcanary"

    def test_absolute_target_from_absolute_dir(self) -> None:
        assert relative_to_dir(
            PurePosixPath("/opt/dist/appcanary"), PurePosixPath("/srv/package/redhat/6/files")
        ) == "/opt/dist/appcanary"

    def test_ignores_current_directory(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        assert relative_to_dir(
            PurePosixPath("/opt/dist/appcanary"), PurePosixPath("package/redhat/6/files")
        ) == "/opt/dist/appcanary"

    def test_relative_target_in_absolute_dir_rejected(self) -> None:
        with pytest.raises(ValueError, match="absolute directory"):
            relative_to_dir(PurePosixPath("dist/appcanary"), PurePosixPath("/srv/package/files"))


class TestResolveUnderRoot:
    def test_joins_posix_parts(self, tmp_path: Path) -> None:
        resolved = resolve_under_root(tmp_path, PurePosixPath("releases/appcanary.deb"))
        assert resolved == tmp_path / "releases" / "appcanary.deb"


class TestEnsureDirectory:
    def test_creates_nested(self, tmp_path: Path) -> None:
        target = tmp_path / "releases" / "1.2.3"
        assert ensure_directory(target) == target
        assert target.is_dir()

    def test_existing_is_fine(self, tmp_path: Path) -> None:
        assert ensure_directory(tmp_path) == tmp_path
