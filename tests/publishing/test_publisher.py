# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""Tests for the package publisher and hosting-name remapping."""

from pathlib import Path
from typing import Callable

import pytest

from canarypkg.config.schema import PublishConfig
from canarypkg.packaging.exceptions import PublishError
from canarypkg.packaging.models import Package
from canarypkg.publishing.publisher import PackagePublisher, remap_distro

VERSION = "1.2.3-20170101"


def _package(distro: str, release: str, publish_distro: str | None = None) -> Package:
    return Package(
        distro=distro,
        release=release,
        version=VERSION,
        path=f"releases/appcanary_{VERSION}_amd64_{distro}_{release}.pkg",
        publish_distro=publish_distro,
    )


class TestRemapDistro:
    @pytest.mark.parametrize("distro", ["centos", "amazon"])
    def test_el_family(self, distro: str) -> None:
        assert remap_distro(distro) == "el"

    def test_idempotent(self) -> None:
        assert remap_distro(remap_distro("centos")) == "el"
        assert remap_distro("el") == "el"

    @pytest.mark.parametrize("distro", ["ubuntu", "debian", "fedora", "gentoo"])
    def test_others_pass_through(self, distro: str) -> None:
        assert remap_distro(distro) == distro

    def test_custom_table(self) -> None:
        assert remap_distro("centos", {}) == "centos"
        assert remap_distro("rocky", {"rocky": "el"}) == "el"


class TestPushCommand:
    def test_centos_goes_to_el(self) -> None:
        publisher = PackagePublisher(PublishConfig(user="appcanary", repo="agent"))
        package = _package("centos", "7")

        assert publisher.format_push_command(package) == [
            "package_cloud", "push", "appcanary/agent/el/7", package.path,
        ]

    def test_ubuntu_unchanged(self) -> None:
        publisher = PackagePublisher()
        assert publisher.repo_path(_package("ubuntu", "trusty")) == "appcanary/agent/ubuntu/trusty"

    def test_package_override_wins(self) -> None:
        publisher = PackagePublisher(PublishConfig(distro_aliases={}))
        assert publisher.repo_path(_package("centos", "6", "el")) == "appcanary/agent/el/6"

    def test_configured_aliases_used(self) -> None:
        publisher = PackagePublisher(PublishConfig(distro_aliases={"redhat": "el"}))
        assert publisher.repo_path(_package("redhat", "7")) == "appcanary/agent/el/7"
        assert publisher.repo_path(_package("centos", "7")) == "appcanary/agent/centos/7"


class TestPublish:
    def test_publish_runs_push(
        self,
        project_root: Path,
        publish_settings: PublishConfig,
        tool_calls: Callable[[], list[dict]],
    ) -> None:
        publisher = PackagePublisher(publish_settings)
        package = _package("centos", "7")

        assert publisher.publish(package, project_root) == package
        assert tool_calls() == [
            {"tool": "package_cloud", "argv": ["push", "appcanary/agent/el/7", package.path]}
        ]

    def test_failed_push_raises(
        self, project_root: Path, publish_settings: PublishConfig, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("FAKE_PUSH_FAIL", "ubuntu/trusty")
        publisher = PackagePublisher(publish_settings)

        with pytest.raises(PublishError) as excinfo:
            publisher.publish(_package("ubuntu", "trusty"), project_root)
        assert excinfo.value.failure.exit_code == 1

    def test_publish_all_continues_after_failure(
        self,
        project_root: Path,
        publish_settings: PublishConfig,
        monkeypatch: pytest.MonkeyPatch,
        tool_calls: Callable[[], list[dict]],
    ) -> None:
        monkeypatch.setenv("FAKE_PUSH_FAIL", "el/6")
        publisher = PackagePublisher(publish_settings)
        packages = [_package("centos", "6"), _package("centos", "7"), _package("ubuntu", "xenial")]

        report = publisher.publish_all(packages, project_root)

        assert not report.ok
        assert len(tool_calls()) == 3
        assert [f.release for f in report.failures] == ["6"]
        assert [p.release for p in report.published] == ["7", "xenial"]

    def test_missing_publisher_tool(self, project_root: Path) -> None:
        publisher = PackagePublisher(PublishConfig(command=["/nonexistent/package_cloud"]))
        report = publisher.publish_all([_package("debian", "jessie")], project_root)
        assert report.failures[0].exit_code == 127
