# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Publisher: pushes built packages to the package hosting service.

One package_cloud invocation per package:

    package_cloud push <user>/<repo>/<distro>/<release> <artifact>

The hosting service files CentOS and Amazon Linux packages under "el", so
those distro names are remapped before building the repo path. A recipe
can also pin its hosting name explicitly, which wins over the table.

A failed push is recorded and the remaining packages are still pushed.
"""

import logging
from pathlib import Path
from typing import Mapping, Optional, Sequence

from canarypkg.config.schema import PublishConfig
from canarypkg.logging.logger import get_logger
from canarypkg.packaging.command import render_command
from canarypkg.packaging.exceptions import PublishError
from canarypkg.packaging.models import Package, PublishFailure, PublishReport
from canarypkg.packaging.runner import run_command

logger: logging.Logger = get_logger(__name__)

DEFAULT_DISTRO_ALIASES: Mapping[str, str] = {"centos": "el", "amazon": "el"}


def remap_distro(distro: str, aliases: Optional[Mapping[str, str]] = None) -> str:
    """Translate an internal distro name to the hosting service's name; unknown names pass through."""
    table = DEFAULT_DISTRO_ALIASES if aliases is None else aliases
    return table.get(distro, distro)


class PackagePublisher:
    """Pushes packages to one <user>/<repo> on the hosting service."""

    def __init__(self, config: Optional[PublishConfig] = None) -> None:
        self._config = config if config is not None else PublishConfig()

    @property
    def config(self) -> PublishConfig:
        return self._config

    def publish_distro(self, package: Package) -> str:
        if package.publish_distro:
            return package.publish_distro
        return remap_distro(package.distro, self._config.distro_aliases)

    def repo_path(self, package: Package) -> str:
        return (
            f"{self._config.user}/{self._config.repo}/"
            f"{self.publish_distro(package)}/{package.release}"
        )

    def format_push_command(self, package: Package) -> list[str]:
        return [*self._config.command, "push", self.repo_path(package), package.path]

    def publish(self, package: Package, cwd: Path) -> Package:
        """
        Push a single package.

        Raises:
            PublishError: If the publisher exits non-zero, times out, or is missing.
        """
        argv = self.format_push_command(package)
        command = render_command(argv)
        logger.info(
            "Publishing package",
            extra={
                "distro": package.distro,
                "release": package.release,
                "repo_path": self.repo_path(package),
                "path": package.path,
                "command": command,
            },
        )

        result = run_command(argv, cwd, self._config.timeout_seconds)
        if not result.success:
            raise PublishError(
                PublishFailure(
                    distro=package.distro,
                    release=package.release,
                    path=package.path,
                    command=command,
                    exit_code=result.exit_code,
                    reason=result.error or f"publisher exited with status {result.exit_code}",
                )
            )

        logger.info(
            "Package published",
            extra={"repo_path": self.repo_path(package), "path": package.path},
        )
        return package

    def publish_all(self, packages: Sequence[Package], cwd: Path) -> PublishReport:
        """Attempt every push, in order, regardless of earlier failures."""
        published: list[Package] = []
        failures: list[PublishFailure] = []

        for package in packages:
            try:
                published.append(self.publish(package, cwd))
            except PublishError as err:
                failures.append(err.failure)
                logger.error(
                    "Publish failed",
                    extra={
                        "distro": err.failure.distro,
                        "release": err.failure.release,
                        "path": err.failure.path,
                        "exit_code": err.failure.exit_code,
                        "reason": err.failure.reason,
                        "command": err.failure.command,
                    },
                )

        logger.info(
            "Publishing finished",
            extra={
                "total": len(packages),
                "published": len(published),
                "failed": len(failures),
            },
        )
        return PublishReport(published=published, failures=failures)
