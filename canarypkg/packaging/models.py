# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Data records for the packaging pipeline.

Everything here is a frozen dataclass. A Recipe is declared once at import
time, a BuildUnit lives for exactly one formatter call and one build, and a
Package lives until it has been written to the manifest and published.
"""

from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Mapping, Optional

# Fixed for every recipe. Order matters: it is the inner loop of the matrix.
ARCHITECTURES: tuple[str, ...] = ("amd64", "i386")

PACKAGE_TYPES: frozenset[str] = frozenset({"deb", "rpm"})

INIT_SYSTEMS: frozenset[str] = frozenset({"systemd", "upstart", "sysv"})

# Lifecycle hook flag -> script name inside package/<distro>/<release>/.
HOOK_SCRIPTS: Mapping[str, str] = {
    "after-install": "post-install.sh",
    "after-remove": "post-remove.sh",
    "after-upgrade": "post-upgrade.sh",
}

DEFAULT_HOOKS: tuple[str, ...] = ("after-install",)


@dataclass(frozen=True)
class ReleaseTarget:
    """
    One release of a distro, optionally tagged with the init system it boots.

    config_files, when set, replaces the recipe's mapping for this release only.
    """

    name: str
    init_system: Optional[str] = None
    config_files: Optional[tuple[tuple[str, str], ...]] = None


@dataclass(frozen=True)
class Recipe:
    """
    Packaging parameters for one distro family.

    config_files pairs a template path (relative to the configured
    config_root) with the absolute path it gets installed at, in the
    order the --config-files flags are emitted. publish_distro
    overrides the name the hosting service files the package under.
    skip_docker marks distros with no container image for the smoke-test
    step; the pipeline only carries it through.
    """

    distro: str
    releases: tuple[ReleaseTarget, ...]
    package_type: str
    config_files: tuple[tuple[str, str], ...]
    publish_distro: Optional[str] = None
    skip_docker: bool = False
    hooks: tuple[str, ...] = DEFAULT_HOOKS

    @property
    def release_names(self) -> tuple[str, ...]:
        return tuple(target.name for target in self.releases)


@dataclass(frozen=True)
class BuildUnit:
    """
    One concrete (distro, release, arch) package to build.

    Paths are POSIX and relative to the project root, which is the
    builder's working directory.
    """

    distro: str
    release: str
    init_system: Optional[str]
    arch: str
    version: str
    package_type: str
    publish_distro: Optional[str]
    skip_docker: bool

    name: str
    vendor: str
    license: str
    target_os: str
    directories: tuple[str, ...]
    builder_command: tuple[str, ...]

    package_dir: PurePosixPath
    files_dir: PurePosixPath
    binary_source: PurePosixPath
    binary_destination: str
    output_path: PurePosixPath
    # (hook flag, script path) in the order the flags are emitted.
    hook_scripts: tuple[tuple[str, PurePosixPath], ...]
    # (template source, installed destination) in declaration order.
    config_files: tuple[tuple[PurePosixPath, str], ...]

    @property
    def label(self) -> str:
        return f"{self.distro}/{self.release}/{self.arch}"


@dataclass(frozen=True)
class Package:
    """A successfully built artifact, ready to publish."""

    distro: str
    release: str
    version: str
    path: str
    skip_docker: bool = False
    arch: Optional[str] = None
    init_system: Optional[str] = None
    publish_distro: Optional[str] = None
    sha256: Optional[str] = None


@dataclass(frozen=True)
class CommandResult:
    """Outcome of one subprocess run. Output itself went straight to the terminal."""

    exit_code: int
    elapsed_seconds: float
    timed_out: bool = False
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.exit_code == 0 and not self.timed_out


@dataclass(frozen=True)
class BuildFailure:
    """Everything needed to diagnose a failed unit without re-running it."""

    distro: str
    release: str
    arch: str
    command: str
    exit_code: Optional[int]
    reason: str


@dataclass(frozen=True)
class PublishFailure:
    distro: str
    release: str
    path: str
    command: str
    exit_code: Optional[int]
    reason: str


@dataclass(frozen=True)
class BuildReport:
    packages: list[Package] = field(default_factory=list)
    failures: list[BuildFailure] = field(default_factory=list)
    # Units never attempted because fail_fast stopped the matrix.
    skipped: int = 0

    @property
    def ok(self) -> bool:
        return not self.failures


@dataclass(frozen=True)
class PublishReport:
    published: list[Package] = field(default_factory=list)
    failures: list[PublishFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures
