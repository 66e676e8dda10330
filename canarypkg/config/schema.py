# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Type-safe configuration schemas for canarypkg.

Each config section gets its own frozen pydantic model. The models use
pydantic v2's ConfigDict with:
  - frozen=True: immutability after construction
  - extra="forbid": unknown fields cause immediate failure
  - validate_default=True: even defaults get type-checked

The recipes themselves are not configurable here, they are declared in
canarypkg.packaging.recipes. This file only holds the knobs around them:
package metadata, where the inputs live, which tools to call, and where
to push.

A complete file looks like:

    global:
      config_version: "1.0.0"
      log_level: INFO
    packaging:
      builder_command: [bundle, exec, fpm]
      timeout_seconds: 600
    publish:
      user: appcanary
      repo: agent
"""

from pathlib import PurePosixPath
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator


class GlobalConfig(BaseModel):
    """Cross-cutting settings: observability and schema version."""

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    config_version: str = Field(
        description="Schema version for compatibility tracking, e.g. '1.0.0'"
    )
    log_level: str = Field(
        default="INFO",
        description="One of DEBUG, INFO, WARNING, ERROR, CRITICAL",
    )
    log_file: Optional[str] = Field(
        default=None,
        description="Optional path for file-based log output, relative to project root",
    )


class PackagingConfig(BaseModel):
    """
    Everything the resolver bakes into a build unit besides the recipe.

    The defaults reproduce the historical appcanary layout: hook scripts and
    file trees under package/<distro>/<release>/, config templates under
    package/config/, prebuilt binaries under dist/<version>/linux_<arch>/.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    name: str = Field(default="appcanary", min_length=1, description="Package name passed to -n")
    vendor: str = Field(default="Appcanary", min_length=1)
    license: str = Field(default="GPLv3", min_length=1)
    target_os: str = Field(
        default="linux",
        description="Passed as --rpm-os; deb builds ignore it",
    )
    directories: list[str] = Field(
        default_factory=lambda: ["/etc/appcanary/", "/var/db/appcanary/"],
        description="Directories the package owns, one --directories flag each",
    )
    builder_command: list[str] = Field(
        default_factory=lambda: ["fpm"],
        min_length=1,
        description="Argv prefix for the package builder, e.g. [bundle, exec, fpm]",
    )
    package_root: str = Field(
        default="package",
        description="Root of <distro>/<release>/files trees and hook scripts",
    )
    config_root: str = Field(
        default="package/config",
        description="Root that recipe config-file template paths are relative to",
    )
    dist_root: str = Field(
        default="dist",
        description="Prebuilt binaries, laid out as <version>/linux_<arch>/<binary_name>",
    )
    output_dir: str = Field(default="releases", description="Where built packages land")
    binary_name: str = Field(default="appcanary", min_length=1)
    binary_destination: str = Field(default="/usr/sbin/appcanary")
    binary_arch_dirs: dict[str, str] = Field(
        default_factory=dict,
        description="Per-arch directory name override, e.g. {i386: '386'} for goxc output",
    )
    timeout_seconds: Optional[float] = Field(
        default=None,
        gt=0,
        description="Kill a single fpm run after this many seconds; no limit when unset",
    )
    verify_artifacts: bool = Field(
        default=True,
        description="Require the output package to exist and be non-empty after a zero exit",
    )
    fail_fast: bool = Field(
        default=False,
        description="Stop the matrix at the first failed unit instead of reporting and continuing",
    )

    @field_validator("directories")
    @classmethod
    def _directories_are_absolute(cls, value: list[str]) -> list[str]:
        for directory in value:
            if not directory.startswith("/"):
                raise ValueError(f"Managed directory must be absolute: {directory!r}")
        return value

    @field_validator("binary_destination")
    @classmethod
    def _destination_is_absolute(cls, value: str) -> str:
        if not value.startswith("/"):
            raise ValueError(f"Binary destination must be absolute: {value!r}")
        return value

    @field_validator("config_root", "dist_root")
    @classmethod
    def _sources_reachable_from_package_root(cls, value: str, info: ValidationInfo) -> str:
        # fpm runs in the project root; a relative source can't be expressed
        # from an absolute files dir without knowing that root.
        package_root = info.data.get("package_root", "")
        if package_root.startswith("/") and not value.startswith("/"):
            raise ValueError(
                f"{info.field_name} must be absolute when package_root is absolute: {value!r}"
            )
        return value

    @field_validator("output_dir")
    @classmethod
    def _output_dir_under_root(cls, value: str) -> str:
        parts = PurePosixPath(value).parts
        if not value or value.startswith("/") or ".." in parts:
            raise ValueError(f"Output directory must be relative to the project root: {value!r}")
        return value


class PublishConfig(BaseModel):
    """
    Where and how built packages get pushed.

    Credentials never live here. package_cloud reads its own token from
    ~/.packagecloud or PACKAGECLOUD_TOKEN.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    user: str = Field(default="appcanary", min_length=1, description="Hosting account")
    repo: str = Field(default="agent", min_length=1, description="Repository under the account")
    command: list[str] = Field(
        default_factory=lambda: ["package_cloud"],
        min_length=1,
        description="Argv prefix for the publisher, e.g. [bundle, exec, package_cloud]",
    )
    distro_aliases: dict[str, str] = Field(
        default_factory=lambda: {"centos": "el", "amazon": "el"},
        description="Internal distro name -> hosting service distro name",
    )
    timeout_seconds: Optional[float] = Field(default=None, gt=0)


class CanaryConfig(BaseModel):
    """
    Top-level config container.

    Every section has defaults, so an empty run with no --config builds
    with the stock appcanary settings. When `global:` is present its
    config_version is required.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    global_config: Optional[GlobalConfig] = Field(default=None, alias="global")
    packaging: PackagingConfig = Field(default_factory=PackagingConfig)
    publish: PublishConfig = Field(default_factory=PublishConfig)
