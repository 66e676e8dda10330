# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Environment inspection for canarypkg.

Reports the host and whether the external tools the pipeline shells out
to can be found, so a missing fpm shows up in `canarypkg info` instead
of as a wall of identical build failures.
"""

import platform
import shutil
from dataclasses import dataclass
from typing import NamedTuple, Sequence


class SystemInfo(NamedTuple):
    """Snapshot of the current system environment."""

    python_version: str
    platform: str
    architecture: str
    hostname: str


@dataclass(frozen=True)
class ToolCheck:
    """Whether one external command's executable is on PATH."""

    name: str
    command: str
    found: bool
    location: str


def get_system_info() -> SystemInfo:
    """Collect basic system information for logging and diagnostics."""
    return SystemInfo(
        python_version=platform.python_version(),
        platform=platform.system(),
        architecture=platform.machine(),
        hostname=platform.node(),
    )


def check_tool(name: str, argv_prefix: Sequence[str]) -> ToolCheck:
    """
    Look up the executable an argv prefix starts with.

    For a prefix like [bundle, exec, fpm] only `bundle` is checked; whether
    the gem is in the bundle is bundler's business.
    """
    executable = argv_prefix[0]
    location = shutil.which(executable)
    return ToolCheck(
        name=name,
        command=" ".join(argv_prefix),
        found=location is not None,
        location=location or "not found",
    )
