# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Command formatter: turns a BuildUnit into the fpm argument list.

The same list is executed by the runner and shown in the logs and in
--dry-run output, so it has to be byte-identical for identical input.
It is always an argv list; nothing here is ever handed to a shell.

Flag order is fixed:

    <builder> -f -s dir -t <type> -n <name> -p <output> -v <version>
    -a <arch> --rpm-os <os> -C <files dir>
    --directories <dir> ...
    --after-install <script> [--after-remove <script>] [--after-upgrade <script>]
    --license <license> --vendor <vendor>
    --config-files <dest> ...
    ./ <binary src>=<binary dest> <config src>=<config dest> ...

Everything after -C is a source path that fpm resolves from inside the
files directory, so those are rewritten relative to it.
"""

import shlex
from typing import Sequence

from canarypkg.packaging.models import BuildUnit
from canarypkg.utils.paths import relative_to_dir


def format_build_command(unit: BuildUnit) -> list[str]:
    """Render the complete fpm invocation for one build unit."""
    argv: list[str] = [*unit.builder_command]

    argv += [
        "-f",                                   # overwrite an existing output
        "-s", "dir",                            # input type
        "-t", unit.package_type,                # output type
        "-n", unit.name,
        "-p", str(unit.output_path),
        "-v", unit.version,
        "-a", unit.arch,
        "--rpm-os", unit.target_os,             # ignored by non-rpm targets
        "-C", str(unit.files_dir),
    ]

    for directory in unit.directories:
        argv += ["--directories", directory]

    for hook, script in unit.hook_scripts:
        argv += [f"--{hook}", str(script)]

    argv += ["--license", unit.license, "--vendor", unit.vendor]

    for _, destination in unit.config_files:
        argv += ["--config-files", destination]

    argv.append("./")
    argv.append(
        f"{relative_to_dir(unit.binary_source, unit.files_dir)}={unit.binary_destination}"
    )
    for source, destination in unit.config_files:
        argv.append(f"{relative_to_dir(source, unit.files_dir)}={destination}")

    return argv


def render_command(argv: Sequence[str]) -> str:
    """Shell-quoted single line, for logs and dry runs only."""
    return shlex.join(argv)
