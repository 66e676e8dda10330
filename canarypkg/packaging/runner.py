# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Process runner: executes builder commands and collects packages.

Each command runs synchronously with stdout and stderr inherited, so fpm's
output reaches the operator live and unfiltered. We only look at the exit
code, the clock, and afterwards the artifact on disk. No shell=True, ever.

A zero exit is not trusted on its own. Unless verify_artifacts is turned
off, the expected output file must exist and be non-empty, and its SHA256
is recorded on the Package for the manifest.

Failure policy for the matrix lives in build_units: by default a failed
unit is recorded and the next one runs, so one broken distro image does
not hold back every other release. fail_fast flips that.
"""

import logging
import subprocess
import sys
import time
from pathlib import Path
from typing import Optional, Sequence

from canarypkg.logging.logger import get_logger
from canarypkg.packaging.command import format_build_command, render_command
from canarypkg.packaging.exceptions import BuildError
from canarypkg.packaging.models import (
    BuildFailure,
    BuildReport,
    BuildUnit,
    CommandResult,
    Package,
)
from canarypkg.utils.hashing import digest_file
from canarypkg.utils.paths import ensure_directory, resolve_under_root

logger: logging.Logger = get_logger(__name__)

# Conventional shell status for "command not found".
EXIT_COMMAND_NOT_FOUND = 127


def run_command(
    argv: Sequence[str],
    cwd: Path,
    timeout_seconds: Optional[float] = None,
) -> CommandResult:
    """
    Run one command to completion and report how it went.

    A missing executable and a timeout are folded into the result rather
    than raised, the same as a non-zero exit, so callers deal with a
    single failure shape.
    """
    start = time.monotonic()

    # Our own buffered log lines must land before the child's output.
    sys.stdout.flush()
    sys.stderr.flush()

    try:
        completed = subprocess.run(
            list(argv),
            cwd=str(cwd),
            timeout=timeout_seconds,
            check=False,
        )
    except subprocess.TimeoutExpired:
        elapsed = time.monotonic() - start
        logger.warning(
            "Command timed out",
            extra={"command": render_command(argv), "timeout_seconds": timeout_seconds},
        )
        return CommandResult(
            exit_code=-1,
            elapsed_seconds=elapsed,
            timed_out=True,
            error=f"timed out after {timeout_seconds}s",
        )
    except FileNotFoundError:
        elapsed = time.monotonic() - start
        logger.error(
            "Executable not found",
            extra={"executable": argv[0], "cwd": str(cwd)},
        )
        return CommandResult(
            exit_code=EXIT_COMMAND_NOT_FOUND,
            elapsed_seconds=elapsed,
            error=f"{argv[0]} executable not found",
        )

    elapsed = time.monotonic() - start
    logger.debug(
        "Command finished",
        extra={
            "exit_code": completed.returncode,
            "elapsed_seconds": round(elapsed, 3),
        },
    )
    return CommandResult(exit_code=completed.returncode, elapsed_seconds=elapsed)


def _failure(unit: BuildUnit, command: str, exit_code: Optional[int], reason: str) -> BuildFailure:
    return BuildFailure(
        distro=unit.distro,
        release=unit.release,
        arch=unit.arch,
        command=command,
        exit_code=exit_code,
        reason=reason,
    )


def build_package(
    unit: BuildUnit,
    cwd: Path,
    timeout_seconds: Optional[float] = None,
    verify_artifact: bool = True,
) -> Package:
    """
    Build one unit and return the resulting Package.

    Args:
        unit: The unit to build.
        cwd: Project root; every path in the unit is relative to it.
        timeout_seconds: Optional hard limit for the builder process.
        verify_artifact: Require a non-empty output file after a zero exit.

    Raises:
        BuildError: Non-zero exit, timeout, missing builder, or missing artifact.
    """
    argv = format_build_command(unit)
    command = render_command(argv)
    context = {
        "distro": unit.distro,
        "release": unit.release,
        "arch": unit.arch,
        "init_system": unit.init_system,
        "version": unit.version,
    }

    logger.info("Building package", extra={**context, "command": command})
    ensure_directory(resolve_under_root(cwd, unit.output_path.parent))

    result = run_command(argv, cwd, timeout_seconds)
    if not result.success:
        reason = result.error or f"builder exited with status {result.exit_code}"
        raise BuildError(_failure(unit, command, result.exit_code, reason))

    sha256: Optional[str] = None
    if verify_artifact:
        artifact = resolve_under_root(cwd, unit.output_path)
        if not artifact.is_file():
            raise BuildError(
                _failure(unit, command, result.exit_code, f"builder exited 0 but {unit.output_path} was not written")
            )
        digest = digest_file(artifact)
        if digest.size_bytes == 0:
            raise BuildError(
                _failure(unit, command, result.exit_code, f"builder wrote an empty {unit.output_path}")
            )
        sha256 = digest.sha256

    logger.info(
        "Build succeeded",
        extra={
            **context,
            "path": str(unit.output_path),
            "elapsed_seconds": round(result.elapsed_seconds, 3),
        },
    )
    return package_for_unit(unit, sha256)


def package_for_unit(unit: BuildUnit, sha256: Optional[str] = None) -> Package:
    """The Package record a unit produces once its artifact exists."""
    return Package(
        distro=unit.distro,
        release=unit.release,
        version=unit.version,
        path=str(unit.output_path),
        skip_docker=unit.skip_docker,
        arch=unit.arch,
        init_system=unit.init_system,
        publish_distro=unit.publish_distro,
        sha256=sha256,
    )


def build_units(
    units: Sequence[BuildUnit],
    cwd: Path,
    timeout_seconds: Optional[float] = None,
    verify_artifacts: bool = True,
    fail_fast: bool = False,
) -> BuildReport:
    """
    Build every unit in order and collect successes and failures.

    With fail_fast=False (the default) every unit is attempted. With
    fail_fast=True the first failure stops the run and the remaining
    units are counted as skipped.
    """
    packages: list[Package] = []
    failures: list[BuildFailure] = []
    skipped = 0

    for index, unit in enumerate(units):
        try:
            packages.append(build_package(unit, cwd, timeout_seconds, verify_artifacts))
        except BuildError as err:
            failures.append(err.failure)
            logger.error(
                "Build failed",
                extra={
                    "distro": err.failure.distro,
                    "release": err.failure.release,
                    "arch": err.failure.arch,
                    "exit_code": err.failure.exit_code,
                    "reason": err.failure.reason,
                    "command": err.failure.command,
                },
            )
            if fail_fast:
                skipped = len(units) - index - 1
                break

    logger.info(
        "Build matrix finished",
        extra={
            "total": len(units),
            "built": len(packages),
            "failed": len(failures),
            "skipped": skipped,
        },
    )
    return BuildReport(packages=packages, failures=failures, skipped=skipped)
