# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Build manifest: the record of which packages a build produced.

After a build run the packages are listed in
<output_dir>/manifest-<version>.json together with their SHA256, the
git commit the packaging tree was at, and when it happened. A later
`canarypkg publish` reads the manifest instead of rebuilding, and
`canarypkg verify` checks the artifacts still match it.

    {
      "version": "1.2.3-20170101",
      "git_commit": "...",
      "timestamp": "2026-...",
      "packages": [
        {"distro": "ubuntu", "release": "trusty", "arch": "amd64",
         "path": "releases/appcanary_1.2.3-20170101_amd64_ubuntu_trusty.deb",
         "sha256": "...", ...}
      ]
    }
"""

import json
import logging
import subprocess
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path, PurePosixPath
from typing import Optional, Sequence

from canarypkg.logging.logger import get_logger
from canarypkg.packaging.models import Package
from canarypkg.utils.filesystem import write_json
from canarypkg.utils.hashing import verify_checksum
from canarypkg.utils.paths import resolve_under_root

logger: logging.Logger = get_logger(__name__)

_REQUIRED_MANIFEST_FIELDS: frozenset[str] = frozenset({"version", "git_commit", "timestamp", "packages"})
_REQUIRED_PACKAGE_FIELDS: frozenset[str] = frozenset({"distro", "release", "version", "path"})


@dataclass(frozen=True)
class BuildManifest:
    version: str
    git_commit: str
    timestamp: str
    packages: list[Package] = field(default_factory=list)


@dataclass(frozen=True)
class VerificationResult:
    """Outcome of checking artifacts against a manifest."""

    is_valid: bool
    checked_count: int
    mismatches: list[str] = field(default_factory=list)
    missing_files: list[str] = field(default_factory=list)
    unhashed: list[str] = field(default_factory=list)


def manifest_path(output_dir: Path, version: str) -> Path:
    return output_dir / f"manifest-{version}.json"


def get_git_commit(cwd: Optional[Path] = None) -> str:
    """
    Read the current HEAD commit hash from git.

    Returns "unknown" if git is not available or we're not in a repo.
    This is best-effort traceability and never fails a build.
    """
    try:
        result = subprocess.run(
            ["git", "rev-parse", "HEAD"],
            capture_output=True,
            text=True,
            timeout=5,
            check=False,
            cwd=str(cwd) if cwd is not None else None,
        )
        if result.returncode == 0:
            return result.stdout.strip()
    except (FileNotFoundError, subprocess.TimeoutExpired):
        pass

    logger.warning("Could not determine git commit hash")
    return "unknown"


def create_manifest(
    version: str,
    packages: Sequence[Package],
    git_commit: Optional[str] = None,
    cwd: Optional[Path] = None,
) -> BuildManifest:
    if git_commit is None:
        git_commit = get_git_commit(cwd)

    return BuildManifest(
        version=version,
        git_commit=git_commit,
        timestamp=datetime.now(tz=timezone.utc).isoformat(),
        packages=list(packages),
    )


def write_manifest(manifest: BuildManifest, path: Path) -> None:
    """Serialize a manifest to JSON and write it atomically."""
    write_json(path, asdict(manifest))

    logger.info(
        "Manifest written",
        extra={"path": str(path), "version": manifest.version, "packages": len(manifest.packages)},
    )


def _package_from_dict(data: dict, index: int) -> Package:
    if not isinstance(data, dict):
        raise ValueError(f"Manifest package #{index} is not an object")
    missing = _REQUIRED_PACKAGE_FIELDS - set(data.keys())
    if missing:
        raise ValueError(
            f"Manifest package #{index} is missing fields: {', '.join(sorted(missing))}"
        )
    path = PurePosixPath(str(data["path"]))
    if path.is_absolute() or ".." in path.parts:
        raise ValueError(
            f"Manifest package #{index} path '{path}' must be relative to the project root"
        )
    return Package(
        distro=str(data["distro"]),
        release=str(data["release"]),
        version=str(data["version"]),
        path=str(path),
        skip_docker=bool(data.get("skip_docker", False)),
        arch=data.get("arch"),
        init_system=data.get("init_system"),
        publish_distro=data.get("publish_distro"),
        sha256=data.get("sha256"),
    )


def load_manifest(path: Path) -> BuildManifest:
    """
    Load a manifest from a JSON file.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ValueError: If it is not valid JSON or required fields are missing.
    """
    if not path.is_file():
        raise FileNotFoundError(f"Manifest file not found: {path}")

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as err:
        raise ValueError(f"Manifest {path} is not valid JSON: {err}") from err

    if not isinstance(data, dict):
        raise ValueError(f"Manifest {path} must contain a JSON object")

    missing = _REQUIRED_MANIFEST_FIELDS - set(data.keys())
    if missing:
        raise ValueError(f"Manifest is missing required fields: {', '.join(sorted(missing))}")

    if not isinstance(data["packages"], list):
        raise ValueError("Manifest 'packages' must be a list")

    manifest = BuildManifest(
        version=str(data["version"]),
        git_commit=str(data["git_commit"]),
        timestamp=str(data["timestamp"]),
        packages=[_package_from_dict(entry, i) for i, entry in enumerate(data["packages"])],
    )

    logger.debug(
        "Manifest loaded",
        extra={"path": str(path), "version": manifest.version, "packages": len(manifest.packages)},
    )
    return manifest


def filter_packages(packages: Sequence[Package], distros: Optional[Sequence[str]]) -> list[Package]:
    """Keep only packages for the given distros; everything when no selection is given."""
    if not distros:
        return list(packages)
    wanted = set(distros)
    return [package for package in packages if package.distro in wanted]


def merge_packages(
    existing: Sequence[Package],
    built: Sequence[Package],
    rebuilt_distros: Sequence[str],
) -> list[Package]:
    """
    Fold a build run's packages into the ones an earlier run recorded.

    Entries for a distro this run rebuilt are dropped, since they either got
    replaced or failed this time, and so is any entry whose path a new
    package now occupies. Earlier entries keep their order, new ones follow.
    """
    replaced = set(rebuilt_distros)
    paths = {package.path for package in built}
    kept = [
        package
        for package in existing
        if package.distro not in replaced and package.path not in paths
    ]
    return kept + list(built)


def verify_manifest(manifest: BuildManifest, root: Path) -> VerificationResult:
    """
    Check every artifact listed in a manifest against its recorded SHA256.

    Reports all mismatches and missing files, not just the first. Entries
    recorded without a hash (built with verify_artifacts off) are listed
    as unhashed and do not fail verification.
    """
    mismatches: list[str] = []
    missing_files: list[str] = []
    unhashed: list[str] = []
    checked = 0

    for package in manifest.packages:
        artifact = resolve_under_root(root, PurePosixPath(package.path))
        if not artifact.is_file():
            missing_files.append(package.path)
            logger.error("Artifact missing during verification", extra={"path": package.path})
            continue

        if package.sha256 is None:
            unhashed.append(package.path)
            continue

        checked += 1
        if not verify_checksum(artifact, package.sha256):
            mismatches.append(package.path)
            logger.error(
                "Checksum mismatch",
                extra={"path": package.path, "expected": package.sha256[:16] + "..."},
            )

    is_valid = not mismatches and not missing_files

    if is_valid:
        logger.info(
            "All artifacts verified",
            extra={"checked_count": checked, "unhashed": len(unhashed)},
        )
    else:
        logger.error(
            "Artifact verification failed",
            extra={"mismatches": len(mismatches), "missing": len(missing_files)},
        )

    return VerificationResult(
        is_valid=is_valid,
        checked_count=checked,
        mismatches=mismatches,
        missing_files=missing_files,
        unhashed=unhashed,
    )
