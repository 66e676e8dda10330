# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Artifact digests for canarypkg.

A built package is only accepted once it has been read back from disk:
the runner needs its size (an empty .deb means fpm lied about success)
and the manifest needs its SHA256. Both come out of a single pass.
"""

import hashlib
from pathlib import Path
from typing import NamedTuple

# Packages are a few MiB; read them in 1 MiB slices.
CHUNK_SIZE = 1 << 20


class ArtifactDigest(NamedTuple):
    sha256: str
    size_bytes: int


def digest_file(file_path: Path) -> ArtifactDigest:
    """
    Hash a file and count its bytes in one read.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        OSError: If the file can't be read.
    """
    hasher = hashlib.sha256()
    size = 0
    with file_path.open("rb") as stream:
        for chunk in iter(lambda: stream.read(CHUNK_SIZE), b""):
            hasher.update(chunk)
            size += len(chunk)
    return ArtifactDigest(sha256=hasher.hexdigest(), size_bytes=size)


def compute_sha256(file_path: Path) -> str:
    return digest_file(file_path).sha256


def verify_checksum(file_path: Path, expected_hash: str) -> bool:
    """True when the file still hashes to what the manifest recorded."""
    return compute_sha256(file_path) == expected_hash.strip().lower()
