# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Tests for hashing utilities.

Package checksums end up in the build manifest and are compared on every
verify and publish, so they must be identical for identical content.
"""

import hashlib
from pathlib import Path

from canarypkg.utils.hashing import CHUNK_SIZE, compute_sha256, digest_file, verify_checksum


class TestFileHashing:
    def test_matches_hashlib(self, tmp_path: Path) -> None:
        content = b"!<arch>\ndebian-binary   "
        package = tmp_path / "appcanary.deb"
        package.write_bytes(content)

        assert compute_sha256(package) == hashlib.sha256(content).hexdigest()

    def test_empty_file_has_known_hash(self, tmp_path: Path) -> None:
        empty = tmp_path / "empty.rpm"
        empty.write_bytes(b"")
        expected = "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"
        assert compute_sha256(empty) == expected

    def test_file_larger_than_buffer(self, tmp_path: Path) -> None:
        content = b"x" * (CHUNK_SIZE * 3 + 17)
        big = tmp_path / "big.deb"
        big.write_bytes(content)

        assert compute_sha256(big) == hashlib.sha256(content).hexdigest()

    def test_is_deterministic(self, tmp_path: Path) -> None:
        package = tmp_path / "repeat.deb"
        package.write_bytes(b"repeat me")
        assert compute_sha256(package) == compute_sha256(package)


class TestVerifyChecksum:
    def test_correct_checksum_passes(self, tmp_path: Path) -> None:
        package = tmp_path / "verified.deb"
        package.write_bytes(b"verify me")
        expected = compute_sha256(package)

        assert verify_checksum(package, expected) is True

    def test_wrong_checksum_fails(self, tmp_path: Path) -> None:
        package = tmp_path / "tampered.deb"
        package.write_bytes(b"original content")

        assert verify_checksum(package, "0" * 64) is False

    def test_checksum_comparison_is_case_insensitive(self, tmp_path: Path) -> None:
        package = tmp_path / "case.deb"
        package.write_bytes(b"case test")
        expected = compute_sha256(package)

        assert verify_checksum(package, expected.upper()) is True


class TestDigestFile:
    def test_reports_size_and_hash(self, tmp_path: Path) -> None:
        package = tmp_path / "sized.rpm"
        package.write_bytes(b"0123456789")

        digest = digest_file(package)
        assert digest.size_bytes == 10
        assert digest.sha256 == compute_sha256(package)

    def test_empty_file_has_zero_size(self, tmp_path: Path) -> None:
        empty = tmp_path / "empty.deb"
        empty.write_bytes(b"")
        assert digest_file(empty).size_bytes == 0

    def test_whitespace_around_expected_hash_is_ignored(self, tmp_path: Path) -> None:
        package = tmp_path / "padded.deb"
        package.write_bytes(b"pad")
        assert verify_checksum(package, f"  {compute_sha256(package)}\n")
