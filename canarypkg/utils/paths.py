# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Path utilities for canarypkg.

Build units describe paths as POSIX paths relative to the project root
(unless a root is configured absolute), because that is the working
directory fpm runs in and the paths end up verbatim on its command line.
Only the runner and the manifest ever turn them into real filesystem paths.
"""

import posixpath
from pathlib import Path, PurePosixPath


def ensure_directory(path: Path) -> Path:
    """Create a directory (and parents) if it doesn't exist. Returns the path for chaining."""
    path.mkdir(parents=True, exist_ok=True)
    return path


def relative_to_dir(target: PurePosixPath, start: PurePosixPath) -> str:
    """
    Express `target` as fpm will see it from inside the directory `start`.

    fpm resolves every source argument that follows `-C <dir>` from inside
    that directory, so a binary at dist/1.0/linux_amd64/appcanary seen from
    package/ubuntu/trusty/files becomes ../../../../dist/1.0/linux_amd64/appcanary.
    An absolute target is already unambiguous and comes back unchanged.
    Nothing on disk is consulted, and neither is the current directory.

    Raises:
        ValueError: If `start` is absolute but `target` is relative, since
            the directory `target` is relative to is unknown here.
    """
    if target.is_absolute():
        return str(target)
    if start.is_absolute():
        raise ValueError(f"Cannot place relative path {target} inside absolute directory {start}")
    return posixpath.relpath(str(target), str(start))


def resolve_under_root(root: Path, relative: PurePosixPath) -> Path:
    """Turn a build-unit path into a concrete path under the project root."""
    return root / Path(*relative.parts)
