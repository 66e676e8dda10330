# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Manifest writes for canarypkg.

`publish` and `verify` trust whatever manifest sits in the output
directory, so it is replaced in a single rename: the content goes to a
sibling temp file, is fsynced, and then moved over the target. A crash
leaves the old manifest or the new one, and at worst a stray
.canarypkg_tmp_ file next to it.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any

_TEMP_PREFIX = ".canarypkg_tmp_"


def atomic_write(target_path: Path, content: str, encoding: str = "utf-8") -> None:
    """
    Replace target_path with content, all or nothing.

    Raises:
        OSError: If the write or rename fails. The temp file is removed.
    """
    target_path.parent.mkdir(parents=True, exist_ok=True)

    # Same directory as the target, so the rename never crosses filesystems.
    fd, temp_name = tempfile.mkstemp(
        dir=str(target_path.parent), prefix=_TEMP_PREFIX, suffix=".tmp"
    )
    temp_path = Path(temp_name)

    try:
        with os.fdopen(fd, "w", encoding=encoding) as stream:
            stream.write(content)
            stream.flush()
            os.fsync(stream.fileno())
        os.replace(temp_path, target_path)
    except BaseException:
        temp_path.unlink(missing_ok=True)
        raise


def write_json(target_path: Path, data: Any) -> None:
    """Atomically write data as stable, diffable JSON (sorted keys, 2-space indent)."""
    atomic_write(target_path, json.dumps(data, indent=2, sort_keys=True) + "\n")
