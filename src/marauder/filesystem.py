from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Protocol

_SCRIPT_MODE = 0o644


class Filesystem(Protocol):
    def current_directory(self) -> Path: ...

    def write_bytes(self, path: Path, data: bytes) -> None: ...


class LocalFilesystem:
    """Filesystem backed by the process working directory.

    ``write_bytes`` stages the data in a sibling temporary file and renames it
    over the target, so readers see either the old file or the complete new
    one.
    """

    def current_directory(self) -> Path:
        return Path(os.getcwd()).resolve()

    def write_bytes(self, path: Path, data: bytes) -> None:
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{path.name}.", suffix=".tmp", dir=path.parent
        )
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
                handle.flush()
                os.fsync(handle.fileno())
            os.chmod(tmp_name, _SCRIPT_MODE)
            os.replace(tmp_name, path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise
