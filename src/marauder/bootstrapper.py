"""Write-once materialization of a bundled script plus its launch command."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Sequence

from marauder.exceptions import WorkingDirectoryUnresolvable, WriteFailed
from marauder.filesystem import Filesystem, LocalFilesystem
from marauder.telemetry import get_logger

logger = get_logger(__name__)

# Locates the interpreter on PATH so it need not live at a fixed location.
DEFAULT_SHIM = "/usr/bin/env"


@dataclass(frozen=True)
class Command:
    """Process descriptor handed to a host's spawning facility.

    An empty ``env`` means the child inherits the host environment.
    """

    executable: str
    args: tuple[str, ...] = ()
    env: Mapping[str, str] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "args", tuple(str(arg) for arg in self.args))
        object.__setattr__(
            self,
            "env",
            MappingProxyType({str(k): str(v) for k, v in self.env.items()}),
        )

    def argv(self) -> list[str]:
        return [self.executable, *self.args]

    def to_payload(self) -> dict[str, object]:
        return {
            "executable": self.executable,
            "args": list(self.args),
            "env": dict(self.env),
        }


class ResourceBootstrapper:
    def __init__(
        self,
        payload: bytes,
        target_filename: str,
        *,
        filesystem: Filesystem | None = None,
    ) -> None:
        name = Path(target_filename)
        if target_filename in ("", ".", "..") or name.name != target_filename:
            raise ValueError(
                f"target_filename must be a bare file name: {target_filename!r}"
            )
        self._payload = bytes(payload)
        self._target_filename = target_filename
        self._filesystem = filesystem or LocalFilesystem()
        self._lock = threading.Lock()
        self._cached_path: str | None = None

    @property
    def payload(self) -> bytes:
        return self._payload

    @property
    def target_filename(self) -> str:
        return self._target_filename

    @property
    def cached_path(self) -> str | None:
        return self._cached_path

    def ensure_materialized(self) -> str:
        """Write the payload into the working directory once and return its path.

        Later calls return the cached absolute path without touching the
        filesystem. On failure nothing is cached and the next call starts
        over.

        Raises:
            WorkingDirectoryUnresolvable: the working directory cannot be read.
            WriteFailed: the payload could not be written.
        """
        with self._lock:
            if self._cached_path is not None:
                logger.debug("Reusing materialized script %s", self._cached_path)
                return self._cached_path
            try:
                directory = self._filesystem.current_directory()
            except OSError as exc:
                logger.warning("Cannot resolve working directory: %s", exc)
                raise WorkingDirectoryUnresolvable(
                    "Failed to get current directory", cause=exc
                ) from exc
            target = directory / self._target_filename
            try:
                self._filesystem.write_bytes(target, self._payload)
            except OSError as exc:
                logger.warning("Cannot write %s: %s", target, exc)
                raise WriteFailed(
                    "Failed to write LSP script", cause=exc, path=target
                ) from exc
            self._cached_path = str(target)
            logger.info("Materialized %s", self._cached_path)
            return self._cached_path

    def launch_command(
        self,
        interpreter: str,
        extra_args: Sequence[str] = (),
        *,
        shim: str = DEFAULT_SHIM,
        env: Mapping[str, str] | None = None,
    ) -> Command:
        script_path = self.ensure_materialized()
        return Command(
            executable=shim,
            args=(interpreter, *extra_args, script_path),
            env=dict(env or {}),
        )
