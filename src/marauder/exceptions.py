"""Error taxonomy for script materialization and launching."""

from __future__ import annotations

from pathlib import Path


class BootstrapError(RuntimeError):
    """A bundled script could not be materialized.

    ``step`` names the stage that failed and ``cause`` keeps the originating
    ``OSError`` (also chained as ``__cause__``). The bootstrapper cache is
    never populated when this is raised, so calling again retries the whole
    sequence.
    """

    step = "materialize"

    def __init__(
        self,
        message: str,
        *,
        cause: OSError,
        path: Path | None = None,
    ) -> None:
        super().__init__(f"{message}: {cause}")
        self.cause = cause
        self.path = path


class WriteFailed(BootstrapError):
    step = "write"


class WorkingDirectoryUnresolvable(BootstrapError):
    step = "resolve_cwd"


class UnknownLanguageServer(LookupError):
    def __init__(self, server_id: str, known: tuple[str, ...]) -> None:
        super().__init__(
            f"Unknown language server {server_id!r} (known: {', '.join(known)})"
        )
        self.server_id = server_id
        self.known = known


class ConfigError(ValueError):
    pass
