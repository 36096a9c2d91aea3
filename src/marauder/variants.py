"""Bundled language-server variants.

Each variant is one editor-facing language server (PHP sources, Blade views)
backed by a packaged script. Variants share the bootstrap logic and differ
only in identity, payload and on-disk file name.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from importlib import resources

from marauder.bootstrapper import ResourceBootstrapper
from marauder.exceptions import UnknownLanguageServer
from marauder.filesystem import Filesystem

_PAYLOAD_PACKAGE = "marauder"
_PAYLOAD_DIR = "payloads"


@lru_cache(maxsize=None)
def load_payload(resource_name: str) -> bytes:
    return (
        resources.files(_PAYLOAD_PACKAGE)
        .joinpath(_PAYLOAD_DIR)
        .joinpath(resource_name)
        .read_bytes()
    )


@dataclass(frozen=True)
class LanguageServerVariant:
    server_id: str
    language: str
    payload_resource: str
    target_filename: str

    @property
    def payload(self) -> bytes:
        return load_payload(self.payload_resource)

    def bootstrapper(
        self, *, filesystem: Filesystem | None = None
    ) -> ResourceBootstrapper:
        return ResourceBootstrapper(
            self.payload,
            self.target_filename,
            filesystem=filesystem,
        )


LARAVEL_PHP = LanguageServerVariant(
    server_id="laravel-php",
    language="PHP",
    payload_resource="laravel-lsp.php",
    target_filename="laravel-lsp.php",
)
# Distinct file name so both variants can share one working directory.
LARAVEL_BLADE = LanguageServerVariant(
    server_id="laravel-blade",
    language="Blade",
    payload_resource="laravel-lsp.php",
    target_filename="laravel-blade-lsp.php",
)

VARIANTS: dict[str, LanguageServerVariant] = {
    variant.server_id: variant for variant in (LARAVEL_PHP, LARAVEL_BLADE)
}
DEFAULT_SERVER_ID = LARAVEL_PHP.server_id


def get_variant(server_id: str) -> LanguageServerVariant:
    try:
        return VARIANTS[server_id]
    except KeyError:
        raise UnknownLanguageServer(server_id, tuple(VARIANTS)) from None
