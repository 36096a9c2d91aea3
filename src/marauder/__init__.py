"""Language-server launcher for Laravel PHP and Blade editor extensions."""

__version__ = "0.1.0"

from marauder.bootstrapper import Command, ResourceBootstrapper
from marauder.exceptions import (
    BootstrapError,
    UnknownLanguageServer,
    WorkingDirectoryUnresolvable,
    WriteFailed,
)

__all__ = [
    "__version__",
    "BootstrapError",
    "Command",
    "ResourceBootstrapper",
    "UnknownLanguageServer",
    "WorkingDirectoryUnresolvable",
    "WriteFailed",
]
