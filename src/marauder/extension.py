"""Host-facing extension object.

One ``MarauderExtension`` lives per host activation. It owns one
``ResourceBootstrapper`` per variant, created on first use, so each script is
written at most once however often the host asks for a command.
"""

from __future__ import annotations

import threading
from typing import Mapping

from marauder.bootstrapper import Command, ResourceBootstrapper
from marauder.filesystem import Filesystem
from marauder.schema import LauncherSettings
from marauder.telemetry import get_logger
from marauder.variants import get_variant

logger = get_logger(__name__)


class MarauderExtension:
    def __init__(
        self,
        settings: Mapping[str, LauncherSettings] | None = None,
        *,
        filesystem: Filesystem | None = None,
    ) -> None:
        self._settings = dict(settings or {})
        self._filesystem = filesystem
        self._lock = threading.Lock()
        self._bootstrappers: dict[str, ResourceBootstrapper] = {}

    def settings_for(self, server_id: str) -> LauncherSettings:
        return self._settings.get(server_id) or LauncherSettings()

    def bootstrapper(self, server_id: str) -> ResourceBootstrapper:
        variant = get_variant(server_id)
        with self._lock:
            existing = self._bootstrappers.get(variant.server_id)
            if existing is None:
                existing = variant.bootstrapper(filesystem=self._filesystem)
                self._bootstrappers[variant.server_id] = existing
            return existing

    def materialize(self, server_id: str) -> str:
        return self.bootstrapper(server_id).ensure_materialized()

    def language_server_command(self, server_id: str) -> Command:
        settings = self.settings_for(server_id)
        command = self.bootstrapper(server_id).launch_command(
            settings.interpreter,
            settings.interpreter_args,
            shim=settings.shim,
            env=settings.env,
        )
        logger.debug("Launch command for %s: %s", server_id, command.argv())
        return command
