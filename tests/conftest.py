from __future__ import annotations

import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
for entry in (ROOT, ROOT / "src"):
    if str(entry) not in sys.path:
        sys.path.insert(0, str(entry))


import pytest

from tests.fakes import FakeFilesystem


@pytest.fixture
def fake_fs() -> FakeFilesystem:
    return FakeFilesystem()


@pytest.fixture
def payload() -> bytes:
    return b"#!/usr/bin/env php\n<?php echo 'ok';\n"


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("MARAUDER_PHP", raising=False)
    monkeypatch.delenv("MARAUDER_LOG_LEVEL", raising=False)
    yield
    logger = logging.getLogger("marauder")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
