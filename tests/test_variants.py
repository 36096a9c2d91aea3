from __future__ import annotations

import pytest

from marauder.exceptions import UnknownLanguageServer
from marauder.variants import (
    DEFAULT_SERVER_ID,
    LARAVEL_BLADE,
    LARAVEL_PHP,
    VARIANTS,
    get_variant,
    load_payload,
)
from tests.fakes import FakeFilesystem


def test_bundled_payload_is_a_php_script() -> None:
    payload = load_payload("laravel-lsp.php")
    assert payload.startswith(b"#!/usr/bin/env php\n<?php")
    assert b"textDocument/definition" in payload


def test_variants_are_registered_by_id() -> None:
    assert set(VARIANTS) == {"laravel-php", "laravel-blade"}
    assert DEFAULT_SERVER_ID == "laravel-php"
    assert get_variant("laravel-blade") is LARAVEL_BLADE


def test_variants_use_distinct_file_names() -> None:
    assert LARAVEL_PHP.target_filename != LARAVEL_BLADE.target_filename
    assert LARAVEL_PHP.payload == LARAVEL_BLADE.payload


def test_unknown_variant_lists_known_ids() -> None:
    with pytest.raises(UnknownLanguageServer) as excinfo:
        get_variant("laravel-vue")
    assert excinfo.value.server_id == "laravel-vue"
    assert "laravel-php" in str(excinfo.value)


def test_variant_bootstrapper_writes_its_own_file() -> None:
    fs = FakeFilesystem()
    path = LARAVEL_BLADE.bootstrapper(filesystem=fs).ensure_materialized()
    assert path == "/work/laravel-blade-lsp.php"
    assert next(iter(fs.files.values())) == LARAVEL_BLADE.payload
