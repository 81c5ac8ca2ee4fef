from __future__ import annotations

import logging

from farmlink.core.document_store import farm_document_path, load_document, save_document


def test_save_then_load(tmp_path):
    doc = {"light": {"on": "07:00"}, "name": "тепличка", "n": [1, 2]}
    path = save_document(tmp_path / "state" / "farm001.json", doc)

    assert path.exists()
    assert load_document(path) == doc
    assert not path.with_suffix(".json.tmp").exists()


def test_missing_file_loads_empty(tmp_path):
    assert load_document(tmp_path / "none.json") == {}


def test_corrupt_file_loads_empty_with_warning(tmp_path, caplog):
    p = tmp_path / "farm001.json"
    p.write_text("{not json", encoding="utf-8")

    with caplog.at_level(logging.WARNING):
        assert load_document(p) == {}
    assert "DOCUMENT_CORRUPT" in caplog.text


def test_non_mapping_loads_empty(tmp_path):
    p = tmp_path / "farm001.json"
    p.write_text("[1, 2]", encoding="utf-8")
    assert load_document(p) == {}


def test_farm_document_path(tmp_path):
    assert farm_document_path(tmp_path, 1).name == "farm001.json"
    assert farm_document_path(tmp_path, 12).name == "farm012.json"
