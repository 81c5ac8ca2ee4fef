# farmlink/core/document_store.py
"""
Local persistence of configuration documents.

Documents are opaque here: whatever mapping the configuration editor produced
is written as JSON and read back unchanged. Nothing is validated.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict

_log = logging.getLogger(__name__)


def load_document(path: str | Path) -> Dict[str, Any]:
    """Read a document; a missing, unreadable or corrupt file yields {}."""
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        return {}
    except json.JSONDecodeError as e:
        _log.warning("DOCUMENT_CORRUPT path=%s error=%s", path, e)
        return {}
    except OSError:
        _log.exception("DOCUMENT_READ_FAILED path=%s", path)
        return {}

    if not isinstance(data, dict):
        _log.warning("DOCUMENT_NOT_A_MAPPING path=%s type=%s", path, type(data).__name__)
        return {}
    return data


def save_document(path: str | Path, document: Dict[str, Any]) -> Path:
    """Write a document atomically (temp file + replace)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    with open(tmp, "w", encoding="utf-8") as f:
        json.dump(document, f, ensure_ascii=False, indent=2)
    tmp.replace(path)
    return path


def farm_document_path(state_dir: str | Path, farm_id: int) -> Path:
    """Location of the last applied config for a farm (legacy name farmNNN.json)."""
    return Path(state_dir) / f"farm{int(farm_id):03d}.json"
