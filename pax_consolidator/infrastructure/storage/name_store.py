"""Storage helpers for the source id to display name lookup."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_NAMES: dict[str, str] = {
    "ship-a": "Ship A",
    "ship-b": "Ship B",
    "ship-c": "Ship C",
}

DEFAULT_PATH = Path(__file__).resolve().parents[3] / "data" / "source_names.json"


def _normalize_names(raw: dict[str, Any] | None) -> dict[str, str]:
    normalized: dict[str, str] = {}
    if not isinstance(raw, dict):
        return normalized
    for key, value in raw.items():
        if key is None:
            continue
        key_str = str(key).strip().lower()
        if not key_str:
            continue
        value_str = "" if value is None else str(value).strip()
        if value_str:
            normalized[key_str] = value_str
    return normalized


def load_names(path: Path | None = None) -> dict[str, str]:
    override_path = path or DEFAULT_PATH
    names = dict(DEFAULT_NAMES)
    if not override_path.exists():
        return names
    try:
        data = json.loads(override_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError:
        logger.warning("Ignoring malformed display name overrides in %s", override_path)
        return names
    names.update(_normalize_names(data))
    return names


def save_names(names: dict[str, str], path: Path | None = None) -> dict[str, str]:
    override_path = path or DEFAULT_PATH
    normalized = _normalize_names(names)
    override_path.parent.mkdir(parents=True, exist_ok=True)
    override_path.write_text(
        json.dumps(normalized, ensure_ascii=False, indent=2, sort_keys=True),
        encoding="utf-8",
    )
    merged = dict(DEFAULT_NAMES)
    merged.update(normalized)
    return merged
