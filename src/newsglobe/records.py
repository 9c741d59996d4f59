"""Article record file I/O and the renderer-side coordinate filter."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterable, Mapping

from .placement import is_finite_number
from .util import write_json


def extract_items(payload: Any, source: str = "payload") -> list[Any]:
    """Accept a bare list of records or a `/news` style object with `items`."""
    if isinstance(payload, list):
        return list(payload)
    if isinstance(payload, Mapping):
        items = payload.get("items")
        if isinstance(items, list):
            return list(items)
    raise ValueError(f"Expected a list of records or an object with an 'items' list in {source}")


def load_records(path: Path) -> list[Any]:
    if not path.exists():
        raise FileNotFoundError(f"Records file not found: {path}")
    with path.open("r", encoding="utf-8") as fh:
        try:
            payload = json.load(fh)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid JSON in {path}: {exc}") from exc
    return extract_items(payload, source=str(path))


def renderable_points(records: Iterable[Any]) -> list[Mapping[str, Any]]:
    """Records a globe can draw: mappings with finite numeric `lat` and `lon`."""
    return [
        record
        for record in records
        if isinstance(record, Mapping)
        and is_finite_number(record.get("lat"))
        and is_finite_number(record.get("lon"))
    ]


def write_records(path: Path, records: Iterable[Any]) -> None:
    write_json(path, list(records))


def dumps_records(records: Iterable[Any]) -> str:
    return json.dumps(list(records), indent=2, ensure_ascii=False)
