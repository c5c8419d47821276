"""Utilities to serialise fetched records into declarative formats."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Sequence

import yaml

from .models import Record


def _record_to_dict(record: Record) -> dict[str, Any]:
    """Convert a record into the shape accepted by the YAML loader."""
    entry: dict[str, Any] = {
        "name": record.label,
        "type": record.type,
        "ttl": record.ttl,
        "value": record.target,
    }
    if record.type == "MX":
        entry["priority"] = record.mx_preference
    elif record.type == "SRV":
        entry.update(priority=record.srv_priority, weight=record.srv_weight, port=record.srv_port)
    elif record.type == "CAA":
        entry.update(flag=record.caa_flag, tag=record.caa_tag)
    return entry


def records_to_dict(origin: str, records: Sequence[Record], default_ttl: int | None = None) -> dict[str, Any]:
    """Create a dictionary describing the zone."""
    data: dict[str, Any] = {"zone": origin}
    if default_ttl:
        data["default_ttl"] = default_ttl
    data["records"] = [_record_to_dict(record) for record in sorted(records, key=Record.sort_key)]
    return data


def records_to_yaml(origin: str, records: Sequence[Record], default_ttl: int | None = None) -> str:
    """Return YAML representation of a zone."""
    return yaml.safe_dump(records_to_dict(origin, records, default_ttl), sort_keys=False)


def records_to_json(origin: str, records: Sequence[Record], default_ttl: int | None = None) -> str:
    """Return JSON representation of a zone."""
    return json.dumps(records_to_dict(origin, records, default_ttl), indent=2)


def write_export(path: Path, content: str) -> None:
    """Write content to the given path, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
