"""Serialization utilities."""

import json
from dataclasses import asdict, fields
from datetime import datetime


def serialize_dataclass(obj) -> dict:
    """Serialize a dataclass to dict, converting datetimes to ISO strings."""
    data = asdict(obj)
    for key, value in data.items():
        if isinstance(value, datetime):
            data[key] = value.isoformat()
    return data


def dump_dataclass(obj) -> str:
    return json.dumps(serialize_dataclass(obj), ensure_ascii=False)


def load_dataclass(cls, raw: str):
    """Build a dataclass from its JSON form, ignoring unknown keys."""
    data = json.loads(raw)
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object for {cls.__name__}")
    known = {f.name for f in fields(cls)}
    return cls(**{k: v for k, v in data.items() if k in known})
