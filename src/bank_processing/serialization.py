"""
Deterministic JSON serialization helpers for call logs, cache keys and banks.
"""

from __future__ import annotations

from typing import Any

import orjson


def to_jsonable(obj: Any) -> Any:
    """
    Convert plugin outputs and records into plain JSON structures.

    Objects exposing ``to_dict()`` are expanded; key order is preserved.
    """
    if isinstance(obj, dict):
        return {str(k): to_jsonable(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_jsonable(v) for v in obj]
    if hasattr(obj, "to_dict") and callable(obj.to_dict):
        return to_jsonable(obj.to_dict())
    return obj


def canonicalize(obj: Any) -> Any:
    """
    Convert complex objects into JSON-friendly, deterministic structures.
    """
    if isinstance(obj, dict):
        return {str(k): canonicalize(obj[k]) for k in sorted(obj, key=str)}
    if isinstance(obj, (list, tuple)):
        return [canonicalize(v) for v in obj]
    if isinstance(obj, set):
        return sorted(canonicalize(v) for v in obj)
    if hasattr(obj, "to_dict") and callable(obj.to_dict):
        return canonicalize(obj.to_dict())
    return obj


def stable_json_dumps(obj: Any) -> str:
    """
    Dump an object to compact JSON with recursively sorted keys for hashing.
    """
    return orjson.dumps(canonicalize(obj), option=orjson.OPT_SORT_KEYS).decode("utf-8")


def fast_json_dumps(obj: Any) -> bytes:
    """
    Fast JSON serialization to bytes (non-canonical, for transport bodies).
    """
    return orjson.dumps(to_jsonable(obj))


def fast_json_loads(data: bytes | str) -> Any:
    return orjson.loads(data)


def json_line(obj: Any) -> str:
    """One newline-terminated JSON document, as stored in call logs."""
    return orjson.dumps(to_jsonable(obj)).decode("utf-8") + "\n"


def pretty_json_dumps(obj: Any) -> str:
    """Indented JSON used for output bank files."""
    return orjson.dumps(to_jsonable(obj), option=orjson.OPT_INDENT_2).decode("utf-8") + "\n"


__all__ = [
    "to_jsonable",
    "canonicalize",
    "stable_json_dumps",
    "fast_json_dumps",
    "fast_json_loads",
    "json_line",
    "pretty_json_dumps",
]
