"""JSON encoding of type model entries.

Entries are externally tagged: each one serializes to a single-key object whose
key names the variant, e.g. ``{"StructType": {"name": "Point", "fields": [...]}}``.
Member fields use ``type_`` for their type name.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Iterable, List, Mapping

from .models import (
    EntryKind,
    EnumConstant,
    Enumeration,
    Field,
    INT64_MAX,
    INT64_MIN,
    Structure,
    TypeAlias,
    TypeEntry,
    Union,
)


class DecodeError(ValueError):
    """Raised when serialized text does not describe a valid entry sequence."""


def entry_to_dict(entry: TypeEntry) -> Dict[str, Any]:
    if isinstance(entry, TypeAlias):
        body: Dict[str, Any] = {"name": entry.name, "underlying": entry.underlying}
    elif isinstance(entry, (Structure, Union)):
        body = {
            "name": entry.name,
            "fields": [{"name": f.name, "type_": f.type_name} for f in entry.fields],
        }
    elif isinstance(entry, Enumeration):
        body = {
            "name": entry.name,
            "fields": [{"name": c.name, "value": c.value} for c in entry.fields],
        }
    else:  # pragma: no cover - closed variant set
        raise TypeError(f"Unsupported type entry: {entry!r}")
    return {entry.kind.value: body}


def entries_to_list(entries: Iterable[TypeEntry]) -> List[Dict[str, Any]]:
    return [entry_to_dict(entry) for entry in entries]


def encode_entries(entries: Iterable[TypeEntry]) -> str:
    """Serialize entries to a single line of compact JSON."""
    return json.dumps(entries_to_list(entries), separators=(",", ":"), ensure_ascii=False)


def entry_from_dict(payload: Any) -> TypeEntry:
    if not isinstance(payload, Mapping) or len(payload) != 1:
        raise DecodeError("Each entry must be an object with exactly one variant tag")
    (tag, body), = payload.items()
    try:
        kind = EntryKind(tag)
    except ValueError as exc:
        raise DecodeError(f"Unknown entry tag '{tag}'") from exc
    if not isinstance(body, Mapping):
        raise DecodeError(f"{tag} payload must be an object")

    name = _expect_str(body, "name", tag)
    if kind is EntryKind.TYPE_ALIAS:
        return TypeAlias(name=name, underlying=_expect_str(body, "underlying", tag))

    raw_fields = body.get("fields")
    if not isinstance(raw_fields, list):
        raise DecodeError(f"{tag}.fields must be a list")

    if kind is EntryKind.ENUMERATION:
        return Enumeration(name=name, fields=tuple(_enum_constant(item, tag) for item in raw_fields))

    fields = tuple(_field(item, tag) for item in raw_fields)
    if kind is EntryKind.STRUCTURE:
        return Structure(name=name, fields=fields)
    return Union(name=name, fields=fields)


def decode_entries(text: str) -> List[TypeEntry]:
    """Parse text produced by :func:`encode_entries` back into entries."""
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise DecodeError(f"Invalid JSON: {exc}") from exc
    if not isinstance(payload, list):
        raise DecodeError("Serialized entries must be a JSON array")
    return [entry_from_dict(item) for item in payload]


def _field(item: Any, tag: str) -> Field:
    if not isinstance(item, Mapping):
        raise DecodeError(f"{tag} field must be an object")
    return Field(name=_expect_str(item, "name", tag), type_name=_expect_str(item, "type_", tag))


def _enum_constant(item: Any, tag: str) -> EnumConstant:
    if not isinstance(item, Mapping):
        raise DecodeError(f"{tag} constant must be an object")
    value = item.get("value")
    # bool is an int subclass but never a valid constant value
    if not isinstance(value, int) or isinstance(value, bool):
        raise DecodeError(f"{tag} constant value must be an integer")
    if not INT64_MIN <= value <= INT64_MAX:
        raise DecodeError(f"{tag} constant value {value} is outside the signed 64-bit range")
    return EnumConstant(name=_expect_str(item, "name", tag), value=value)


def _expect_str(body: Mapping[str, Any], key: str, tag: str) -> str:
    value = body.get(key)
    if not isinstance(value, str):
        raise DecodeError(f"{tag}.{key} must be a string")
    return value


__all__ = [
    "DecodeError",
    "decode_entries",
    "encode_entries",
    "entries_to_list",
    "entry_from_dict",
    "entry_to_dict",
]
