"""Type model entries produced by the extractors."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Tuple, Union as _Union


class EntryKind(str, Enum):
    """Discriminant of a type model entry; values double as wire tags."""

    TYPE_ALIAS = "TypeDefType"
    STRUCTURE = "StructType"
    ENUMERATION = "EnumType"
    UNION = "UnionType"


@dataclass(frozen=True)
class Field:
    """Named member of a structure or union."""

    name: str
    type_name: str


@dataclass(frozen=True)
class EnumConstant:
    """Enumerator constant; ``value`` is always a signed 64-bit integer."""

    name: str
    value: int


@dataclass(frozen=True)
class TypeAlias:
    name: str
    underlying: str

    kind: ClassVar[EntryKind] = EntryKind.TYPE_ALIAS


@dataclass(frozen=True)
class Structure:
    name: str
    fields: Tuple[Field, ...] = field(default_factory=tuple)

    kind: ClassVar[EntryKind] = EntryKind.STRUCTURE


@dataclass(frozen=True)
class Enumeration:
    name: str
    fields: Tuple[EnumConstant, ...] = field(default_factory=tuple)

    kind: ClassVar[EntryKind] = EntryKind.ENUMERATION


@dataclass(frozen=True)
class Union:
    name: str
    fields: Tuple[Field, ...] = field(default_factory=tuple)

    kind: ClassVar[EntryKind] = EntryKind.UNION


TypeEntry = _Union[TypeAlias, Structure, Enumeration, Union]

INT64_MIN = -(1 << 63)
INT64_MAX = (1 << 63) - 1


def to_signed_64(value: int) -> int:
    """Wrap an arbitrary integer into the signed 64-bit range (two's complement)."""
    value &= (1 << 64) - 1
    if value > INT64_MAX:
        value -= 1 << 64
    return value


__all__ = [
    "EntryKind",
    "EnumConstant",
    "Enumeration",
    "Field",
    "INT64_MAX",
    "INT64_MIN",
    "Structure",
    "TypeAlias",
    "TypeEntry",
    "Union",
    "to_signed_64",
]
