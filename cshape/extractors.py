"""Per-kind extractors turning declaration nodes into type model entries."""

from __future__ import annotations

from typing import List, Optional, TypeVar

from .models import EnumConstant, Enumeration, Field, Structure, TypeAlias, TypeEntry, Union, to_signed_64
from .providers.base import AstNode, NodeKind

_T = TypeVar("_T")


class ProviderContractError(AssertionError):
    """A node broke a guarantee of the provider contract (e.g. an unnamed field).

    Subclasses AssertionError: this is an internal fault, not a user error, and
    the core never recovers from it.
    """


def resolve_name(node: AstNode, parent: Optional[AstNode]) -> Optional[str]:
    """Return the aggregate's own name, or the enclosing typedef's name.

    ``typedef struct { ... } Name;`` yields ``Name``. An anonymous aggregate
    outside a typedef has no name at this scope and yields None.
    """
    if node.name:
        return node.name
    if parent is not None and parent.kind is NodeKind.TYPEDEF:
        return parent.name or None
    return None


def _require(value: Optional[_T], what: str, node: AstNode) -> _T:
    if value is None or value == "":
        raise ProviderContractError(f"{node.kind.value} declaration is missing its {what}")
    return value


def extract_typedef(node: AstNode, types: List[TypeEntry]) -> None:
    name = _require(node.name, "name", node)
    underlying = _require(node.underlying_type_name, "underlying type", node)
    types.append(TypeAlias(name=name, underlying=underlying))


def _member_fields(node: AstNode) -> tuple[Field, ...]:
    fields = []
    for child in node.children():
        if child.kind is not NodeKind.FIELD:
            continue
        fields.append(
            Field(
                name=_require(child.name, "name", child),
                type_name=_require(child.type_name, "type", child),
            )
        )
    return tuple(fields)


def extract_struct(node: AstNode, parent: Optional[AstNode], types: List[TypeEntry]) -> None:
    name = resolve_name(node, parent)
    if name is None:
        return
    types.append(Structure(name=name, fields=_member_fields(node)))


def extract_union(node: AstNode, parent: Optional[AstNode], types: List[TypeEntry]) -> None:
    name = resolve_name(node, parent)
    if name is None:
        return
    types.append(Union(name=name, fields=_member_fields(node)))


def extract_enum(node: AstNode, parent: Optional[AstNode], types: List[TypeEntry]) -> None:
    name = resolve_name(node, parent)
    if name is None:
        return
    constants = []
    for child in node.children():
        if child.kind is not NodeKind.ENUM_CONSTANT:
            continue
        # Every enumerator is recorded as signed 64-bit, whatever the enum's
        # declared underlying type.
        value = _require(child.enum_value, "value", child)
        constants.append(
            EnumConstant(name=_require(child.name, "name", child), value=to_signed_64(value))
        )
    types.append(Enumeration(name=name, fields=tuple(constants)))


__all__ = [
    "ProviderContractError",
    "extract_enum",
    "extract_struct",
    "extract_typedef",
    "extract_union",
    "resolve_name",
]
