"""Tests for the declaration walker."""

from __future__ import annotations

import pytest

from cshape.extractors import ProviderContractError
from cshape.models import EnumConstant, Enumeration, Field, Structure, TypeAlias, Union
from cshape.providers.base import NodeKind
from cshape.walker import AstWalker, walk
from tests._fixtures.decl_builder import (
    constant,
    enum,
    field,
    forward,
    other,
    struct,
    typedef,
    union,
    unit,
)


def test_walk_preserves_declaration_order() -> None:
    root = unit(
        typedef("u8", "unsigned char"),
        struct("A", field("x", "int")),
        enum("E", constant("ONE", 1)),
        union("U", field("f", "float")),
    )
    assert walk(root) == [
        TypeAlias("u8", "unsigned char"),
        Structure("A", (Field("x", "int"),)),
        Enumeration("E", (EnumConstant("ONE", 1),)),
        Union("U", (Field("f", "float"),)),
    ]


def test_walk_names_anonymous_struct_from_typedef() -> None:
    anonymous = struct(None, field("a", "int"), field("b", "char"))
    root = unit(anonymous, typedef("Point", "struct Point", anonymous))

    types = walk(root)

    assert types == [
        TypeAlias("Point", "struct Point"),
        Structure("Point", (Field("a", "int"), Field("b", "char"))),
    ]


def test_walk_drops_anonymous_aggregate_without_typedef() -> None:
    root = unit(struct(None, field("x", "int")), enum(None, constant("A", 0)), union(None))
    assert walk(root) == []


def test_walk_uses_definition_for_forward_declaration_once() -> None:
    definition = struct("Node", field("value", "int"), field("next", "struct Node *"))
    root = unit(forward(definition), typedef("node_t", "struct Node"), definition)

    types = walk(root)

    structures = [entry for entry in types if isinstance(entry, Structure)]
    assert structures == [
        Structure("Node", (Field("value", "int"), Field("next", "struct Node *")))
    ]
    # Emitted where the forward declaration was encountered.
    assert types[0] == structures[0]


def test_walk_keeps_forward_declaration_without_definition() -> None:
    root = unit(forward(None, NodeKind.STRUCT, "Opaque"))
    assert walk(root) == [Structure("Opaque", ())]


def test_walk_skips_nodes_outside_main_file() -> None:
    root = unit(
        struct("FromHeader", field("x", "int"), main_file=False),
        struct("Local", field("y", "int")),
    )
    assert walk(root) == [Structure("Local", (Field("y", "int"),))]


def test_walk_skips_forward_declaration_defined_in_other_file() -> None:
    definition = struct("Remote", field("x", "int"), main_file=False)
    root = unit(forward(definition))
    assert walk(root) == []


def test_walk_visits_children_of_ignored_and_filtered_nodes() -> None:
    root = unit(
        other(other(struct("Deep", field("d", "int")))),
        other(enum("InHeaderScope", constant("A", 1)), main_file=False),
    )
    assert walk(root) == [
        Structure("Deep", (Field("d", "int"),)),
        Enumeration("InHeaderScope", (EnumConstant("A", 1),)),
    ]


def test_walk_is_depth_first_pre_order() -> None:
    inner = struct("Inner", field("a", "int"))
    outer = struct("Outer", inner, field("inner", "struct Inner"), field("b", "int"))
    root = unit(outer, struct("After"))

    names = [entry.name for entry in walk(root)]

    assert names == ["Outer", "Inner", "After"]


def test_walk_drops_anonymous_member_aggregate() -> None:
    member = union(None, field("i", "int"), field("f", "float"))
    root = unit(struct("Holder", member, field("tag", "int")))

    assert walk(root) == [Structure("Holder", (Field("tag", "int"),))]


def test_walk_emits_distinct_identical_declarations() -> None:
    root = unit(struct("Same", field("x", "int")), struct("Same", field("x", "int")))
    assert walk(root) == [Structure("Same", (Field("x", "int"),))] * 2


def test_walk_extracts_named_aggregate_once_when_reached_twice() -> None:
    named = struct("Foo", field("x", "int"))
    root = unit(named, typedef("Foo", "struct Foo", named))

    assert walk(root) == [
        Structure("Foo", (Field("x", "int"),)),
        TypeAlias("Foo", "struct Foo"),
    ]


def test_walk_propagates_contract_violation() -> None:
    root = unit(struct("Broken", field(None, "int")))
    with pytest.raises(ProviderContractError):
        walk(root)


def test_walker_instances_do_not_share_results() -> None:
    root = unit(struct("A"))
    first = AstWalker().walk(root)
    second = AstWalker().walk(root)
    assert first == second == [Structure("A", ())]
    assert first is not second
