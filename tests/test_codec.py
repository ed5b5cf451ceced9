"""Tests for the JSON codec."""

from __future__ import annotations

import json

import pytest

from cshape.codec import DecodeError, decode_entries, encode_entries, entry_to_dict
from cshape.models import EnumConstant, Enumeration, Field, Structure, TypeAlias, Union


def _sample_entries() -> list:
    return [
        TypeAlias("u8", "unsigned char"),
        Structure("Point", (Field("a", "int"), Field("b", "char"))),
        Enumeration("Color", (EnumConstant("RED", 0), EnumConstant("GREEN", 5), EnumConstant("BLUE", 6))),
        Union("Value", (Field("i", "int"), Field("f", "float"))),
        Enumeration("Big", (EnumConstant("ALL", -1),)),
        Structure("Empty", ()),
    ]


def test_encode_entries_uses_externally_tagged_wire_format() -> None:
    text = encode_entries(
        [
            TypeAlias("u8", "unsigned char"),
            Structure("Point", (Field("a", "int"),)),
            Enumeration("Color", (EnumConstant("RED", 0),)),
            Union("Value", (Field("i", "int"),)),
        ]
    )
    assert text == (
        '[{"TypeDefType":{"name":"u8","underlying":"unsigned char"}},'
        '{"StructType":{"name":"Point","fields":[{"name":"a","type_":"int"}]}},'
        '{"EnumType":{"name":"Color","fields":[{"name":"RED","value":0}]}},'
        '{"UnionType":{"name":"Value","fields":[{"name":"i","type_":"int"}]}}]'
    )


def test_encode_entries_is_a_single_line() -> None:
    text = encode_entries(_sample_entries())
    assert "\n" not in text


def test_encode_empty_sequence() -> None:
    assert encode_entries([]) == "[]"


def test_encode_keeps_non_ascii_text() -> None:
    text = encode_entries([TypeAlias("größe", "int")])
    assert "größe" in text


def test_entry_to_dict_for_enumeration_uses_value_key() -> None:
    payload = entry_to_dict(Enumeration("E", (EnumConstant("A", -3),)))
    assert payload == {"EnumType": {"name": "E", "fields": [{"name": "A", "value": -3}]}}


def test_round_trip_reconstructs_equal_sequence() -> None:
    entries = _sample_entries()
    assert decode_entries(encode_entries(entries)) == entries


@pytest.mark.parametrize(
    "payload",
    [
        "not json",
        '{"StructType": {}}',
        '[{"ClassType": {"name": "X"}}]',
        '[{"StructType": {"name": "X", "fields": []}, "EnumType": {}}]',
        '[{"StructType": {"name": 3, "fields": []}}]',
        '[{"StructType": {"name": "X"}}]',
        '[{"StructType": {"name": "X", "fields": [{"name": "a"}]}}]',
        '[{"EnumType": {"name": "E", "fields": [{"name": "A", "value": "1"}]}}]',
        '[{"EnumType": {"name": "E", "fields": [{"name": "A", "value": true}]}}]',
        '[{"TypeDefType": {"name": "T"}}]',
        '[{"UnionType": []}]',
    ],
)
def test_decode_rejects_malformed_payloads(payload: str) -> None:
    with pytest.raises(DecodeError):
        decode_entries(payload)


def test_decode_rejects_enum_values_outside_signed_64_bit() -> None:
    payload = json.dumps([{"EnumType": {"name": "E", "fields": [{"name": "A", "value": 1 << 63}]}}])
    with pytest.raises(DecodeError):
        decode_entries(payload)
