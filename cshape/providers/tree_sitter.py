"""Tree-sitter powered declaration provider.

A purely syntactic alternative to libclang: it needs no native compiler
library, does not follow ``#include`` directives and does not evaluate the
preprocessor (declarations in every conditional branch are kept). Type display
forms are rendered from the source text, so they follow the spelling used in
the file rather than a canonical compiler spelling.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Set, Tuple

import tree_sitter_c
from tree_sitter import Language, Node, Parser

from ..logging import get_logger
from ..models import to_signed_64
from .base import AstProvider, DeclNode, NodeKind, ParseError

_C_LANGUAGE = Language(tree_sitter_c.language())

_SPECIFIERS = {
    "struct_specifier": NodeKind.STRUCT,
    "union_specifier": NodeKind.UNION,
    "enum_specifier": NodeKind.ENUM,
}

_KEYWORDS = {
    NodeKind.STRUCT: "struct",
    NodeKind.UNION: "union",
    NodeKind.ENUM: "enum",
}

# Block-like nodes whose items are treated as if written in the enclosing scope.
_TRANSPARENT = {
    "preproc_if",
    "preproc_ifdef",
    "preproc_else",
    "preproc_elif",
    "preproc_elifdef",
    "linkage_specification",
    "declaration_list",
    "ERROR",
}

_NAME_NODES = {"identifier", "field_identifier", "type_identifier"}

_INT_LITERAL = re.compile(r"^([-+]?)(0[xX][0-9a-fA-F]+|0[bB][01]+|[0-9]+)([uUlLzZ]*)$")

_ESCAPES = {
    "n": 10,
    "t": 9,
    "r": 13,
    "a": 7,
    "b": 8,
    "f": 12,
    "v": 11,
    "\\": 92,
    "'": 39,
    '"': 34,
    "?": 63,
}


class TreeSitterProvider(AstProvider):
    """Parses C files with the tree-sitter C grammar."""

    name = "tree-sitter"

    def __init__(self, *, strict: bool = False) -> None:
        self.strict = strict
        self.logger = get_logger("providers.tree_sitter")
        self._parser: Optional[Parser] = None

    def parse(self, path: Path, *, source: Optional[str] = None) -> DeclNode:
        path = Path(path)
        if source is None:
            if not path.is_file():
                raise FileNotFoundError(f"No such file: {path}")
            try:
                source = path.read_text(encoding="utf-8")
            except UnicodeDecodeError as exc:
                raise ParseError(f"{path} is not valid UTF-8: {exc}") from exc

        source_bytes = source.encode("utf-8")
        tree = self._get_parser().parse(source_bytes)
        if tree.root_node.has_error:
            message = f"{path}: tree-sitter reported syntax errors"
            if self.strict:
                raise ParseError(message)
            self.logger.warning(message)
        return _TreeBuilder(source_bytes).build(tree.root_node)

    def _get_parser(self) -> Parser:
        if self._parser is None:
            self._parser = Parser(_C_LANGUAGE)
        return self._parser


class _TreeBuilder:
    """Shapes a tree-sitter syntax tree like a compiler declaration tree."""

    def __init__(self, source_bytes: bytes) -> None:
        self._source = source_bytes
        self._definitions: Dict[Tuple[NodeKind, str], DeclNode] = {}
        self._forwards: List[DeclNode] = []
        self._constants: Dict[str, int] = {}

    def build(self, root: Node) -> DeclNode:
        unit = DeclNode(NodeKind.OTHER, nodes=self._items(root))
        for forward in self._forwards:
            forward.target = self._definitions.get((forward.kind, forward.name or ""))
        return unit

    def _text(self, node: Node) -> str:
        return self._source[node.start_byte : node.end_byte].decode("utf-8", errors="ignore")

    def _items(self, node: Node) -> List[DeclNode]:
        items: List[DeclNode] = []
        for child in node.named_children:
            if child.type == "type_definition":
                items.extend(self._typedef(child))
            elif child.type == "declaration":
                aggregate = self._owned_aggregate(child.child_by_field_name("type"))
                if aggregate is not None:
                    items.append(aggregate)
            elif child.type in _SPECIFIERS:
                items.append(self._aggregate(child))
            elif child.type in _TRANSPARENT:
                items.extend(self._items(child))
        return items

    def _typedef(self, node: Node) -> List[DeclNode]:
        type_node = node.child_by_field_name("type")
        aggregate = self._owned_aggregate(type_node)
        items: List[DeclNode] = [aggregate] if aggregate is not None else []
        for index, declarator in enumerate(node.children_by_field_name("declarator")):
            name_node = _declared_name(declarator)
            alias = DeclNode(
                NodeKind.TYPEDEF,
                node_name=self._text(name_node) if name_node is not None else None,
                underlying=self._display_type(node, type_node, declarator),
            )
            alias.declared_type = alias.node_name
            # The aggregate defined inline belongs to the first declarator only.
            if aggregate is not None and index == 0:
                alias.nodes.append(aggregate)
            items.append(alias)
        return items

    def _owned_aggregate(self, type_node: Optional[Node]) -> Optional[DeclNode]:
        if type_node is None or type_node.type not in _SPECIFIERS:
            return None
        if type_node.child_by_field_name("body") is None:
            return None
        return self._aggregate(type_node)

    def _aggregate(self, node: Node) -> DeclNode:
        kind = _SPECIFIERS[node.type]
        name_node = node.child_by_field_name("name")
        name = self._text(name_node) if name_node is not None else None
        body = node.child_by_field_name("body")
        decl = DeclNode(kind, node_name=name, declared_type=self._tag_spelling(node))

        if body is None:
            if name is not None:
                self._forwards.append(decl)
            return decl

        if name is not None:
            self._definitions.setdefault((kind, name), decl)
        if kind is NodeKind.ENUM:
            decl.nodes = self._enumerators(body, decl.declared_type)
        else:
            decl.nodes = self._members(body)
        return decl

    def _members(self, body: Node) -> List[DeclNode]:
        members: List[DeclNode] = []
        for item in _flatten(body, {"field_declaration"}):
            type_node = item.child_by_field_name("type")
            nested = self._owned_aggregate(type_node)
            if nested is not None:
                members.append(nested)
            for declarator in item.children_by_field_name("declarator"):
                name_node = _declared_name(declarator)
                members.append(
                    DeclNode(
                        NodeKind.FIELD,
                        node_name=self._text(name_node) if name_node is not None else None,
                        declared_type=self._display_type(item, type_node, declarator),
                    )
                )
        return members

    def _enumerators(self, body: Node, enum_spelling: Optional[str]) -> List[DeclNode]:
        constants: List[DeclNode] = []
        previous = -1
        for item in _flatten(body, {"enumerator"}):
            name_node = item.child_by_field_name("name")
            value_node = item.child_by_field_name("value")
            value = self._evaluate(value_node) if value_node is not None else previous + 1
            value = to_signed_64(value)
            previous = value
            name = self._text(name_node) if name_node is not None else None
            if name:
                self._constants[name] = value
            constants.append(
                DeclNode(
                    NodeKind.ENUM_CONSTANT,
                    node_name=name,
                    declared_type=enum_spelling,
                    value=value,
                )
            )
        return constants

    def _tag_spelling(self, node: Node) -> str:
        kind = _SPECIFIERS[node.type]
        name_node = node.child_by_field_name("name")
        if name_node is None:
            return f"{_KEYWORDS[kind]} (anonymous)"
        return f"{_KEYWORDS[kind]} {self._text(name_node)}"

    def _display_type(self, owner: Node, type_node: Optional[Node], declarator: Node) -> Optional[str]:
        if type_node is None:
            return None
        if type_node.type in _SPECIFIERS:
            base = self._tag_spelling(type_node)
        else:
            base = self._text(type_node)
        qualifiers = [self._text(child) for child in owner.named_children if child.type == "type_qualifier"]

        name_node = _declared_name(declarator)
        text = self._text(declarator)
        if name_node is not None:
            start = name_node.start_byte - declarator.start_byte
            end = name_node.end_byte - declarator.start_byte
            raw = self._source[declarator.start_byte : declarator.end_byte]
            text = (raw[:start] + raw[end:]).decode("utf-8", errors="ignore")
        return _normalise_type(" ".join(qualifiers + [base, text]))

    def _evaluate(self, node: Node) -> int:
        kind = node.type
        if kind == "number_literal":
            return _int_literal(self._text(node))
        if kind == "char_literal":
            return _char_literal(self._text(node))
        if kind == "identifier":
            name = self._text(node)
            if name not in self._constants:
                raise ParseError(f"Enumerator value refers to unknown constant '{name}'")
            return self._constants[name]
        if kind == "parenthesized_expression":
            return self._evaluate(node.named_children[0])
        if kind == "cast_expression":
            return self._evaluate(node.child_by_field_name("value"))
        if kind == "unary_expression":
            operator = node.child_by_field_name("operator").type
            operand = self._evaluate(node.child_by_field_name("argument"))
            if operator == "-":
                return -operand
            if operator == "+":
                return operand
            if operator == "~":
                return ~operand
            if operator == "!":
                return int(not operand)
        if kind == "binary_expression":
            operator = node.child_by_field_name("operator").type
            left = self._evaluate(node.child_by_field_name("left"))
            right = self._evaluate(node.child_by_field_name("right"))
            return _binary(operator, left, right, self._text(node))
        if kind == "conditional_expression":
            condition = self._evaluate(node.child_by_field_name("condition"))
            branch = "consequence" if condition else "alternative"
            return self._evaluate(node.child_by_field_name(branch))
        raise ParseError(f"Unsupported enumerator expression '{self._text(node)}'")


def _flatten(node: Node, wanted: Set[str]) -> Iterator[Node]:
    for child in node.named_children:
        if child.type in wanted:
            yield child
        elif child.type.startswith("preproc_if") or child.type in _TRANSPARENT:
            yield from _flatten(child, wanted)


def _declared_name(declarator: Node) -> Optional[Node]:
    if declarator.type in _NAME_NODES:
        return declarator
    inner = declarator.child_by_field_name("declarator")
    if inner is not None:
        return _declared_name(inner)
    for child in declarator.named_children:
        if child.type in _NAME_NODES or child.type.endswith("declarator"):
            found = _declared_name(child)
            if found is not None:
                return found
    return None


def _normalise_type(text: str) -> str:
    text = " ".join(text.split())
    text = re.sub(r"\*\s+(?=[A-Za-z_])", "*", text)
    text = re.sub(r"\*\s+(?=[*)])", "*", text)
    text = re.sub(r"\(\s+", "(", text)
    text = re.sub(r"\s+\)", ")", text)
    text = re.sub(r"\[\s+", "[", text)
    text = re.sub(r"\s+\]", "]", text)
    return text


def _int_literal(text: str) -> int:
    match = _INT_LITERAL.match(text.replace("'", ""))
    if match is None:
        raise ParseError(f"Unsupported numeric literal '{text}' in enumerator")
    sign, digits = match.group(1), match.group(2)
    lowered = digits.lower()
    if lowered.startswith("0x"):
        value = int(digits, 16)
    elif lowered.startswith("0b"):
        value = int(digits[2:], 2)
    elif len(digits) > 1 and digits.startswith("0"):
        if not set(digits) <= set("01234567"):
            raise ParseError(f"Invalid octal literal '{text}' in enumerator")
        value = int(digits, 8)
    else:
        value = int(digits)
    return -value if sign == "-" else value


def _char_literal(text: str) -> int:
    body = text[text.index("'") + 1 : text.rindex("'")]
    if len(body) == 1:
        return ord(body)
    if body.startswith("\\"):
        escape = body[1:]
        if escape in _ESCAPES:
            return _ESCAPES[escape]
        try:
            if escape.startswith("x") and len(escape) > 1:
                return int(escape[1:], 16)
            if escape.isdigit():
                return int(escape, 8)
        except ValueError as exc:
            raise ParseError(f"Unsupported character literal {text} in enumerator") from exc
    raise ParseError(f"Unsupported character literal {text} in enumerator")


def _binary(operator: str, left: int, right: int, text: str) -> int:
    if operator == "+":
        return left + right
    if operator == "-":
        return left - right
    if operator == "*":
        return left * right
    if operator in {"/", "%"}:
        if right == 0:
            raise ParseError(f"Division by zero in enumerator expression '{text}'")
        # C division truncates toward zero.
        quotient = abs(left) // abs(right)
        if (left < 0) != (right < 0):
            quotient = -quotient
        return quotient if operator == "/" else left - quotient * right
    if operator in {"<<", ">>"}:
        if not 0 <= right < 64:
            raise ParseError(f"Shift count out of range in enumerator expression '{text}'")
        return left << right if operator == "<<" else left >> right
    if operator == "&":
        return left & right
    if operator == "|":
        return left | right
    if operator == "^":
        return left ^ right
    comparisons = {
        "==": left == right,
        "!=": left != right,
        "<": left < right,
        "<=": left <= right,
        ">": left > right,
        ">=": left >= right,
        "&&": bool(left) and bool(right),
        "||": bool(left) or bool(right),
    }
    if operator in comparisons:
        return int(comparisons[operator])
    raise ParseError(f"Unsupported operator '{operator}' in enumerator expression '{text}'")


__all__ = ["TreeSitterProvider"]
