"""Depth-first traversal that filters declarations and dispatches extractors."""

from __future__ import annotations

from typing import Callable, Dict, Hashable, List, Optional, Set

from .extractors import extract_enum, extract_struct, extract_typedef, extract_union
from .logging import get_logger
from .models import TypeEntry
from .providers.base import AstNode, NodeKind

_AGGREGATE_EXTRACTORS: Dict[NodeKind, Callable[[AstNode, Optional[AstNode], List[TypeEntry]], None]] = {
    NodeKind.STRUCT: extract_struct,
    NodeKind.ENUM: extract_enum,
    NodeKind.UNION: extract_union,
}


class AstWalker:
    """Walks one declaration tree and collects its type model entries.

    Each instance owns the result sequence for a single extraction; create a
    new walker per file.
    """

    def __init__(self) -> None:
        self.types: List[TypeEntry] = []
        self._extracted: Set[Hashable] = set()
        self.logger = get_logger("walker")

    def walk(self, root: AstNode) -> List[TypeEntry]:
        for child in root.children():
            self._visit(child, root)
        return self.types

    def _visit(self, node: AstNode, parent: AstNode) -> None:
        self._dispatch(node, parent)
        for child in node.children():
            self._visit(child, node)

    def _dispatch(self, node: AstNode, parent: AstNode) -> None:
        # Forward declarations are replaced by their definition when one exists.
        entity = node.definition() or node
        if not entity.in_main_file:
            return

        kind = entity.kind
        if kind is NodeKind.TYPEDEF:
            extract_typedef(entity, self.types)
            return

        extractor = _AGGREGATE_EXTRACTORS.get(kind)
        if extractor is None:
            return

        key = entity.key
        if key in self._extracted:
            self.logger.debug("Skipping repeated %s declaration %s", kind.value, entity.name or "<anonymous>")
            return

        count = len(self.types)
        extractor(entity, parent, self.types)
        if len(self.types) > count:
            self._extracted.add(key)
        else:
            self.logger.debug("Skipping anonymous %s outside a typedef", kind.value)


def walk(root: AstNode) -> List[TypeEntry]:
    """Return the type model entries declared in the file rooted at ``root``."""
    return AstWalker().walk(root)


__all__ = ["AstWalker", "walk"]
