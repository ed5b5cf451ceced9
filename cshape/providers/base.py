"""Contract between the extraction core and C parser backends."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Hashable, List, Optional, Sequence


class ParseError(RuntimeError):
    """Raised when a provider cannot produce a declaration tree for a file."""


class NodeKind(str, Enum):
    """Declaration kinds the extraction core distinguishes."""

    TYPEDEF = "typedef"
    STRUCT = "struct"
    ENUM = "enum"
    UNION = "union"
    FIELD = "field"
    ENUM_CONSTANT = "enum_constant"
    OTHER = "other"


class AstNode(ABC):
    """Read-only view of one node in a provider's declaration tree."""

    @property
    @abstractmethod
    def kind(self) -> NodeKind:
        """Declaration kind of this node."""

    @property
    @abstractmethod
    def name(self) -> Optional[str]:
        """Declared name, or None for anonymous declarations."""

    @property
    @abstractmethod
    def type_name(self) -> Optional[str]:
        """Display form of the node's declared type."""

    @property
    @abstractmethod
    def underlying_type_name(self) -> Optional[str]:
        """Display form of the aliased type for typedef nodes."""

    @property
    @abstractmethod
    def in_main_file(self) -> bool:
        """True when the node is located in the file that was parsed."""

    @property
    @abstractmethod
    def enum_value(self) -> Optional[int]:
        """Signed value of an enumerator constant node."""

    @property
    @abstractmethod
    def key(self) -> Hashable:
        """Identity of the declaration, equal for every view of the same node."""

    @abstractmethod
    def children(self) -> Sequence["AstNode"]:
        """Immediate child nodes in source order."""

    @abstractmethod
    def definition(self) -> Optional["AstNode"]:
        """Full definition of a forward-declared aggregate, when known."""


class AstProvider(ABC):
    """Parses a C file into a declaration tree."""

    name: str = "provider"

    @abstractmethod
    def parse(self, path: Path, *, source: Optional[str] = None) -> AstNode:
        """Return the root node for ``path``.

        When ``source`` is given it is parsed in place of the file contents and
        the file does not need to exist on disk.
        """


@dataclass(eq=False)
class DeclNode(AstNode):
    """Plain in-memory declaration node.

    Used by providers that build their own tree and by callers that want to
    feed an already-shaped tree to the walker.
    """

    node_kind: NodeKind
    node_name: Optional[str] = None
    declared_type: Optional[str] = None
    underlying: Optional[str] = None
    value: Optional[int] = None
    main_file: bool = True
    nodes: List["DeclNode"] = field(default_factory=list)
    target: Optional["DeclNode"] = None

    @property
    def kind(self) -> NodeKind:
        return self.node_kind

    @property
    def name(self) -> Optional[str]:
        return self.node_name

    @property
    def type_name(self) -> Optional[str]:
        return self.declared_type

    @property
    def underlying_type_name(self) -> Optional[str]:
        return self.underlying

    @property
    def in_main_file(self) -> bool:
        return self.main_file

    @property
    def enum_value(self) -> Optional[int]:
        return self.value

    @property
    def key(self) -> Hashable:
        return id(self)

    def children(self) -> Sequence["DeclNode"]:
        return self.nodes

    def definition(self) -> Optional["DeclNode"]:
        return self.target


__all__ = ["AstNode", "AstProvider", "DeclNode", "NodeKind", "ParseError"]
