"""Extract type declarations from C files into a serializable model."""

from .codec import decode_entries, encode_entries
from .models import EnumConstant, Enumeration, EntryKind, Field, Structure, TypeAlias, TypeEntry, Union
from .orchestrator import Orchestrator
from .walker import walk

__version__ = "0.1.0"

__all__ = [
    "EntryKind",
    "EnumConstant",
    "Enumeration",
    "Field",
    "Orchestrator",
    "Structure",
    "TypeAlias",
    "TypeEntry",
    "Union",
    "decode_entries",
    "encode_entries",
    "walk",
]
