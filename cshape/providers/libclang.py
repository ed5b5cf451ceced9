"""libclang-backed declaration provider.

Uses the ``clang.cindex`` bindings (PyPI package ``libclang``, which bundles the
shared library). Cursors are wrapped in :class:`ClangNode` so the extraction
core only ever sees the provider-neutral :class:`~cshape.providers.base.AstNode`
interface.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Dict, Hashable, List, Optional, Sequence

import clang.cindex
from clang.cindex import Cursor, CursorKind, Diagnostic, Index, TranslationUnit, TranslationUnitLoadError

from ..config import LibclangConfig
from ..logging import get_logger
from .base import AstNode, AstProvider, NodeKind, ParseError

_KIND_MAP = {
    CursorKind.TYPEDEF_DECL: NodeKind.TYPEDEF,
    CursorKind.STRUCT_DECL: NodeKind.STRUCT,
    CursorKind.ENUM_DECL: NodeKind.ENUM,
    CursorKind.UNION_DECL: NodeKind.UNION,
    CursorKind.FIELD_DECL: NodeKind.FIELD,
    CursorKind.ENUM_CONSTANT_DECL: NodeKind.ENUM_CONSTANT,
}

_TAG_KINDS = {NodeKind.STRUCT, NodeKind.ENUM, NodeKind.UNION}

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

_PARSE_OPTIONS = TranslationUnit.PARSE_SKIP_FUNCTION_BODIES


def libclang_available() -> bool:
    """Return True when the libclang shared library can be loaded."""
    try:
        clang.cindex.conf.lib
    except clang.cindex.LibclangError:
        return False
    return True


class _MainFile:
    """Answers file-membership queries for one translation unit."""

    def __init__(self, path: str) -> None:
        self._path = os.path.realpath(path)
        self._cache: Dict[str, bool] = {}

    def contains(self, cursor: Cursor) -> bool:
        location_file = cursor.location.file
        if location_file is None:
            return False
        name = location_file.name
        cached = self._cache.get(name)
        if cached is None:
            cached = os.path.realpath(name) == self._path
            self._cache[name] = cached
        return cached


class ClangNode(AstNode):
    """AstNode view of a libclang cursor."""

    def __init__(self, cursor: Cursor, main_file: _MainFile) -> None:
        self.cursor = cursor
        self._main_file = main_file
        self._kind = _KIND_MAP.get(cursor.kind, NodeKind.OTHER)

    def __repr__(self) -> str:
        return f"ClangNode({self.cursor.kind.name}, {self.cursor.spelling!r})"

    @property
    def kind(self) -> NodeKind:
        return self._kind

    @property
    def name(self) -> Optional[str]:
        spelling = self.cursor.spelling
        if not spelling:
            return None
        if self._kind in _TAG_KINDS:
            # Unnamed tags are spelled like "struct (unnamed at a.h:1:9)" by newer libclang.
            if self.cursor.is_anonymous() or not _IDENTIFIER.match(spelling):
                return None
        return spelling

    @property
    def type_name(self) -> Optional[str]:
        return self.cursor.type.spelling or None

    @property
    def underlying_type_name(self) -> Optional[str]:
        if self._kind is not NodeKind.TYPEDEF:
            return None
        return self.cursor.underlying_typedef_type.spelling or None

    @property
    def in_main_file(self) -> bool:
        return self._main_file.contains(self.cursor)

    @property
    def enum_value(self) -> Optional[int]:
        if self._kind is not NodeKind.ENUM_CONSTANT:
            return None
        # Cursor.enum_value switches to the unsigned accessor for unsigned enums;
        # the signed accessor is used for every enum instead.
        return int(clang.cindex.conf.lib.clang_getEnumConstantDeclValue(self.cursor))

    @property
    def key(self) -> Hashable:
        # Equal for the same declaration reached twice; macro expansions share locations.
        return (self.cursor.kind.name, self.cursor.hash)

    def children(self) -> Sequence["ClangNode"]:
        return [ClangNode(child, self._main_file) for child in self.cursor.get_children()]

    def definition(self) -> Optional["ClangNode"]:
        if self._kind not in _TAG_KINDS:
            return None
        target = self.cursor.get_definition()
        if target is None:
            return None
        return ClangNode(target, self._main_file)


class LibclangProvider(AstProvider):
    """Parses C files with libclang."""

    name = "libclang"

    def __init__(self, config: LibclangConfig | None = None, *, strict: bool = False) -> None:
        self.config = config or LibclangConfig()
        self.strict = strict
        self.logger = get_logger("providers.libclang")
        self._index: Index | None = None

    def parse(self, path: Path, *, source: Optional[str] = None) -> ClangNode:
        path = Path(path)
        if source is None and not path.is_file():
            raise FileNotFoundError(f"No such file: {path}")

        index = self._get_index()
        filename = str(path)
        unsaved = [(filename, source)] if source is not None else None
        args = self.config.compile_args()
        self.logger.debug("Parsing %s with args %s", filename, args)
        try:
            translation_unit = index.parse(
                filename, args=args, unsaved_files=unsaved, options=_PARSE_OPTIONS
            )
        except TranslationUnitLoadError as exc:
            raise ParseError(f"libclang could not parse {filename}: {exc}") from exc

        self._check_diagnostics(translation_unit, filename)
        return ClangNode(translation_unit.cursor, _MainFile(filename))

    def _get_index(self) -> Index:
        if self._index is not None:
            return self._index
        library_file = self.config.library_file
        if library_file is not None:
            if clang.cindex.Config.loaded:
                self.logger.warning(
                    "libclang already loaded; ignoring library_file %s", library_file
                )
            else:
                clang.cindex.Config.set_library_file(str(library_file))
        try:
            self._index = Index.create()
        except clang.cindex.LibclangError as exc:
            raise ParseError(
                "libclang shared library is not available. Install it with "
                "`pip install libclang` or set libclang.library_file in .cshape.yml."
            ) from exc
        return self._index

    def _check_diagnostics(self, translation_unit: TranslationUnit, filename: str) -> None:
        errors: List[str] = []
        for diagnostic in translation_unit.diagnostics:
            location = diagnostic.location
            where = f"{location.file}:{location.line}:{location.column}" if location.file else filename
            message = f"{where}: {diagnostic.spelling}"
            if diagnostic.severity >= Diagnostic.Error:
                errors.append(message)
                self.logger.warning("clang error: %s", message)
            elif diagnostic.severity >= Diagnostic.Warning:
                self.logger.debug("clang warning: %s", message)
        if errors and self.strict:
            raise ParseError(f"{filename} has {len(errors)} parse error(s): {errors[0]}")


__all__ = ["ClangNode", "LibclangProvider", "libclang_available"]
