"""AST provider implementations and discovery utilities."""

from __future__ import annotations

from importlib import metadata
from typing import Callable, Dict, Iterable, List

from ..config import CShapeConfig
from .base import AstNode, AstProvider, DeclNode, NodeKind, ParseError
from .libclang import LibclangProvider
from .tree_sitter import TreeSitterProvider

_ENTRY_POINT_GROUP = "cshape.providers"

ProviderFactory = Callable[[CShapeConfig], AstProvider]


class UnknownProviderError(ValueError):
    """No built-in or plugin provider is registered under the requested name."""


def _libclang_factory(config: CShapeConfig) -> AstProvider:
    return LibclangProvider(config.libclang, strict=config.strict)


def _tree_sitter_factory(config: CShapeConfig) -> AstProvider:
    return TreeSitterProvider(strict=config.strict)


_BUILTIN_FACTORIES: Dict[str, ProviderFactory] = {
    "libclang": _libclang_factory,
    "tree-sitter": _tree_sitter_factory,
}


def discover_providers() -> Dict[str, ProviderFactory]:
    """Return provider factories keyed by name, built-ins first."""
    factories: Dict[str, ProviderFactory] = dict(_BUILTIN_FACTORIES)
    for entry in _iter_entry_points():
        key = entry.name.lower()
        if key in factories:
            continue
        try:
            loaded = entry.load()
        except Exception as exc:  # pragma: no cover - broken plugin
            raise RuntimeError(f"Failed to load provider entry point '{entry.name}': {exc}") from exc

        def _factory(config: CShapeConfig, obj: object = loaded) -> AstProvider:
            return _coerce_provider(obj, config)

        factories[key] = _factory
    return factories


def available_providers() -> List[str]:
    return sorted(discover_providers())


def get_provider(name: str, config: CShapeConfig) -> AstProvider:
    """Instantiate the provider registered under ``name``."""
    factories = discover_providers()
    key = name.lower().replace("_", "-")
    factory = factories.get(key)
    if factory is None:
        known = ", ".join(sorted(factories))
        raise UnknownProviderError(f"Unknown provider '{name}'. Available providers: {known}")
    provider = factory(config)
    if not isinstance(provider, AstProvider):
        raise TypeError(f"Provider factory for '{name}' did not return an AstProvider instance")
    return provider


def _coerce_provider(obj: object, config: CShapeConfig) -> AstProvider:
    if isinstance(obj, AstProvider):
        return obj
    if isinstance(obj, type) and issubclass(obj, AstProvider):
        return obj()
    if callable(obj):
        instance = obj(config)
        if isinstance(instance, AstProvider):
            return instance
    raise TypeError("Provider entry point must be an AstProvider subclass or factory")


def _iter_entry_points() -> Iterable[metadata.EntryPoint]:
    return metadata.entry_points().select(group=_ENTRY_POINT_GROUP)


__all__ = [
    "AstNode",
    "AstProvider",
    "DeclNode",
    "LibclangProvider",
    "NodeKind",
    "ParseError",
    "TreeSitterProvider",
    "UnknownProviderError",
    "available_providers",
    "discover_providers",
    "get_provider",
]
