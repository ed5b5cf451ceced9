"""Pipeline orchestration: parse a file, walk its declarations, render the model."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Optional

from .codec import encode_entries
from .config import CONFIG_FILENAME, CShapeConfig, load_config
from .logging import get_logger
from .models import TypeEntry
from .providers import AstProvider, get_provider
from .walker import AstWalker


class Orchestrator:
    """Coordinates one extraction per call; holds no per-file state between calls."""

    def __init__(
        self,
        config: CShapeConfig | None = None,
        provider: AstProvider | None = None,
    ) -> None:
        self.config = config
        self._provider = provider
        self.logger = get_logger("orchestrator")

    @classmethod
    def from_config_file(
        cls, config_path: Optional[Path] = None, *, provider_name: Optional[str] = None
    ) -> "Orchestrator":
        """Build an orchestrator from ``config_path`` (defaults to ./.cshape.yml)."""
        path = config_path if config_path is not None else Path.cwd() / CONFIG_FILENAME
        config = load_config(path)
        if provider_name:
            config.provider = provider_name.lower()
        return cls(config=config)

    @property
    def provider(self) -> AstProvider:
        if self._provider is None:
            config = self._resolve_config()
            self._provider = get_provider(config.provider, config)
            self.logger.debug("Using %s provider", config.provider)
        return self._provider

    def run_extract(self, path: str | Path) -> List[TypeEntry]:
        """Extract the type declarations of the file at ``path``."""
        file_path = Path(path).expanduser()
        self.logger.info("Extracting types from %s", file_path)
        root = self.provider.parse(file_path)
        return self._walk(root, file_path)

    def run_extract_source(self, filename: str, source: str) -> List[TypeEntry]:
        """Extract the type declarations of in-memory ``source`` named ``filename``."""
        self.logger.info("Extracting types from in-memory source %s", filename)
        root = self.provider.parse(Path(filename), source=source)
        return self._walk(root, Path(filename))

    @staticmethod
    def render(entries: Iterable[TypeEntry]) -> str:
        return encode_entries(entries)

    def _walk(self, root, file_path: Path) -> List[TypeEntry]:  # type: ignore[no-untyped-def]
        types = AstWalker().walk(root)
        self.logger.debug("Extracted %d type entries from %s", len(types), file_path)
        return types

    def _resolve_config(self) -> CShapeConfig:
        if self.config is None:
            self.config = load_config(Path.cwd() / CONFIG_FILENAME)
        return self.config


__all__ = ["Orchestrator"]
