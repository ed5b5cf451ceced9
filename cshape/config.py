"""Configuration loading for cshape (.cshape.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

CONFIG_FILENAME = ".cshape.yml"
DEFAULT_PROVIDER = "libclang"


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class LibclangConfig:
    """Settings for the libclang provider."""

    library_file: Optional[Path] = None
    args: List[str] = field(default_factory=list)
    include_dirs: List[Path] = field(default_factory=list)
    defines: List[str] = field(default_factory=list)

    def compile_args(self) -> List[str]:
        """Return the command-line arguments handed to the clang front end."""
        rendered = [f"-I{path}" for path in self.include_dirs]
        rendered.extend(f"-D{define}" for define in self.defines)
        rendered.extend(self.args)
        return rendered


@dataclass
class CShapeConfig:
    """Represents the settings defined in .cshape.yml."""

    root: Path
    provider: str = DEFAULT_PROVIDER
    strict: bool = False
    libclang: LibclangConfig = field(default_factory=LibclangConfig)


def load_config(config_path: Path) -> CShapeConfig:
    """Load configuration from disk, falling back to defaults when absent."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return CShapeConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    provider = data.get("provider", DEFAULT_PROVIDER)
    if not isinstance(provider, str) or not provider.strip():
        raise ConfigError("provider must be a non-empty string")

    strict = _as_bool(data.get("strict", False))
    if strict is None:
        raise ConfigError("strict must be a boolean")

    libclang = LibclangConfig()
    libclang_data = data.get("libclang")
    if libclang_data is not None:
        if not isinstance(libclang_data, dict):
            raise ConfigError("libclang must be a mapping")
        library_file = _as_str(libclang_data.get("library_file"))
        libclang.library_file = _resolve_path(root, library_file) if library_file else None
        libclang.args = _as_str_list(libclang_data.get("args"), "libclang.args")
        libclang.include_dirs = [
            _resolve_path(root, entry)
            for entry in _as_str_list(libclang_data.get("include_dirs"), "libclang.include_dirs")
        ]
        libclang.defines = _as_str_list(libclang_data.get("defines"), "libclang.defines")

    return CShapeConfig(
        root=root,
        provider=provider.strip().lower(),
        strict=strict,
        libclang=libclang,
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _resolve_path(root: Path, value: str) -> Path:
    path = Path(value).expanduser()
    return path if path.is_absolute() else (root / path)


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float)) and not isinstance(value, bool) else None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any, key: str) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float)) and not isinstance(item, bool)]
    raise ConfigError(f"{key} must be a string or a list of strings")


__all__ = [
    "CONFIG_FILENAME",
    "CShapeConfig",
    "ConfigError",
    "DEFAULT_PROVIDER",
    "LibclangConfig",
    "load_config",
]
