"""Configuration loading for twscan (.twscan.yml)."""

from __future__ import annotations

import glob
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import yaml

CONFIG_FILENAME = ".twscan.yml"

DEFAULT_STYLE_FUNCTIONS: Tuple[str, ...] = (
    "tailwind",
    "tw",
    "Style",
    "style",
    "merge",
    "with_",
)

DEFAULT_COLOR_SCHEME: Dict[str, str] = {
    "primary": "purple",
    "secondary": "indigo",
}


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass(frozen=True)
class ThemeEntry:
    """Maps a canonical attribute key (and optional alias) to its class token."""

    token: str
    alias: Optional[str] = None


@dataclass
class CompilerConfig:
    """Settings for the external Tailwind CLI invocation."""

    assets_path: str = "public/assets"
    output_file_name: str = "styles"
    scratch_dir: str = "tmp/twscan"
    command: str = "npx tailwindcss"
    minify: bool = True
    important: bool = False
    dark_mode: Optional[str] = None
    safelist: List[str] = field(default_factory=list)
    blocklist: List[str] = field(default_factory=list)
    plugins: List[str] = field(default_factory=list)
    screens: Dict[str, str] = field(default_factory=dict)


@dataclass
class CacheConfig:
    """Bounds for the persisted extraction cache."""

    max_entries: int = 500
    retain_entries: int = 250


@dataclass
class TwscanConfig:
    """Represents the settings defined in .twscan.yml.

    Relative paths are resolved against ``root`` (the directory holding the
    configuration file).
    """

    root: Path
    content: List[str] = field(default_factory=list)
    prefix: str = ""
    prefix_classes: bool = True
    watch: bool = False
    style_functions: Tuple[str, ...] = DEFAULT_STYLE_FUNCTIONS
    theme: Dict[str, ThemeEntry] = field(default_factory=dict)
    color_scheme: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_COLOR_SCHEME))
    compiler: CompilerConfig = field(default_factory=CompilerConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)

    @property
    def content_roots(self) -> List[str]:
        """Absolute content roots; glob patterns stay patterns."""
        return [_absolute(self.root, entry) for entry in self.content]

    @property
    def scratch_dir(self) -> Path:
        return Path(_absolute(self.root, self.compiler.scratch_dir))

    @property
    def assets_dir(self) -> Path:
        return Path(_absolute(self.root, self.compiler.assets_path))

    @property
    def output_path(self) -> Path:
        return self.assets_dir / f"{self.compiler.output_file_name}.css"


def load_config(config_path: Path) -> TwscanConfig:
    """Load configuration from disk, returning defaults when the file is absent."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return TwscanConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    config = TwscanConfig(root=root)
    config.content = _as_str_list(data.get("content"))
    config.prefix = _as_str(data.get("prefix")) or ""
    prefix_classes = _as_bool(data.get("prefix_classes"))
    if prefix_classes is not None:
        config.prefix_classes = prefix_classes
    config.watch = _as_bool(data.get("watch")) or False

    if "style_functions" in data:
        config.style_functions = tuple(_as_str_list(data.get("style_functions")))

    config.theme = _parse_theme(_as_dict(data.get("theme")))

    scheme = _as_dict(data.get("color_scheme"))
    if scheme:
        config.color_scheme = {str(key): str(value) for key, value in scheme.items()}

    compiler_data = _as_dict(data.get("compiler"))
    if compiler_data:
        compiler = config.compiler
        compiler.assets_path = _as_str(compiler_data.get("assets_path")) or compiler.assets_path
        compiler.output_file_name = (
            _as_str(compiler_data.get("output_file_name")) or compiler.output_file_name
        )
        compiler.scratch_dir = _as_str(compiler_data.get("scratch_dir")) or compiler.scratch_dir
        compiler.command = _as_str(compiler_data.get("command")) or compiler.command
        minify = _as_bool(compiler_data.get("minify"))
        if minify is not None:
            compiler.minify = minify
        compiler.important = _as_bool(compiler_data.get("important")) or False
        compiler.dark_mode = _as_str(compiler_data.get("dark_mode"))
        compiler.safelist = _as_str_list(compiler_data.get("safelist"))
        compiler.blocklist = _as_str_list(compiler_data.get("blocklist"))
        compiler.plugins = _as_str_list(compiler_data.get("plugins"))
        compiler.screens = {
            str(key): str(value) for key, value in _as_dict(compiler_data.get("screens")).items()
        }

    cache_data = _as_dict(data.get("cache"))
    if cache_data:
        max_entries = _as_int(cache_data.get("max_entries"))
        retain_entries = _as_int(cache_data.get("retain_entries"))
        if max_entries is not None:
            config.cache.max_entries = max_entries
        if retain_entries is not None:
            config.cache.retain_entries = retain_entries
        if config.cache.retain_entries > config.cache.max_entries:
            raise ConfigError("cache.retain_entries must not exceed cache.max_entries")

    return config


def base_directory(root: str) -> str:
    """Return the literal directory part of a content root (glob segments removed)."""
    if not glob.has_magic(root):
        return root.rstrip("/") or "/"
    head = root.split("*", 1)[0].split("?", 1)[0].split("[", 1)[0]
    if not head.endswith("/"):
        head = os.path.dirname(head)
    return head.rstrip("/") or "/"


def _parse_theme(data: Mapping[str, Any]) -> Dict[str, ThemeEntry]:
    theme: Dict[str, ThemeEntry] = {}
    for key, raw in data.items():
        if isinstance(raw, str):
            theme[str(key)] = ThemeEntry(token=raw)
            continue
        entry = _as_dict(raw)
        token = _as_str(entry.get("token"))
        if not token:
            raise ConfigError(f"theme.{key} must define a token")
        theme[str(key)] = ThemeEntry(token=token, alias=_as_str(entry.get("alias")))
    return theme


def _absolute(root: Path, entry: str) -> str:
    expanded = os.path.expanduser(entry)
    if not os.path.isabs(expanded):
        expanded = os.path.join(str(root), expanded)
    return os.path.normpath(expanded)


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.suffix not in {".yml", ".yaml"}:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded if loaded is not None else {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return None
    return str(value) if isinstance(value, (str, int, float)) else None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


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


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    return []


__all__ = [
    "CONFIG_FILENAME",
    "CacheConfig",
    "CompilerConfig",
    "ConfigError",
    "ThemeEntry",
    "TwscanConfig",
    "base_directory",
    "load_config",
]
