"""Core data models shared across twscan components."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Union


@dataclass(frozen=True)
class ArbitraryValue:
    """Raw value passed through to the class name inside square brackets."""

    value: str

    def __str__(self) -> str:
        if self.value.startswith("[") and self.value.endswith("]"):
            return self.value
        return f"[{self.value}]"


AttributeValue = Union[str, int, float, bool, ArbitraryValue, "AttributeMapping"]
AttributeMapping = Dict[str, AttributeValue]
ClassToken = str


@dataclass(frozen=True)
class SourceFile:
    """A source file read fresh for one extraction attempt."""

    path: str
    content: str
    modified_at: float

    @classmethod
    def read(cls, path: str | Path) -> "SourceFile":
        """Read ``path`` from disk; raises ``FileNotFoundError`` when absent."""
        resolved = os.path.abspath(os.fspath(path))
        stat_result = os.stat(resolved)
        with open(resolved, encoding="utf-8") as handle:
            content = handle.read()
        return cls(path=resolved, content=content, modified_at=stat_result.st_mtime)


@dataclass
class CacheEntry:
    """Cached token list for one source file."""

    classes: List[ClassToken]
    mtime: float
    accessed_at: float

    def to_dict(self) -> Dict[str, object]:
        return {
            "classes": list(self.classes),
            "mtime": self.mtime,
            "accessed_at": self.accessed_at,
        }
