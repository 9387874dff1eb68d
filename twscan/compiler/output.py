"""Writes per-file ``.classes`` artifacts mirrored under the scratch directory."""

from __future__ import annotations

import os
from pathlib import Path
from typing import List, Optional, Sequence

from ..config import base_directory
from ..logging import get_logger

ARTIFACT_SUFFIX = ".classes"


class OutputWriter:
    """Projects a source file's classes to ``<scratch>/<relative path>.classes``."""

    def __init__(self, scratch_dir: Path, content_roots: Sequence[str]) -> None:
        self.scratch_dir = Path(os.path.abspath(scratch_dir))
        self._roots = [
            Path(os.path.abspath(base_directory(root))) for root in content_roots
        ]
        self.logger = get_logger("output")

    def write(self, file_path: str, classes: Sequence[str]) -> Optional[Path]:
        """Write ``classes`` for ``file_path``; returns the artifact path or ``None``."""
        if not classes:
            return None
        target = self.artifact_path(file_path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text("\n".join(dict.fromkeys(classes)), encoding="utf-8")
        if target.stat().st_size == 0:
            target.unlink()
            return None
        return target

    def remove(self, file_path: str) -> bool:
        """Delete the artifact of a source file that is gone or yields no classes."""
        target = self.artifact_path(file_path)
        try:
            target.unlink()
        except FileNotFoundError:
            return False
        self.logger.debug("Removed %s", target)
        return True

    def artifact_path(self, file_path: str) -> Path:
        return self.scratch_dir / f"{self._relative(file_path)}{ARTIFACT_SUFFIX}"

    def artifacts(self) -> List[Path]:
        if not self.scratch_dir.exists():
            return []
        return sorted(self.scratch_dir.rglob(f"*{ARTIFACT_SUFFIX}"))

    def clear(self) -> int:
        """Delete every artifact under the scratch directory; returns how many were removed."""
        removed = 0
        for artifact in self.artifacts():
            artifact.unlink(missing_ok=True)
            removed += 1
        return removed

    def _relative(self, file_path: str) -> str:
        path = Path(os.path.abspath(file_path))
        matches = [root for root in self._roots if path.is_relative_to(root) and path != root]
        if not matches:
            self.logger.debug("%s is outside the content roots; mirroring by name", path)
            return path.name
        root = max(matches, key=lambda candidate: len(candidate.parts))
        return path.relative_to(root).as_posix()


__all__ = ["ARTIFACT_SUFFIX", "OutputWriter"]
