"""Per-file pipeline: parse, mine call sites, build classes, add directives."""

from __future__ import annotations

import os
from typing import List, Optional

from ..builder import ClassNameBuilder
from ..config import TwscanConfig
from ..logging import get_logger
from ..models import SourceFile
from ..stores import ExtractionCache
from .directives import DirectiveCommentExtractor
from .extractor import CallSiteExtractor
from .parser import SourceParser, dialect_for


class FileClassesExtractor:
    """Returns the cached or freshly extracted class list for one file."""

    def __init__(
        self,
        cache: ExtractionCache,
        *,
        parser: Optional[SourceParser] = None,
        call_sites: Optional[CallSiteExtractor] = None,
        builder: Optional[ClassNameBuilder] = None,
        directives: Optional[DirectiveCommentExtractor] = None,
    ) -> None:
        self.cache = cache
        self.parser = parser or SourceParser()
        self.call_sites = call_sites or CallSiteExtractor()
        self.builder = builder or ClassNameBuilder()
        self.directives = directives or DirectiveCommentExtractor()
        self.logger = get_logger("extract")

    @classmethod
    def from_config(cls, config: TwscanConfig) -> "FileClassesExtractor":
        cache = ExtractionCache(
            config.scratch_dir,
            max_entries=config.cache.max_entries,
            retain_entries=config.cache.retain_entries,
        )
        return cls(
            cache,
            call_sites=CallSiteExtractor(
                config.style_functions, color_scheme=config.color_scheme
            ),
            builder=ClassNameBuilder(
                config.theme, prefix=config.prefix if config.prefix_classes else ""
            ),
        )

    def extract(self, file_path: str) -> List[str]:
        path = os.path.abspath(file_path)
        return self.cache.fetch(path, lambda: self.compute(path))

    def compute(self, path: str) -> List[str]:
        """Run the uncached pipeline; unreadable files yield no classes."""
        try:
            source = SourceFile.read(path)
        except FileNotFoundError:
            self.logger.warning("File not found: %s", path)
            return []
        except (OSError, UnicodeDecodeError) as exc:
            self.logger.error("Unexpected error reading %s: %s", path, exc)
            return []

        classes: List[str] = []
        tree = self.parser.parse(path, source.content)
        if tree is not None:
            classes.extend(self.builder.build_all(self.call_sites.extract(tree)))

        if dialect_for(path) == "template":
            classes.extend(self.directives.extract_from_template(source.content))
        else:
            classes.extend(self.directives.extract(source.content))
        return list(dict.fromkeys(classes))

    def clear_cache(self) -> None:
        self.cache.clear()


__all__ = ["FileClassesExtractor"]
