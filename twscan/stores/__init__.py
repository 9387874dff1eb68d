"""Persistent stores used by the extraction pipeline."""

from .extraction_cache import CACHE_FILENAME, ExtractionCache

__all__ = ["CACHE_FILENAME", "ExtractionCache"]
