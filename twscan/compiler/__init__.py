"""Extraction pipeline: parse, extract, build, cache, write and compile."""

from .file_classes import FileClassesExtractor
from .output import ARTIFACT_SUFFIX, OutputWriter
from .runner import ChangeBatch, Runner, ScanResult, WatchSession
from .tailwind import TailwindCompiler

__all__ = [
    "ARTIFACT_SUFFIX",
    "ChangeBatch",
    "FileClassesExtractor",
    "OutputWriter",
    "Runner",
    "ScanResult",
    "TailwindCompiler",
    "WatchSession",
]
