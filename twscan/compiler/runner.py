"""Scan and watch orchestration for the extraction pipeline."""

from __future__ import annotations

import glob
import os
import queue
import threading
from dataclasses import dataclass, field
from typing import Callable, Iterator, List, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from ..config import TwscanConfig, base_directory
from ..logging import get_logger
from .file_classes import FileClassesExtractor
from .output import OutputWriter
from .parser import SUPPORTED_SUFFIXES
from .tailwind import TailwindCompiler

_STOP = object()


@dataclass
class ChangeBatch:
    """Files reported by the watcher between two recompilations."""

    added: List[str] = field(default_factory=list)
    modified: List[str] = field(default_factory=list)
    removed: List[str] = field(default_factory=list)

    def add(self, kind: str, path: str) -> None:
        bucket = getattr(self, kind)
        if path not in bucket:
            bucket.append(path)

    def __bool__(self) -> bool:
        return bool(self.added or self.modified or self.removed)


@dataclass
class ScanResult:
    """Summary of one full scan."""

    files: int = 0
    artifacts: int = 0
    failures: List[str] = field(default_factory=list)
    compiled: bool = False


class Runner:
    """Drives the per-file pipeline over every content root, then compiles once."""

    def __init__(
        self,
        config: TwscanConfig,
        *,
        extractor: Optional[FileClassesExtractor] = None,
        output: Optional[OutputWriter] = None,
        compiler: Optional[TailwindCompiler] = None,
        observer_factory: Callable[[], Observer] = Observer,
    ) -> None:
        self.config = config
        self.extractor = extractor or FileClassesExtractor.from_config(config)
        self.output = output or OutputWriter(config.scratch_dir, config.content_roots)
        self.compiler = compiler or TailwindCompiler(config)
        self._observer_factory = observer_factory
        self.last_result: Optional[ScanResult] = None
        self.logger = get_logger("runner")

    def run(self, watch: Optional[bool] = None) -> Optional["WatchSession"]:
        """Scan all content, compile, and optionally return a started watch session.

        ``watch`` overrides the ``watch`` config key. The scan outcome is kept
        in ``last_result``.
        """
        self.last_result = self.scan()
        should_watch = self.config.watch if watch is None else watch
        if not should_watch:
            return None
        session = WatchSession(self, observer_factory=self._observer_factory)
        session.start()
        return session

    def scan(self) -> ScanResult:
        result = ScanResult()
        for path in self.files():
            result.files += 1
            try:
                classes = self.process_file(path)
            except Exception as exc:
                self.logger.error("Failed to extract classes from %s: %s", path, exc)
                self.logger.debug("Extraction traceback for %s", path, exc_info=True)
                result.failures.append(path)
                continue
            if classes:
                result.artifacts += 1
        self.logger.debug(
            "Scanned %d files, %d with classes, %d failures",
            result.files,
            result.artifacts,
            len(result.failures),
        )
        result.compiled = self.compiler.compile()
        return result

    def files(self) -> Iterator[str]:
        """Yield supported files under every content root, each path once, in root order."""
        seen: set[str] = set()
        for root in self.config.content_roots:
            for path in _enumerate(root):
                if path in seen or not path.lower().endswith(SUPPORTED_SUFFIXES):
                    continue
                seen.add(path)
                yield path

    def process_file(self, path: str) -> List[str]:
        classes = self.extractor.extract(path)
        if classes:
            self.output.write(path, classes)
        else:
            self.output.remove(path)
        return classes

    def process_batch(self, batch: ChangeBatch) -> bool:
        self.logger.info("Recompiling Tailwind CSS...")
        self.logger.info("Modified: %s", batch.modified)
        self.logger.info("Added: %s", batch.added)
        self.logger.info("Removed: %s", batch.removed)
        for path in [*batch.modified, *batch.added]:
            if not os.path.isfile(path):
                continue
            try:
                self.process_file(path)
            except Exception as exc:
                self.logger.error("Failed to extract classes from %s: %s", path, exc)
        for path in batch.removed:
            if not os.path.exists(path):
                self.output.remove(path)
        return self.compiler.compile()

    def watch_directories(self) -> List[str]:
        directories: List[str] = []
        for root in self.config.content_roots:
            directory = base_directory(root)
            if os.path.isfile(directory):
                directory = os.path.dirname(directory)
            if os.path.isdir(directory) and directory not in directories:
                directories.append(directory)
        return directories


class _ChangeHandler(FileSystemEventHandler):
    """Forwards supported file events from watchdog threads into a queue."""

    def __init__(self, events: "queue.Queue[object]") -> None:
        super().__init__()
        self._events = events

    def on_created(self, event: FileSystemEvent) -> None:
        self._put("added", event.src_path, event)

    def on_modified(self, event: FileSystemEvent) -> None:
        self._put("modified", event.src_path, event)

    def on_deleted(self, event: FileSystemEvent) -> None:
        self._put("removed", event.src_path, event)

    def on_moved(self, event: FileSystemEvent) -> None:
        self._put("removed", event.src_path, event)
        self._put("added", getattr(event, "dest_path", ""), event)

    def _put(self, kind: str, path: object, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        text = os.fsdecode(path) if isinstance(path, (bytes, str)) else ""
        if text and text.lower().endswith(SUPPORTED_SUFFIXES):
            self._events.put((kind, os.path.abspath(text)))


class WatchSession:
    """Watches content directories and processes change batches on one thread.

    Watchdog delivers events on its own threads; they are queued and a single
    consumer drains them into batches, so batch processing never overlaps.
    """

    def __init__(
        self,
        runner: Runner,
        *,
        observer_factory: Callable[[], Observer] = Observer,
        settle: float = 0.1,
    ) -> None:
        self.runner = runner
        self._observer_factory = observer_factory
        self._settle = settle
        self._events: "queue.Queue[object]" = queue.Queue()
        self._observer: Optional[Observer] = None
        self._consumer: Optional[threading.Thread] = None
        self.batches = 0
        self.logger = get_logger("watch")

    @property
    def directories(self) -> List[str]:
        return self.runner.watch_directories()

    def start(self) -> None:
        if self._consumer is not None:
            raise RuntimeError("Watch session already started")
        handler = _ChangeHandler(self._events)
        observer = self._observer_factory()
        for directory in self.directories:
            observer.schedule(handler, directory, recursive=True)
            self.logger.info("Watching %s", directory)
        observer.start()
        self._observer = observer
        self._consumer = threading.Thread(target=self._consume, name="twscan-watch", daemon=True)
        self._consumer.start()

    def notify(self, kind: str, path: str) -> None:
        """Queue a change as if the watcher reported it."""
        self._events.put((kind, os.path.abspath(path)))

    def stop(self, timeout: Optional[float] = None) -> None:
        if self._observer is not None:
            self._observer.stop()
            self._observer.join(timeout)
            self._observer = None
        if self._consumer is not None:
            self._events.put(_STOP)
            self._consumer.join(timeout)
            self._consumer = None

    def join(self, timeout: Optional[float] = None) -> None:
        """Block until the session is stopped (or ``timeout`` elapses)."""
        if self._consumer is not None:
            self._consumer.join(timeout)

    def _consume(self) -> None:
        while True:
            item = self._events.get()
            if item is _STOP:
                return
            batch = ChangeBatch()
            stopping = self._collect(item, batch)
            if batch:
                self.batches += 1
                try:
                    self.runner.process_batch(batch)
                except Exception as exc:
                    self.logger.error("Failed to process change batch: %s", exc)
            if stopping:
                return

    def _collect(self, first: object, batch: ChangeBatch) -> bool:
        """Drain events arriving within the settle window; True when a stop was seen."""
        item = first
        while True:
            if item is _STOP:
                return True
            kind, path = item  # type: ignore[misc]
            batch.add(kind, path)
            try:
                item = self._events.get(timeout=self._settle)
            except queue.Empty:
                return False


def _enumerate(root: str) -> Iterator[str]:
    if glob.has_magic(root):
        for match in sorted(glob.glob(root, recursive=True)):
            if os.path.isfile(match):
                yield os.path.abspath(match)
        return
    if os.path.isfile(root):
        yield os.path.abspath(root)
        return
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort()
        for filename in sorted(filenames):
            yield os.path.abspath(os.path.join(dirpath, filename))


__all__ = ["ChangeBatch", "Runner", "ScanResult", "WatchSession"]
