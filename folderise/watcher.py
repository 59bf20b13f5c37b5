"""Filesystem watching that feeds cache invalidation."""

from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from folderise.site_paths import is_hidden

logger = logging.getLogger(__name__)

ADD = "add"
CHANGE = "change"
UNLINK = "unlink"
ADD_DIR = "addDir"
UNLINK_DIR = "unlinkDir"

EVENT_MESSAGES = {
    ADD: "File {path} has been added",
    CHANGE: "File {path} has been changed",
    UNLINK: "File {path} has been removed",
    ADD_DIR: "Directory {path} has been added",
    UNLINK_DIR: "Directory {path} has been removed",
}


@dataclass(frozen=True)
class WatchEvent:
    kind: str
    path: str

    def describe(self) -> str:
        return EVENT_MESSAGES[self.kind].format(path=self.path)


def _to_str(path: str | bytes) -> str:
    if isinstance(path, bytes):
        return os.fsdecode(path)
    return path


class FolderEventHandler(FileSystemEventHandler):
    """Translates watchdog events into WatchEvents for one root folder."""

    def __init__(self, root: Path, on_event: Callable[[WatchEvent], None]):
        super().__init__()
        self.root = Path(root)
        self.on_event = on_event
        self.ready = threading.Event()

    def is_ignored(self, path: str) -> bool:
        try:
            rel = Path(path).relative_to(self.root)
        except ValueError:
            return True
        return any(is_hidden(part) for part in rel.parts)

    def emit(self, kind: str, path: str | bytes) -> None:
        path = _to_str(path)
        if not self.ready.is_set() or self.is_ignored(path):
            return
        event = WatchEvent(kind, path)
        try:
            self.on_event(event)
        except Exception:
            logger.exception("Failed handling %s", event.describe())

    def on_created(self, event: FileSystemEvent) -> None:
        self.emit(ADD_DIR if event.is_directory else ADD, event.src_path)

    def on_modified(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        self.emit(CHANGE, event.src_path)

    def on_deleted(self, event: FileSystemEvent) -> None:
        self.emit(UNLINK_DIR if event.is_directory else UNLINK, event.src_path)

    def on_moved(self, event: FileSystemEvent) -> None:
        self.on_deleted(event)
        dest_path = getattr(event, "dest_path", None)
        if dest_path:
            self.emit(ADD_DIR if event.is_directory else ADD, dest_path)


class FolderWatcher:
    def __init__(self, root: Path, on_event: Callable[[WatchEvent], None]):
        self.root = Path(root).resolve()
        self.handler = FolderEventHandler(self.root, on_event)
        self._observer: Observer | None = None

    def start(self) -> None:
        observer = Observer()
        observer.schedule(self.handler, str(self.root), recursive=True)
        observer.daemon = True
        observer.start()
        self._observer = observer
        self.handler.ready.set()
        logger.info("Initial scan complete. Ready for changes")

    def stop(self) -> None:
        if self._observer is None:
            return
        self._observer.stop()
        self._observer.join()
        self._observer = None
