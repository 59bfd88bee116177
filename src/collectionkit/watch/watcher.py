"""Filesystem watcher keeping a project in sync with disk."""

from __future__ import annotations

import asyncio
import inspect
import logging
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Iterable, Optional, Union

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from ..errors import CollectionKitError

if TYPE_CHECKING:
    from ..project import Project

logger = logging.getLogger(__name__)

UpdateCallback = Callable[[str], Union[Awaitable[Any], Any]]


class WatchEventKind(str, Enum):
    ADDED = "added"
    REMOVED = "removed"
    CHANGED = "changed"


@dataclass(frozen=True)
class WatchEvent:
    kind: WatchEventKind
    path: str


def coalesce(previous: Optional[WatchEventKind], current: WatchEventKind) -> WatchEventKind:
    """Merge two events for one path into the event describing both."""
    if previous is WatchEventKind.ADDED and current is WatchEventKind.CHANGED:
        return WatchEventKind.ADDED
    if previous is WatchEventKind.REMOVED and current is WatchEventKind.ADDED:
        return WatchEventKind.CHANGED
    return current


class _ProjectEventHandler(FileSystemEventHandler):
    """Translates watchdog callbacks into ``WatchEvent`` values."""

    def __init__(self, watcher: "Watcher"):
        super().__init__()
        self.watcher = watcher

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self.watcher.dispatch(WatchEvent(WatchEventKind.ADDED, os.fsdecode(event.src_path)))

    def on_deleted(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self.watcher.dispatch(WatchEvent(WatchEventKind.REMOVED, os.fsdecode(event.src_path)))

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self.watcher.dispatch(WatchEvent(WatchEventKind.CHANGED, os.fsdecode(event.src_path)))

    def on_moved(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        self.watcher.dispatch(WatchEvent(WatchEventKind.REMOVED, os.fsdecode(event.src_path)))
        self.watcher.dispatch(WatchEvent(WatchEventKind.ADDED, os.fsdecode(event.dest_path)))


class Watcher:
    """Watches loader paths and every tracked file of a project.

    Events arrive on watchdog's thread and are handled as tasks on the
    event loop that called ``start``. Events for one path within
    ``config.watch_debounce`` seconds are coalesced, so a new file written
    in place is handled once. Each handled event updates the project first
    and then awaits ``on_update(path)``.
    """

    def __init__(
        self,
        project: "Project",
        loader_paths: Iterable[str],
        on_update: UpdateCallback,
    ):
        self.project = project
        self.loader_paths = {self._normalize(path) for path in loader_paths}
        self.on_update = on_update
        self._ignored = set(project.config.ignored_dirs) | {project.config.cache_dir}
        self._observer: Optional[Observer] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._tasks: set[asyncio.Task] = set()
        self._pending: dict[str, WatchEventKind] = {}
        self.debounce = project.config.watch_debounce
        self._handler = _ProjectEventHandler(self)
        self._scheduled: set[str] = set()

    @staticmethod
    def _normalize(path: str) -> str:
        return Path(os.path.normpath(os.path.abspath(path))).as_posix()

    def watch_directories(self) -> list[str]:
        """Smallest set of directories covering loader and tracked paths."""
        candidates: set[str] = set()
        for path in self.loader_paths | set(self.project.tracked_paths()):
            candidate = Path(path)
            if candidate.is_dir():
                candidates.add(candidate.as_posix())
            elif candidate.parent.is_dir():
                candidates.add(candidate.parent.as_posix())

        roots: list[str] = []
        for directory in sorted(candidates):
            if not any(directory == root or directory.startswith(root.rstrip("/") + "/") for root in roots):
                roots.append(directory)
        return roots

    def is_ignored(self, path: str) -> bool:
        return any(part in self._ignored for part in Path(path).parts)

    def start(self) -> None:
        """Start watching; must be called from a running event loop."""
        self._loop = asyncio.get_running_loop()
        observer = Observer()
        self._schedule(observer)
        observer.start()
        self._observer = observer
        logger.info("Watching %d director(ies) for changes", len(self._scheduled))

    def set_loader_paths(self, loader_paths: Iterable[str]) -> None:
        """Replace the loader paths, watching any directory not yet covered."""
        self.loader_paths = {self._normalize(path) for path in loader_paths}
        if self._observer is not None:
            self._schedule(self._observer)

    def _schedule(self, observer: Observer) -> None:
        for directory in self.watch_directories():
            if any(directory == root or directory.startswith(root.rstrip("/") + "/") for root in self._scheduled):
                continue
            observer.schedule(self._handler, directory, recursive=True)
            self._scheduled.add(directory)
            logger.debug("Watching %s", directory)

    def stop(self) -> None:
        if self._observer is not None:
            self._observer.stop()
            self._observer.join()
            self._observer = None
        self._scheduled.clear()
        for task in list(self._tasks):
            task.cancel()
        self._pending.clear()

    async def drain(self) -> None:
        """Wait for every event handled so far."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def dispatch(self, event: WatchEvent) -> None:
        """Hand ``event`` to the event loop; safe to call from any thread."""
        if self._loop is None or self.is_ignored(event.path):
            return
        self._loop.call_soon_threadsafe(self._spawn, event)

    def _spawn(self, event: WatchEvent) -> None:
        path = self._normalize(event.path)
        previous = self._pending.get(path)
        self._pending[path] = coalesce(previous, event.kind)
        if previous is not None:
            return
        task = asyncio.ensure_future(self._flush(path))
        self._tasks.add(task)
        task.add_done_callback(self._finished)

    async def _flush(self, path: str) -> None:
        await asyncio.sleep(self.debounce)
        kind = self._pending.pop(path)
        await self.handle(WatchEvent(kind, path))

    def _finished(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error("Failed to handle file change: %s", error, exc_info=error)

    async def handle(self, event: WatchEvent) -> None:
        """Apply ``event`` to the project, then await ``on_update``.

        Raises:
            CollectionKitError: Updating the project failed, chained to the
                original error.
        """
        path = self._normalize(event.path)
        try:
            if event.kind is WatchEventKind.ADDED:
                if path not in self.loader_paths:
                    await self.project.refresh(path)
            elif self.project.has_source_file(path):
                await self.project.refresh(path)
        except Exception as error:
            raise CollectionKitError(
                f"An error occurred while updating the project for a change to {path}"
            ) from error

        logger.debug("Handled %s event for %s", event.kind.value, path)
        result = self.on_update(path)
        if inspect.isawaitable(result):
            await result


def create_watcher(
    project: "Project",
    loader_paths: Iterable[str],
    on_update: UpdateCallback,
) -> Watcher:
    """Create an unstarted ``Watcher`` for ``project``."""
    return Watcher(project, loader_paths, on_update)
