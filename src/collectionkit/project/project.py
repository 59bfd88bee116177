"""Project context: the in-memory set of source files under one root."""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path
from typing import Optional

from ..config import Config
from ..scanner.tree import SourceTreeScanner
from .barrier import RefreshBarrier
from .source_file import TRACKED_EXTENSIONS, SourceFile

logger = logging.getLogger(__name__)

_projects: dict[tuple[str, str], "Project"] = {}


class Project:
    """Source files tracked for one root directory.

    Created explicitly and passed to whatever needs it; ``get_project`` keeps
    one shared instance per root for long-running processes.
    """

    def __init__(self, root: Path | str, config: Optional[Config] = None):
        self.root = Path(root).resolve()
        self.config = config or Config()
        self.barrier = RefreshBarrier()
        self._files: dict[str, SourceFile] = {}
        self._opened = False

    def __enter__(self) -> "Project":
        return self.open()

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def is_open(self) -> bool:
        return self._opened

    def open(self) -> "Project":
        """Load every trackable file under the root."""
        self._files = {**self._in_memory_files(), **self._scan()}
        self._opened = True
        logger.info("Opened project %s with %d source files", self.root, len(self._files))
        return self

    def close(self) -> None:
        self._files = {}
        self._opened = False

    async def refresh(self, path: Optional[str] = None) -> None:
        """Bring project state in line with disk.

        With ``path`` only that file is reconciled: added when new, reread
        when tracked, removed when gone. Without it the whole root is
        rescanned. The refresh is registered with ``barrier``.
        """
        if path is None:
            await self.barrier.track(self._refresh_all())
        else:
            await self.barrier.track(self._refresh_path(self._key(path)))

    async def _refresh_all(self) -> None:
        # scan into a fresh dict off the loop and swap it in with one assignment
        files = await asyncio.to_thread(self._scan)
        files.update(self._in_memory_files())
        self._files = files
        self._opened = True
        logger.info("Rescanned project %s: %d source files", self.root, len(files))

    def _in_memory_files(self) -> dict[str, SourceFile]:
        return {path: source for path, source in self._files.items() if source.in_memory}

    def _scan(self) -> dict[str, SourceFile]:
        tree = SourceTreeScanner(self.config).scan(self.root)
        files: dict[str, SourceFile] = {}
        for node in tree.walk():
            if not node.is_directory and node.extension in TRACKED_EXTENSIONS:
                key = self._key(node.path)
                files[key] = SourceFile(path=key, text=self._read_text(key))
        return files

    async def _refresh_path(self, path: str) -> None:
        file_path = Path(path)
        exists = await asyncio.to_thread(file_path.is_file)
        if not exists:
            self.remove_source_file(path)
            return

        text = await asyncio.to_thread(self._read_text, path)
        source_file = self._files.get(path)
        if source_file is not None:
            source_file.set_text(text)
            logger.debug("Refreshed %s", path)
        elif self.is_trackable(path):
            self._files[path] = SourceFile(path=path, text=text)
            logger.debug("Added %s", path)

    def is_trackable(self, path: str) -> bool:
        return Path(path).suffix.lower() in TRACKED_EXTENSIONS

    def add_source_file(self, path: str) -> SourceFile:
        """Read ``path`` from disk and track it."""
        key = self._key(path)
        source_file = SourceFile(path=key, text=self._read_text(key))
        self._files[key] = source_file
        return source_file

    def create_source_file(self, path: str, text: str) -> SourceFile:
        """Track a file that only exists in memory."""
        key = self._key(path)
        source_file = SourceFile(path=key, text=text, in_memory=True)
        self._files[key] = source_file
        return source_file

    def prune_in_memory(self, directory: str, limit: int) -> list[str]:
        """Drop the oldest in-memory files below ``directory`` beyond ``limit``.

        Returns:
            The removed paths.
        """
        prefix = self._key(directory).rstrip("/") + "/"
        paths = [path for path, source in self._files.items() if source.in_memory and path.startswith(prefix)]
        stale = paths[: max(len(paths) - limit, 0)]
        for path in stale:
            del self._files[path]
        if stale:
            logger.debug("Pruned %d in-memory file(s) below %s", len(stale), prefix)
        return stale

    def remove_source_file(self, path: str) -> bool:
        removed = self._files.pop(self._key(path), None)
        if removed is not None:
            logger.debug("Removed %s", removed.path)
        return removed is not None

    def refresh_source_file(self, path: str) -> Optional[SourceFile]:
        """Reread a tracked file from disk; None when it is not tracked."""
        source_file = self._files.get(self._key(path))
        if source_file is None or source_file.in_memory:
            return source_file
        source_file.set_text(self._read_text(source_file.path))
        return source_file

    def get_source_file(self, path: str) -> Optional[SourceFile]:
        return self._files.get(self._key(path))

    def has_source_file(self, path: str) -> bool:
        return self._key(path) in self._files

    def tracked_paths(self) -> list[str]:
        return sorted(self._files)

    def source_files(self) -> list[SourceFile]:
        return [self._files[path] for path in sorted(self._files)]

    def _key(self, path: str | Path) -> str:
        candidate = Path(path)
        if not candidate.is_absolute():
            candidate = self.root / candidate
        return Path(os.path.normpath(candidate)).as_posix()

    @staticmethod
    def _read_text(path: str) -> str:
        return Path(path).read_text(encoding="utf-8", errors="replace")


def get_project(root: Path | str, config: Optional[Config] = None) -> Project:
    """Shared, opened project for ``root``."""
    config = config or Config()
    key = (Path(root).resolve().as_posix(), config.model_dump_json())
    project = _projects.get(key)
    if project is None:
        project = Project(root, config).open()
        _projects[key] = project
    return project
