"""Long-running development server: watcher, import maps and refresh RPC."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

from ..analysis.source_text import analyze_source_text
from ..collections.import_maps import ImportMapWriter
from ..collections.tsconfig import get_absolute_glob_pattern
from ..config import Config
from ..project import Project
from ..utils.globs import glob_parent
from ..watch import create_watcher
from .server import RefreshServer

logger = logging.getLogger(__name__)

ANALYZE_SOURCE_TEXT = "analyzeSourceText"


def collection_directories(writer: ImportMapWriter) -> list[str]:
    """Static parent directories of every discovered collection."""
    directories = set()
    for configuration in writer.configurations.values():
        absolute = get_absolute_glob_pattern(
            configuration.pattern,
            writer.project.root,
            configuration.options.ts_config_file_path,
        )
        directories.add(glob_parent(absolute))
    return sorted(directories)


async def serve_project(
    root: Path | str,
    config: Optional[Config] = None,
    stop: Optional[asyncio.Event] = None,
    server: Optional[RefreshServer] = None,
) -> None:
    """Serve ``root`` until ``stop`` is set (or forever).

    Every file change refreshes the project, regenerates import maps when
    the change can affect a collection, and notifies subscribed clients.
    """
    config = config or Config.from_env()
    project = Project(root, config).open()
    writer = ImportMapWriter(project)
    writer.write()

    server = server or RefreshServer(config.host, config.port)
    server.register_method(ANALYZE_SOURCE_TEXT, lambda params: analyze_source_text(params or {}, project))

    regenerate = asyncio.Lock()

    async def on_update(path: str) -> None:
        # regenerations share one output file
        async with regenerate:
            await asyncio.to_thread(writer.write, changed_path=path)
            watcher.set_loader_paths(collection_directories(writer))
        await server.notify(path)

    watcher = create_watcher(project, collection_directories(writer), on_update)

    async with server:
        watcher.start()
        logger.info("Serving %s", project.root)
        try:
            if stop is None:
                await asyncio.Future()
            else:
                await stop.wait()
        finally:
            watcher.stop()
            project.close()
