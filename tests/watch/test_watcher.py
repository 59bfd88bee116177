"""Tests for the filesystem watcher."""

import asyncio
from pathlib import Path

import pytest

from collectionkit.errors import CollectionKitError
from collectionkit.project import Project
from collectionkit.watch import WatchEvent, WatchEventKind, create_watcher
from collectionkit.watch.watcher import coalesce


class SpyProject:
    """Records refreshes and tracks files the way a project would."""

    def __init__(self, root: Path, config):
        self.root = root
        self.config = config
        self.tracked: set[str] = set()
        self.refreshed: list[str] = []

    def tracked_paths(self):
        return sorted(self.tracked)

    def has_source_file(self, path):
        return path in self.tracked

    async def refresh(self, path=None):
        self.refreshed.append(path)
        if Path(path).exists():
            self.tracked.add(path)
        else:
            self.tracked.discard(path)


class TestWatcherHandle:
    def setup_project(self, tmp_path, config):
        self.root = tmp_path.resolve()
        self.project = SpyProject(self.root, config)
        self.updates: list[str] = []

    async def on_update(self, path):
        self.updates.append(path)

    def test_create_then_delete(self, tmp_path, config):
        self.setup_project(tmp_path, config)
        watcher = create_watcher(self.project, [], self.on_update)
        path = self.root / "note.md"

        path.write_text("# Note")
        asyncio.run(watcher.handle(WatchEvent(WatchEventKind.ADDED, str(path))))

        assert self.project.refreshed == [path.as_posix()]
        assert self.updates == [path.as_posix()]
        assert self.project.has_source_file(path.as_posix())

        path.unlink()
        asyncio.run(watcher.handle(WatchEvent(WatchEventKind.REMOVED, str(path))))

        assert self.project.refreshed == [path.as_posix(), path.as_posix()]
        assert self.updates == [path.as_posix(), path.as_posix()]
        assert not self.project.has_source_file(path.as_posix())

    def test_loader_paths_are_not_registered(self, tmp_path, config):
        self.setup_project(tmp_path, config)
        loader = self.root / "loader.ts"
        watcher = create_watcher(self.project, [str(loader)], self.on_update)

        loader.write_text("export {}")
        asyncio.run(watcher.handle(WatchEvent(WatchEventKind.ADDED, str(loader))))

        assert self.project.refreshed == []
        assert self.updates == [loader.as_posix()]

    def test_untracked_changes_only_notify(self, tmp_path, config):
        self.setup_project(tmp_path, config)
        watcher = create_watcher(self.project, [], self.on_update)
        path = (self.root / "other.md").as_posix()

        asyncio.run(watcher.handle(WatchEvent(WatchEventKind.CHANGED, path)))

        assert self.project.refreshed == []
        assert self.updates == [path]

    def test_sync_callbacks(self, tmp_path, config):
        self.setup_project(tmp_path, config)
        calls = []
        watcher = create_watcher(self.project, [], calls.append)

        asyncio.run(watcher.handle(WatchEvent(WatchEventKind.CHANGED, str(self.root / "a.md"))))

        assert calls == [(self.root / "a.md").as_posix()]

    def test_refresh_errors_are_wrapped(self, tmp_path, config):
        self.setup_project(tmp_path, config)

        async def failing(path=None):
            raise OSError("disk")

        self.project.refresh = failing
        watcher = create_watcher(self.project, [], self.on_update)

        with pytest.raises(CollectionKitError) as excinfo:
            asyncio.run(watcher.handle(WatchEvent(WatchEventKind.ADDED, str(self.root / "a.md"))))

        assert isinstance(excinfo.value.__cause__, OSError)
        assert self.updates == []


class TestWatcherDispatch:
    def test_create_and_modify_coalesce(self, tmp_path, config):
        root = tmp_path.resolve()
        project = SpyProject(root, config)
        updates: list[str] = []
        path = root / "new.md"
        path.write_text("# New")

        async def scenario():
            watcher = create_watcher(project, [], updates.append)
            watcher.start()
            try:
                watcher.dispatch(WatchEvent(WatchEventKind.ADDED, str(path)))
                watcher.dispatch(WatchEvent(WatchEventKind.CHANGED, str(path)))
                await asyncio.sleep(0)
                await watcher.drain()
            finally:
                watcher.stop()

        asyncio.run(scenario())

        assert updates == [path.as_posix()]
        assert project.refreshed == [path.as_posix()]

    def test_coalesce(self):
        assert coalesce(None, WatchEventKind.CHANGED) is WatchEventKind.CHANGED
        assert coalesce(WatchEventKind.ADDED, WatchEventKind.CHANGED) is WatchEventKind.ADDED
        assert coalesce(WatchEventKind.REMOVED, WatchEventKind.ADDED) is WatchEventKind.CHANGED
        assert coalesce(WatchEventKind.ADDED, WatchEventKind.REMOVED) is WatchEventKind.REMOVED


class TestWatcherSetup:
    def test_watch_directories_cover_tracked_files(self, temp_repo, config):
        project = Project(temp_repo, config).open()
        root = temp_repo.resolve().as_posix()

        watcher = create_watcher(project, [f"{root}/posts"], lambda path: None)

        assert watcher.watch_directories() == [root]

    def test_ignored_paths(self, temp_repo, config):
        project = Project(temp_repo, config).open()
        watcher = create_watcher(project, [], lambda path: None)
        root = temp_repo.resolve().as_posix()

        assert watcher.is_ignored(f"{root}/node_modules/dep.js")
        assert watcher.is_ignored(f"{root}/.collectionkit/import-maps.js")
        assert not watcher.is_ignored(f"{root}/posts/01.hello-world.mdx")

    def test_new_loader_paths_are_watched(self, tmp_path, config):
        root = tmp_path.resolve()
        docs = root / "docs"
        docs.mkdir()
        project = SpyProject(root, config)
        updates: list[str] = []

        async def scenario():
            watcher = create_watcher(project, [], updates.append)
            watcher.start()
            try:
                assert watcher.watch_directories() == []
                watcher.set_loader_paths([str(docs)])
                assert watcher.watch_directories() == [docs.as_posix()]
                await asyncio.sleep(0.2)
                (docs / "intro.md").write_text("# Intro")
                for _ in range(100):
                    await watcher.drain()
                    if updates:
                        break
                    await asyncio.sleep(0.05)
            finally:
                watcher.stop()

        asyncio.run(scenario())

        assert updates == [(docs / "intro.md").as_posix()]


def test_watcher_observes_filesystem(temp_repo, config):
    project = Project(temp_repo, config).open()
    path = temp_repo.resolve() / "posts" / "03.third.mdx"
    updates: list[str] = []

    async def scenario():
        watcher = create_watcher(project, [], updates.append)
        watcher.start()
        try:
            await asyncio.sleep(0.2)
            path.write_text("# Third\n")
            for _ in range(100):
                await watcher.drain()
                if path.as_posix() in updates:
                    break
                await asyncio.sleep(0.05)
            await asyncio.sleep(0.3)
            await watcher.drain()
        finally:
            watcher.stop()

    asyncio.run(scenario())

    assert updates.count(path.as_posix()) == 1
    assert project.has_source_file(path.as_posix())
    assert project.get_source_file(path.as_posix()).text == "# Third\n"
