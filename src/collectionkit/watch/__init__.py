"""Filesystem watching."""

from .watcher import WatchEvent, WatchEventKind, Watcher, create_watcher

__all__ = ["WatchEvent", "WatchEventKind", "Watcher", "create_watcher"]
