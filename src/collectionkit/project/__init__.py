"""In-memory project state shared by analysis, import maps and the watcher."""

from .barrier import RefreshBarrier
from .project import Project, get_project
from .source_file import TRACKED_EXTENSIONS, SourceFile, split_front_matter

__all__ = [
    "Project",
    "RefreshBarrier",
    "SourceFile",
    "TRACKED_EXTENSIONS",
    "get_project",
    "split_front_matter",
]
