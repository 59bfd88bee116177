"""Source tree scanner."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from pathspec import PathSpec
from pathspec.patterns.gitwildmatch import GitWildMatchPattern

from ..config import Config
from ..models import NodeKind, SourceNode
from ..utils.paths import extension_name

logger = logging.getLogger(__name__)


class SourceTreeScanner:
    """Builds a ``SourceNode`` tree for a directory."""

    def __init__(self, config: Config):
        """Initialize scanner with configuration.

        Args:
            config: Application configuration with ignored_dirs, max_file_size
        """
        self.config = config
        self.ignored_dirs = set(config.ignored_dirs) | {config.cache_dir}

    def scan(self, root: Path) -> SourceNode:
        """Scan ``root`` and return its tree.

        Args:
            root: Directory to scan

        Returns:
            SourceNode for ``root`` with every non-ignored descendant
        """
        root = root.resolve()
        gitignore_spec = self._load_gitignore(root)
        return self._build_node(root, root, gitignore_spec)

    def _build_node(
        self, current_path: Path, root: Path, gitignore_spec: Optional[PathSpec]
    ) -> SourceNode:
        node = SourceNode(
            path=current_path.as_posix(),
            name=current_path.name,
            kind=NodeKind.DIRECTORY,
        )

        try:
            entries = sorted(current_path.iterdir(), key=lambda p: p.name)
        except PermissionError:
            logger.debug("Skipping unreadable directory %s", current_path)
            return node

        for item in entries:
            if self._should_ignore(item, root, gitignore_spec):
                continue

            if item.is_dir():
                node.children.append(self._build_node(item, root, gitignore_spec))
            else:
                node.children.append(
                    SourceNode(
                        path=item.as_posix(),
                        name=item.name,
                        kind=NodeKind.FILE,
                        extension=extension_name(item.name),
                    )
                )

        return node

    def _should_ignore(
        self, path: Path, root: Path, gitignore_spec: Optional[PathSpec] = None
    ) -> bool:
        """Check if path should be ignored."""
        rel_path = path.relative_to(root)
        for part in rel_path.parts:
            if part in self.ignored_dirs:
                return True

        rel_posix = rel_path.as_posix()
        if path.is_dir():
            rel_posix += "/"
        if gitignore_spec and gitignore_spec.match_file(rel_posix):
            return True

        if path.is_file():
            try:
                if path.stat().st_size > self.config.max_file_size:
                    return True
            except OSError:
                return True

        return False

    def _load_gitignore(self, root: Path) -> Optional[PathSpec]:
        """Load .gitignore patterns if present."""
        gitignore_path = root / ".gitignore"
        if not gitignore_path.exists():
            return None

        try:
            patterns = gitignore_path.read_text().splitlines()
        except OSError:
            return None

        if not patterns:
            return None

        return PathSpec.from_lines(GitWildMatchPattern, patterns)


def build_source_tree(root: Path | str, config: Optional[Config] = None) -> SourceNode:
    """Build the ``SourceNode`` tree rooted at ``root``."""
    return SourceTreeScanner(config or Config()).scan(Path(root))
