"""Pytest configuration and shared fixtures."""

import pytest
from pathlib import Path
from collectionkit.config import Config


COLLECTIONS_TS = """import { createCollection } from 'renoun/collections'

export const posts = createCollection('posts/*.mdx', {
  basePath: 'blog',
  sort: 'date',
})
"""


@pytest.fixture
def config() -> Config:
    """Provide a test configuration."""
    return Config(environment="development", reconnect_interval=0.05)


@pytest.fixture
def production_config() -> Config:
    """Configuration for a production build."""
    return Config(environment="production")


@pytest.fixture
def temp_repo(tmp_path: Path) -> Path:
    """Create a temporary site with one collection of posts."""
    repo = tmp_path / "site"
    repo.mkdir()

    (repo / "collections.ts").write_text(COLLECTIONS_TS)
    posts = repo / "posts"
    posts.mkdir()
    (posts / "01.hello-world.mdx").write_text(
        "---\ntitle: Hello World\ndate: 2024-03-01\n---\n\n# Hello World\n"
    )
    (posts / "02.second-post.mdx").write_text(
        "---\ntitle: Second Post\ndate: 2024-01-15\n---\n\n# Second Post\n\n## Details\n"
    )
    (repo / "node_modules").mkdir()
    (repo / "node_modules" / "dep.js").write_text("export const dep = 1\n")

    return repo
