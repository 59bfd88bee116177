"""Tests for the source tree scanner, pathname and order maps."""

import json
from pathlib import Path

from collectionkit.config import Config
from collectionkit.models import CollectionOptions, NodeKind, SourceNode
from collectionkit.scanner import (
    build_source_tree,
    compute_order_map,
    compute_pathname_map,
    get_public_paths,
    resolve_public_paths,
)


def _file(parent: SourceNode, name: str) -> SourceNode:
    node = SourceNode(path=f"{parent.path}/{name}", name=name, kind=NodeKind.FILE)
    parent.children.append(node)
    return node


def _directory(parent: SourceNode, name: str) -> SourceNode:
    node = SourceNode(path=f"{parent.path}/{name}", name=name, kind=NodeKind.DIRECTORY)
    parent.children.append(node)
    return node


def _root() -> SourceNode:
    return SourceNode(path="/site/docs", name="docs", kind=NodeKind.DIRECTORY)


def test_scanner_ignores_dirs(temp_repo, config):
    """node_modules and other ignored directories are skipped."""
    tree = build_source_tree(temp_repo, config)
    names = {node.name for node in tree.walk()}

    assert "posts" in names
    assert "01.hello-world.mdx" in names
    assert "node_modules" not in names
    assert "dep.js" not in names


def test_scanner_respects_gitignore(tmp_path, config):
    """Files matched by the root .gitignore are skipped."""
    repo = tmp_path / "repo"
    repo.mkdir()
    (repo / ".gitignore").write_text("drafts/\n*.log\n")
    (repo / "drafts").mkdir()
    (repo / "drafts" / "wip.mdx").write_text("# WIP")
    (repo / "debug.log").write_text("log")
    (repo / "index.mdx").write_text("# Index")

    names = {node.name for node in build_source_tree(repo, config).walk()}

    assert "index.mdx" in names
    assert "drafts" not in names
    assert "debug.log" not in names


def test_scanner_file_size_limit(tmp_path):
    """Files larger than max_file_size are skipped."""
    repo = tmp_path / "repo"
    repo.mkdir()
    (repo / "small.md").write_text("small")
    (repo / "large.md").write_text("x" * 101)

    names = {node.name for node in build_source_tree(repo, Config(max_file_size=100)).walk()}

    assert "small.md" in names
    assert "large.md" not in names


def test_pathname_map_covers_every_node():
    """Every directory and file gets exactly one pathname."""
    root = _root()
    guides = _directory(root, "02.guides")
    _file(guides, "01.install.mdx")
    _file(root, "01.getting-started.mdx")

    pathnames = compute_pathname_map(root)

    assert set(pathnames) == {node.path for node in root.walk()}
    assert pathnames["/site/docs"] == "/"
    assert pathnames["/site/docs/02.guides"] == "/guides"
    assert pathnames["/site/docs/02.guides/01.install.mdx"] == "/guides/install"
    assert pathnames["/site/docs/01.getting-started.mdx"] == "/getting-started"


def test_pathname_map_base_pathname():
    """basePath is prepended to every route."""
    root = _root()
    _file(root, "Intro.mdx")

    pathnames = compute_pathname_map(root, CollectionOptions(basePath="docs"))

    assert pathnames["/site/docs/Intro.mdx"] == "/docs/intro"


def test_order_map_is_alphabetical():
    """Siblings are ordered by name, not by how they are stored."""
    root = _root()
    for name in ("b", "a", "c"):
        _file(root, name)

    order = compute_order_map(root)

    assert order == {
        "/site/docs/a": "01",
        "/site/docs/b": "02",
        "/site/docs/c": "03",
    }


def test_order_map_empty_directory():
    """An empty directory yields an empty map."""
    assert compute_order_map(_root()) == {}


def test_order_map_nested_keys():
    """Nested entries extend their parent's key."""
    root = _root()
    _file(root, "a.mdx")
    guides = _directory(root, "guides")
    _file(guides, "setup.mdx")

    order = compute_order_map(root)

    assert order["/site/docs/guides"] == "02"
    assert order["/site/docs/guides/setup.mdx"] == "02.01"


def test_order_map_public_paths_filter_files_only():
    """Only allowed files get keys; directories always do."""
    root = _root()
    _file(root, "a.tsx")
    _file(root, "a.test.tsx")
    components = _directory(root, "components")
    _file(components, "Button.tsx")

    order = compute_order_map(root, public_paths=["/site/docs/a.tsx"])

    assert order == {"/site/docs/a.tsx": "01", "/site/docs/components": "02"}


def test_public_paths_from_package_exports(tmp_path):
    """package.json exports map dist files back to their sources."""
    package = tmp_path / "package"
    (package / "src").mkdir(parents=True)
    (package / "package.json").write_text(
        json.dumps(
            {
                "exports": {
                    ".": "./dist/index.js",
                    "./button": {"import": {"default": "./dist/button.js"}},
                }
            }
        )
    )
    (package / "src" / "index.ts").write_text("export {}")
    (package / "src" / "index.test.ts").write_text("test()")
    (package / "src" / "button.tsx").write_text("export {}")
    (package / "src" / "internal.ts").write_text("export {}")

    root = Path(package.resolve()).as_posix()
    patterns = get_public_paths(package)

    assert f"{root}/src/index.{{js,jsx,ts,tsx}}" in patterns
    assert f"!{root}/src/index.{{examples,test}}.{{js,jsx,ts,tsx}}" in patterns
    assert resolve_public_paths(package) == [
        f"{root}/src/button.tsx",
        f"{root}/src/index.ts",
    ]


def test_public_paths_without_package_json(tmp_path):
    """Packages without exports have no public paths."""
    assert get_public_paths(tmp_path) == []
