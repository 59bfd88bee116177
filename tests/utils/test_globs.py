"""Tests for glob helpers."""

from collectionkit.utils.globs import (
    expand_braces,
    glob_parent,
    has_magic,
    match_files,
    match_segments,
)


def test_has_magic():
    assert has_magic("posts/*.mdx")
    assert has_magic("posts/{a,b}.mdx")
    assert not has_magic("posts/intro.mdx")


def test_expand_braces():
    assert expand_braces("*.{ts,tsx}") == ["*.ts", "*.tsx"]
    assert expand_braces("{a,b}/{c,d}") == ["a/c", "a/d", "b/c", "b/d"]
    assert expand_braces("{single}") == ["{single}"]
    assert expand_braces("plain") == ["plain"]


def test_glob_parent():
    assert glob_parent("posts/**/*.mdx") == "posts"
    assert glob_parent("posts/intro.mdx") == "posts"
    assert glob_parent("*.mdx") == "."
    assert glob_parent("/site/docs/*.md") == "/site/docs"
    assert glob_parent("posts/") == "posts"


class TestMatchFiles:
    def setup_tree(self, root):
        (root / "posts" / "nested").mkdir(parents=True)
        (root / "posts" / "a.mdx").write_text("a")
        (root / "posts" / "b.md").write_text("b")
        (root / "posts" / "nested" / "c.mdx").write_text("c")
        (root / "node_modules").mkdir()
        (root / "node_modules" / "x.mdx").write_text("x")
        return root.resolve().as_posix()

    def test_single_level(self, tmp_path):
        root = self.setup_tree(tmp_path)
        assert match_files("posts/*.mdx", tmp_path) == [f"{root}/posts/a.mdx"]

    def test_recursive_skips_ignored(self, tmp_path):
        root = self.setup_tree(tmp_path)
        matches = match_files("**/*.mdx", tmp_path, ignored_dirs=["node_modules"])
        assert matches == [f"{root}/posts/a.mdx", f"{root}/posts/nested/c.mdx"]

    def test_braces(self, tmp_path):
        root = self.setup_tree(tmp_path)
        matches = match_files("posts/*.{md,mdx}", tmp_path)
        assert matches == [f"{root}/posts/a.mdx", f"{root}/posts/b.md"]

    def test_exclusion(self, tmp_path):
        root = self.setup_tree(tmp_path)
        matches = match_files(["posts/**/*.mdx", "!posts/nested/*"], tmp_path)
        assert matches == [f"{root}/posts/a.mdx"]

    def test_static_path(self, tmp_path):
        root = self.setup_tree(tmp_path)
        assert match_files("posts/b.md", tmp_path) == [f"{root}/posts/b.md"]
        assert match_files("posts/missing.md", tmp_path) == []

    def test_missing_parent(self, tmp_path):
        assert match_files("drafts/*.mdx", tmp_path) == []

    def test_star_stays_in_one_directory(self, tmp_path):
        root = self.setup_tree(tmp_path)
        (tmp_path / "posts" / "nested" / "deep.ts").write_text("x")

        assert match_files("posts/*", tmp_path) == [f"{root}/posts/a.mdx", f"{root}/posts/b.md"]

    def test_inner_wildcard_segment(self, tmp_path):
        root = self.setup_tree(tmp_path)
        (tmp_path / "posts" / "nested" / "more").mkdir()
        (tmp_path / "posts" / "nested" / "more" / "d.mdx").write_text("d")

        assert match_files("posts/*/*.mdx", tmp_path) == [f"{root}/posts/nested/c.mdx"]


def test_match_segments():
    assert match_segments(("*.mdx",), ("a.mdx",))
    assert not match_segments(("*.mdx",), ("nested", "a.mdx"))
    assert match_segments(("**", "*.mdx"), ("a.mdx",))
    assert match_segments(("**", "*.mdx"), ("x", "y", "a.mdx"))
    assert match_segments(("**",), ("x", "y"))
    assert not match_segments(("**", "a", "*"), ("a", "b", "c"))
    assert match_segments(("a?.ts",), ("ab.ts",))
    assert not match_segments(("a?.ts",), ("a", ".ts"))
