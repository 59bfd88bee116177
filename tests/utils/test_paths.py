"""Tests for path and pathname helpers."""

import pytest

from collectionkit.utils.paths import (
    base_name,
    create_slug,
    directory_name,
    ensure_relative_path,
    extension_name,
    file_path_to_pathname,
    get_editor_uri,
    join_paths,
    relative_path,
    remove_all_extensions,
    remove_extension,
    remove_order_prefixes,
)


class TestCreateSlug:
    @pytest.mark.parametrize(
        "text,expected",
        [
            ("ButtonGroup", "button-group"),
            ("Hello World!", "hello-world"),
            ("snake_case_name", "snake-case-name"),
            ("Crème Brûlée", "creme-brulee"),
            ("--leading and trailing--", "leading-and-trailing"),
        ],
    )
    def test_slugs(self, text, expected):
        assert create_slug(text) == expected


class TestPathParts:
    def test_base_name(self):
        assert base_name("/path/to/file.ts") == "file.ts"
        assert base_name("/path/to/file.ts", ".ts") == "file"

    def test_extension_name(self):
        assert extension_name("readme.md") == ".md"
        assert extension_name("/a/Button.examples.tsx") == ".tsx"
        assert extension_name(".gitignore") == ""
        assert extension_name("a.b/c") == ""

    def test_directory_name(self):
        assert directory_name("/path/to/file.ts") == "/path/to"
        assert directory_name("/file.ts") == "/"
        assert directory_name("file.ts") == "."

    def test_remove_extensions(self):
        assert remove_extension("Button.examples.tsx") == "Button.examples"
        assert remove_all_extensions("src/Button.examples.tsx") == "src/Button"
        assert remove_all_extensions("README") == "README"

    def test_remove_order_prefixes(self):
        assert remove_order_prefixes("01.docs/02-intro.mdx") == "docs/intro.mdx"


class TestJoinPaths:
    def test_resolves_dots(self):
        assert join_paths("/a/b", "../c", "./d/") == "/a/c/d"

    def test_relative_parent_kept(self):
        assert join_paths("a", "..", "..") == ".."

    def test_empty(self):
        assert join_paths() == "."
        assert join_paths(None, "") == "."

    def test_relative_path(self):
        assert relative_path("/site/.collectionkit", "/site/posts") == "../posts"
        assert ensure_relative_path("posts") == "./posts"
        assert ensure_relative_path("../posts") == "../posts"


class TestFilePathToPathname:
    def test_order_prefix_removed(self):
        pathname = file_path_to_pathname("/docs/01.getting-started.mdx", base_directory="docs")
        assert pathname == "/getting-started"

    def test_repeated_segment_collapsed(self):
        pathname = file_path_to_pathname("src/components/Button/Button.tsx", base_directory="src")
        assert pathname == "/components/button"

    def test_member_file(self):
        pathname = file_path_to_pathname(
            "src/components/Button/Button.examples.tsx", base_directory="src"
        )
        assert pathname == "/components/button/examples"

    def test_node_modules_is_empty(self):
        assert file_path_to_pathname("node_modules/pkg/index.js") == ""

    def test_base_pathname(self):
        pathname = file_path_to_pathname(
            "posts/hello.mdx", base_directory="posts", base_pathname="blog"
        )
        assert pathname == "/blog/hello"

    def test_base_pathname_not_repeated(self):
        pathname = file_path_to_pathname("blog/hello.mdx", base_pathname="blog")
        assert pathname == "/blog/hello"

    def test_package_name_removed(self):
        assert file_path_to_pathname("mdx/remark.ts", package_name="mdx") == "/remark"

    def test_directory_keeps_dots(self):
        assert file_path_to_pathname("docs/02.guides", directory=True) == "/docs/guides"

    def test_without_kebab_case(self):
        pathname = file_path_to_pathname("src/ButtonGroup.tsx", base_directory="src", kebab_case=False)
        assert pathname == "/ButtonGroup"

    def test_outside_base_directory(self):
        assert file_path_to_pathname("other/file.ts", base_directory="src") == "/"


class TestEditorUri:
    def test_position(self):
        assert get_editor_uri("/a/b.ts", 3, 5) == "vscode://file///a/b.ts:3:5"

    def test_defaults(self):
        assert get_editor_uri("/a/b.ts") == "vscode://file///a/b.ts:0:0"

    def test_scheme(self):
        assert get_editor_uri("/a/b.ts", scheme="cursor").startswith("cursor://file//")
