"""Tests for data models."""

import pytest
from pydantic import ValidationError

from collectionkit.models import (
    CollectionConfiguration,
    CollectionOptions,
    DocMetadata,
    DocTag,
    NodeKind,
    SourceExpression,
    SourceNode,
)


class TestCollectionOptions:
    """Test CollectionOptions model."""

    def test_aliases(self):
        """Options are read with their declaration names."""
        options = CollectionOptions.model_validate(
            {
                "baseDirectory": "docs",
                "basePath": "guides",
                "tsConfigFilePath": "apps/site/tsconfig.json",
                "sort": "frontMatter.order",
                "schema": {"mdx": {"title": "string"}},
            }
        )

        assert options.base_directory == "docs"
        assert options.base_path == "guides"
        assert options.ts_config_file_path == "apps/site/tsconfig.json"
        assert options.sort == "frontMatter.order"
        assert options.schema_ == {"mdx": {"title": "string"}}

    def test_field_names_accepted(self):
        """Python field names work as well as aliases."""
        options = CollectionOptions(base_path="blog", package_name="mdx")
        assert options.base_path == "blog"
        assert options.package_name == "mdx"

    def test_source_expressions(self):
        """Loaders may be kept as source text."""
        loader = SourceExpression(text="(slug) => import(`./${slug}.mdx`)")
        options = CollectionOptions(loader=loader)
        assert options.loader == loader

    def test_unknown_options_kept(self):
        """Unrecognized options are preserved."""
        options = CollectionOptions.model_validate({"filter": "published"})
        assert options.model_extra == {"filter": "published"}


class TestCollectionConfiguration:
    def test_requires_location(self):
        with pytest.raises(ValidationError):
            CollectionConfiguration(pattern="posts/*.mdx")

    def test_defaults(self):
        configuration = CollectionConfiguration(pattern="posts/*.mdx", file_path="/site/collections.ts", line=3)
        assert configuration.options == CollectionOptions()


class TestSourceNode:
    def test_walk_is_depth_first(self):
        root = SourceNode(path="/a", name="a", kind=NodeKind.DIRECTORY)
        child = SourceNode(path="/a/b", name="b", kind=NodeKind.DIRECTORY)
        leaf = SourceNode(path="/a/b/c.md", name="c.md", kind=NodeKind.FILE, extension=".md")
        sibling = SourceNode(path="/a/d.md", name="d.md", kind=NodeKind.FILE, extension=".md")
        child.children.append(leaf)
        root.children.extend([child, sibling])

        assert [node.name for node in root.walk()] == ["a", "b", "c.md", "d.md"]
        assert root.is_directory
        assert not leaf.is_directory


def test_doc_metadata_to_dict():
    metadata = DocMetadata(description="Hi", tags=[DocTag(name="deprecated", text="Use X")])
    assert metadata.to_dict() == {
        "description": "Hi",
        "tags": [{"name": "deprecated", "text": "Use X"}],
    }
