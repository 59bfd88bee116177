"""Core data models for collectionkit."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator, Optional

from pydantic import BaseModel, Field


class NodeKind(str, Enum):
    FILE = "file"
    DIRECTORY = "directory"


@dataclass(eq=False)
class SourceNode:
    """One filesystem entry in a collection tree."""

    path: str
    name: str
    kind: NodeKind
    extension: str = ""
    children: list[SourceNode] = field(default_factory=list)

    @property
    def is_directory(self) -> bool:
        return self.kind is NodeKind.DIRECTORY

    def walk(self) -> Iterator[SourceNode]:
        """Yield this node and every descendant, depth first."""
        yield self
        for child in self.children:
            yield from child.walk()


@dataclass
class DocTag:
    """A ``@name text`` line from a documentation block."""

    name: str
    text: str = ""

    def to_dict(self) -> dict:
        return {"name": self.name, "text": self.text}


@dataclass
class DocMetadata:
    """Human-authored documentation attached to a declaration."""

    description: str = ""
    tags: list[DocTag] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "description": self.description,
            "tags": [tag.to_dict() for tag in self.tags],
        }


@dataclass
class Heading:
    """A heading found in long-form text."""

    id: str
    title: str
    depth: int

    def to_dict(self) -> dict:
        return {"id": self.id, "title": self.title, "depth": self.depth}


@dataclass
class Section:
    """A heading together with the headings nested beneath it."""

    id: str
    title: str
    depth: int
    children: list[Section] = field(default_factory=list)

    def to_dict(self) -> dict:
        result = {"id": self.id, "title": self.title, "depth": self.depth}
        if self.children:
            result["children"] = [child.to_dict() for child in self.children]
        return result


class SourceExpression(BaseModel):
    """Option code kept verbatim because it is not a literal (e.g. a loader)."""

    text: str


class CollectionOptions(BaseModel):
    """Options of a collection declaration, read from literal source."""

    base_directory: Optional[str] = Field(default=None, alias="baseDirectory")
    base_path: Optional[str] = Field(default=None, alias="basePath")
    package_name: Optional[str] = Field(default=None, alias="packageName")
    schema_: dict[str, Any] | SourceExpression | None = Field(default=None, alias="schema")
    loader: dict[str, Any] | SourceExpression | None = Field(default=None)
    import_map: list[Any] | SourceExpression | None = Field(default=None, alias="importMap")
    sort: Optional[str] = Field(default=None)
    ts_config_file_path: Optional[str] = Field(default=None, alias="tsConfigFilePath")
    title: Optional[str] = Field(default=None)
    label: Optional[str] = Field(default=None)

    model_config = {"populate_by_name": True, "extra": "allow"}


class CollectionConfiguration(BaseModel):
    """A collection declaration found in source."""

    pattern: str
    options: CollectionOptions = Field(default_factory=CollectionOptions)
    file_path: str
    line: int
