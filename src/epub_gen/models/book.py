"""Data models for the resolved book."""

from typing import Literal

from pydantic import BaseModel, ConfigDict

from epub_gen.models.manifest import Manifest


class HeadingNode(BaseModel):
    """Single entry in the heading tree.

    Nodes without a title are placeholders inserted where a heading skips
    levels; they carry no label but keep their children in the tree.
    Frozen all the way down once the fold has finished.
    """

    model_config = ConfigDict(frozen=True)

    title: str | None = None
    level: int
    chapter: int | None = None
    id: str | None = None
    children: tuple["HeadingNode", ...] = ()

    @property
    def empty(self) -> bool:
        return self.title is None


class Resource(BaseModel):
    """File copied into the package under a generated name."""

    model_config = ConfigDict(frozen=True)

    source: str  # Manifest-relative logical path
    href: str  # Package-relative, e.g. resources/0.png
    media_type: str
    kind: Literal["stylesheet", "cover", "image"] = "image"

    @property
    def content_href(self) -> str:
        """Reference as seen from a document in text/."""
        return f"../{self.href}"


class Chapter(BaseModel):
    """One content file, rewritten and rendered."""

    model_config = ConfigDict(frozen=True)

    index: int
    source: str
    title: str
    markdown: str
    xhtml: str

    @property
    def file_name(self) -> str:
        return f"{self.index}.xhtml"


class Book(BaseModel):
    """Everything the serializer needs, resolved once per run."""

    model_config = ConfigDict(frozen=True)

    manifest: Manifest
    chapters: tuple[Chapter, ...]
    headings: tuple[HeadingNode, ...] = ()
    resources: tuple[Resource, ...] = ()

    @property
    def cover(self) -> Resource | None:
        for resource in self.resources:
            if resource.kind == "cover":
                return resource
        return None

    @property
    def stylesheets(self) -> list[Resource]:
        return [r for r in self.resources if r.kind == "stylesheet"]
