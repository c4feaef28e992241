"""Data models for the book manifest."""

import datetime as dt

from pydantic import BaseModel, ConfigDict, Field


class RawAuthor(BaseModel):
    """Author object as written in a manifest."""

    name: str | None = None
    sort: str | None = None
    role: str | None = None


class RawManifest(BaseModel):
    """Manifest file as written by the user, before defaults are applied.

    Several keys accept more than one shape (a single string or a list, an
    author name or an author object); the normalizer collapses them.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    title: str | None = None
    subtitle: str | None = None
    only_title: bool | None = Field(None, alias="onlyTitle")
    sort_title: str | None = Field(None, alias="sortTitle")
    language: str | None = None
    contents: str | list[str] | None = None
    css: str | list[str] | None = None
    author: str | RawAuthor | list[str | RawAuthor] | None = None
    authors: str | RawAuthor | list[str | RawAuthor] | None = None
    publisher: str | None = None
    toc_depth: int | None = Field(None, alias="tocDepth")
    date: str | dt.date | None = None
    created: str | dt.date | None = None
    copyrighted: str | dt.date | None = None
    rights: str | None = None
    uuid: str | None = None
    cover: str | None = None
    isbn: str | None = None
    doi: str | None = None
    toc: bool | None = None


class Author(BaseModel):
    """Contributor with a sort key and a MARC relator role."""

    model_config = ConfigDict(frozen=True)

    name: str
    sort: str
    role: str = "aut"


class Manifest(BaseModel):
    """Manifest with every optional field resolved."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    title: str = "Untitled"
    subtitle: str = ""
    only_title: bool = Field(False, alias="onlyTitle")
    sort_title: str = Field(..., alias="sortTitle")
    language: str = "en"
    contents: list[str]
    css: list[str] = Field(default_factory=list)
    authors: list[Author] = Field(default_factory=list)
    publisher: str = ""
    toc_depth: int = Field(6, alias="tocDepth", ge=1, le=6)
    date: dt.date
    created: dt.date
    copyrighted: dt.date
    rights: str | None = None
    uuid: str
    cover: str | None = None
    isbn: str | None = None
    doi: str | None = None
    toc: bool = True

    @property
    def full_title(self) -> str:
        """Title joined with the subtitle unless ``onlyTitle`` is set."""
        if self.subtitle and not self.only_title:
            return f"{self.title}: {self.subtitle}"
        return self.title

    def to_raw(self) -> dict:
        """Dump back to the manifest file vocabulary."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
