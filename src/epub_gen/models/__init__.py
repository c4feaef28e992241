"""Data models."""

from epub_gen.models.book import (
    Book,
    Chapter,
    HeadingNode,
    Resource,
)
from epub_gen.models.manifest import (
    Author,
    Manifest,
    RawAuthor,
    RawManifest,
)

__all__ = [
    # Manifest models
    "RawAuthor",
    "RawManifest",
    "Author",
    "Manifest",
    # Book models
    "HeadingNode",
    "Resource",
    "Chapter",
    "Book",
]
