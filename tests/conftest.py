"""Shared fixtures: small books on disk and in memory."""

import json
from pathlib import Path

import pytest

from epub_gen.core.loader import MemoryFetcher

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16
JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"\x00" * 16

CHAPTER_ONE = """# Beginning

It's a start.

![Diagram](../images/diagram.png)

## Details

More text.
"""

CHAPTER_TWO = """# Ending

![Remote](https://example.com/remote.png)

![Photo](photo.jpg)
"""


def write_files(root: Path, files: dict[str, str | bytes]) -> None:
    for name, content in files.items():
        path = root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content, encoding="utf-8")


@pytest.fixture
def sample_manifest() -> dict:
    """Raw manifest for the sample book (no uuid)."""
    return {
        "title": "The Test Book",
        "subtitle": "A Sample",
        "authors": [{"name": "Alice Smith"}, "Bob Jones"],
        "publisher": "Test Press",
        "contents": ["chapters/one.md", "chapters/two.md"],
        "css": "style/extra.css",
        "cover": "images/cover.jpg",
        "date": "2020-3-5",
    }


@pytest.fixture
def sample_files() -> dict[str, str | bytes]:
    """Content and resource files of the sample book."""
    return {
        "chapters/one.md": CHAPTER_ONE,
        "chapters/two.md": CHAPTER_TWO,
        "chapters/photo.jpg": JPEG_BYTES,
        "images/diagram.png": PNG_BYTES,
        "images/cover.jpg": JPEG_BYTES,
        "style/extra.css": "p { margin: 0; }\n",
    }


@pytest.fixture
def memory_fetcher(sample_files) -> MemoryFetcher:
    return MemoryFetcher(sample_files)


@pytest.fixture
def manifest_path(tmp_path: Path, sample_manifest, sample_files) -> Path:
    """Sample book on disk; returns the manifest path."""
    book_dir = tmp_path / "book"
    write_files(book_dir, sample_files)
    manifest_path = book_dir / "book.json"
    manifest_path.write_text(json.dumps(sample_manifest, indent=2), encoding="utf-8")
    return manifest_path
