"""Run the whole pipeline: manifest in, EPUB out."""

import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, TextIO

from epub_gen.core.archive import EpubArchive
from epub_gen.core.formatting import slugify
from epub_gen.core.headings import build_heading_tree, chapter_title
from epub_gen.core.loader import ContentLoader, Fetcher, FileSystemFetcher
from epub_gen.core.normalizer import ManifestSource, ensure_identifier, normalize_manifest
from epub_gen.core.renderer import MarkdownRenderer
from epub_gen.core.resources import harvest_resources
from epub_gen.core.serializer import EpubSerializer
from epub_gen.models.book import Book, Chapter
from epub_gen.models.manifest import Manifest

log = logging.getLogger(__name__)


@dataclass
class GenerationResult:
    """Summary of one generation run."""

    input: Path | None  # None for standard input
    root: Path
    manifest: Manifest
    output: Path | None  # None when written to a stream
    chapter_count: int
    resource_count: int


def build_book(
    manifest: Manifest,
    fetcher: Fetcher,
    renderer: MarkdownRenderer | None = None,
    jobs: int = ContentLoader.DEFAULT_JOBS,
) -> Book:
    """Load, rewrite, render and harvest every chapter of a manifest.

    Raises:
        FetchError: If a content file or resource cannot be read
    """
    texts = ContentLoader(fetcher, jobs).load(manifest.contents)
    texts, headings = build_heading_tree(texts)

    renderer = renderer or MarkdownRenderer()
    fragments = [renderer.render(text) for text in texts]
    fragments, resources = harvest_resources(manifest, fragments, fetcher)

    chapters = [
        Chapter(
            index=index,
            source=manifest.contents[index],
            title=chapter_title(headings, index) or f"Chapter {index + 1}",
            markdown=texts[index],
            xhtml=fragments[index],
        )
        for index in range(len(texts))
    ]
    return Book(manifest=manifest, chapters=chapters, headings=headings, resources=resources)


def write_book(
    book: Book,
    fetcher: Fetcher,
    output: Path | BinaryIO,
    indent: int = EpubSerializer.DEFAULT_INDENT,
) -> None:
    """Serialize the book and write the archive."""
    archive = EpubArchive(fetcher)
    archive.extend(EpubSerializer(book, indent).entries())
    archive.finalize(output)


def resolve_output(output: str | Path | None, manifest: Manifest, root: Path) -> Path | None:
    """Work out where the EPUB goes.

    Returns None for ``-`` (standard output). Without an explicit output the
    book is named after its title, beside the manifest.
    """
    if output is None:
        return root / f"{slugify(manifest.title, 'untitled')}.epub"
    if str(output) == "-":
        return None
    path = Path(output).resolve()
    if path.suffix != ".epub":
        path = path.with_name(path.name + ".epub")
    return path


def load_manifest(source: ManifestSource, indent: int = 2) -> Manifest:
    """Normalize a manifest and make sure it carries a persisted identifier.

    Validation runs first so an invalid manifest is never rewritten.
    """
    manifest = normalize_manifest(source.data)
    identifier = ensure_identifier(source, indent)
    if identifier != manifest.uuid:
        manifest = manifest.model_copy(update={"uuid": identifier})
    log.info("Normalized manifest for %r", manifest.full_title)
    return manifest


def generate(
    manifest_path: str | Path,
    output: str | Path | None = None,
    *,
    jobs: int = ContentLoader.DEFAULT_JOBS,
    indent: int = EpubSerializer.DEFAULT_INDENT,
    stdin: TextIO | None = None,
    stdout: BinaryIO | None = None,
) -> GenerationResult:
    """Generate an EPUB from a manifest file (``-`` reads standard input).

    Raises:
        ValidationError: If the manifest is malformed
        FetchError: If the manifest, a content file or a resource cannot be read
    """
    source = ManifestSource.load(manifest_path, stdin)
    manifest = load_manifest(source, indent)

    fetcher = FileSystemFetcher(source.root)
    book = build_book(manifest, fetcher, jobs=jobs)

    destination = resolve_output(output, manifest, source.root)
    write_book(book, fetcher, destination or stdout or sys.stdout.buffer, indent)

    return GenerationResult(
        input=source.path,
        root=source.root,
        manifest=manifest,
        output=destination,
        chapter_count=len(book.chapters),
        resource_count=len(book.resources),
    )
