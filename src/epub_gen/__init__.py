"""Generate EPUB books from a JSON manifest and markdown content files."""

from epub_gen.core.builder import GenerationResult, build_book, generate

__version__ = "0.1.0"

__all__ = ["GenerationResult", "build_book", "generate", "__version__"]
