"""Collect images, cover art and stylesheets into the package."""

import logging
import mimetypes
import posixpath
import re
from typing import Literal
from urllib.parse import unquote

from bs4 import BeautifulSoup

from epub_gen.core.errors import FetchError
from epub_gen.core.loader import Fetcher
from epub_gen.models.book import Resource
from epub_gen.models.manifest import Manifest

log = logging.getLogger(__name__)

SCHEME = re.compile(r"^\w+:")

# Types the platform registry may lack or get wrong
MEDIA_TYPES = {
    ".css": "text/css",
    ".gif": "image/gif",
    ".jpeg": "image/jpeg",
    ".jpg": "image/jpeg",
    ".ncx": "application/x-dtbncx+xml",
    ".otf": "font/otf",
    ".png": "image/png",
    ".svg": "image/svg+xml",
    ".ttf": "font/ttf",
    ".webp": "image/webp",
    ".woff": "font/woff",
    ".woff2": "font/woff2",
    ".xhtml": "application/xhtml+xml",
}


def media_type(path: str) -> str:
    """Resolve a MIME type from a file extension."""
    ext = posixpath.splitext(path)[1].lower()
    if ext in MEDIA_TYPES:
        return MEDIA_TYPES[ext]
    guessed, _ = mimetypes.guess_type(path)
    return guessed or "application/octet-stream"


def is_local(reference: str) -> bool:
    """True unless the reference starts with a URI scheme."""
    return not SCHEME.match(reference)


class ResourceHarvester:
    """Assign package paths to resources in the order they are met.

    The same source path always maps to the resource it got first.
    """

    def __init__(self, fetcher: Fetcher):
        self.fetcher = fetcher
        self.resources: list[Resource] = []
        self._by_source: dict[str, Resource] = {}

    def add(self, source: str, kind: Literal["stylesheet", "cover", "image"]) -> Resource:
        """Register a manifest-relative file and return its resource.

        Raises:
            FetchError: If the file does not exist
        """
        source = posixpath.normpath(source)
        existing = self._by_source.get(source)
        if existing is not None:
            return existing
        if not self.fetcher.exists(source):
            raise FetchError(source)

        ext = posixpath.splitext(source)[1]
        href = f"resources/{len(self.resources)}{ext}"
        resource = Resource(source=source, href=href, media_type=media_type(source), kind=kind)
        self.resources.append(resource)
        self._by_source[source] = resource
        log.debug("Resource %s -> %s", source, href)
        return resource

    def harvest_chapter(self, html: str, content_path: str) -> str:
        """Rewrite local image sources of one rendered chapter.

        Image paths are relative to the chapter file.
        """
        soup = BeautifulSoup(html, "lxml")
        base = posixpath.dirname(content_path)

        for img in soup.find_all("img"):
            src = img.get("src")
            if not src or not is_local(src):
                continue
            resource = self.add(posixpath.join(base, unquote(src)), "image")
            img["src"] = resource.content_href

        body = soup.body or soup
        return body.decode_contents(formatter="minimal")


def harvest_resources(
    manifest: Manifest,
    fragments: list[str],
    fetcher: Fetcher,
) -> tuple[list[str], list[Resource]]:
    """Harvest stylesheets, then the cover, then chapter images.

    Returns:
        Tuple of (rewritten chapter fragments, resources in index order)
    """
    harvester = ResourceHarvester(fetcher)

    for css in manifest.css:
        if is_local(css):
            harvester.add(css, "stylesheet")
        else:
            log.warning("Skipping remote stylesheet %s", css)

    if manifest.cover:
        if is_local(manifest.cover):
            harvester.add(manifest.cover, "cover")
        else:
            log.warning("Skipping remote cover %s", manifest.cover)

    rewritten = [
        harvester.harvest_chapter(html, manifest.contents[index])
        for index, html in enumerate(fragments)
    ]

    log.info("Harvested %d resource(s)", len(harvester.resources))
    return rewritten, harvester.resources
