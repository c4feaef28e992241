"""Fetch manifest content files."""

import logging
import posixpath
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path

from epub_gen.core.errors import FetchError

log = logging.getLogger(__name__)


class Fetcher(ABC):
    """Reads files by manifest-relative logical path."""

    @abstractmethod
    def read_bytes(self, path: str) -> bytes:
        """Return the file content.

        Raises:
            FetchError: If the file cannot be read
        """
        pass

    @abstractmethod
    def exists(self, path: str) -> bool:
        """Check whether the file can be read."""
        pass

    def read_text(self, path: str) -> str:
        """Return the file content decoded as UTF-8."""
        data = self.read_bytes(path)
        try:
            return data.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise FetchError(path, f"not valid UTF-8 ({e.reason})") from e


class FileSystemFetcher(Fetcher):
    """Read files relative to the manifest directory."""

    def __init__(self, root: Path):
        self.root = root

    def resolve(self, path: str) -> Path:
        return self.root / path

    def read_bytes(self, path: str) -> bytes:
        try:
            return self.resolve(path).read_bytes()
        except OSError as e:
            raise FetchError(path, e.strerror or str(e)) from e

    def exists(self, path: str) -> bool:
        return self.resolve(path).is_file()


class MemoryFetcher(Fetcher):
    """Serve files from a dict of path -> content."""

    def __init__(self, files: dict[str, str | bytes]):
        self.files = {posixpath.normpath(k): v for k, v in files.items()}

    def read_bytes(self, path: str) -> bytes:
        try:
            data = self.files[posixpath.normpath(path)]
        except KeyError:
            raise FetchError(path) from None
        return data.encode("utf-8") if isinstance(data, str) else data

    def exists(self, path: str) -> bool:
        return posixpath.normpath(path) in self.files


class ContentLoader:
    """Fetch content files concurrently, keeping manifest order."""

    DEFAULT_JOBS = 4

    def __init__(self, fetcher: Fetcher, jobs: int = DEFAULT_JOBS):
        self.fetcher = fetcher
        self.jobs = jobs

    def load(self, contents: list[str]) -> list[str]:
        """Read every content file.

        Results land in the slot of their manifest position regardless of
        completion order. The first failure cancels pending reads.

        Raises:
            FetchError: If any file cannot be read
        """
        texts: list[str] = [""] * len(contents)

        if self.jobs <= 1 or len(contents) <= 1:
            for index, path in enumerate(contents):
                texts[index] = self.fetcher.read_text(path)
        else:
            with ThreadPoolExecutor(max_workers=self.jobs) as ex:
                future_map = {
                    ex.submit(self.fetcher.read_text, path): index
                    for index, path in enumerate(contents)
                }
                try:
                    for future in as_completed(future_map):
                        texts[future_map[future]] = future.result()
                except FetchError:
                    for future in future_map:
                        future.cancel()
                    raise

        log.info("Loaded %d content file(s)", len(texts))
        return texts
