"""Write package entries into the EPUB zip container."""

import io
import logging
import os
import tempfile
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

from epub_gen.core.loader import Fetcher

log = logging.getLogger(__name__)

# Identical books produce identical archives
FIXED_TIMESTAMP = (1980, 1, 1, 0, 0, 0)


@dataclass
class ArchiveEntry:
    """One file of the archive: literal content or a source to copy."""

    name: str
    content: bytes | None = None
    source: str | None = None  # Manifest-relative path read at write time
    compress: bool = True


class EpubArchive:
    """Append-only list of entries, written out in one pass by ``finalize``."""

    def __init__(self, fetcher: Fetcher):
        self.fetcher = fetcher
        self.entries: list[ArchiveEntry] = []
        self.finalized = False

    def add(self, entry: ArchiveEntry) -> None:
        if self.finalized:
            raise RuntimeError("Archive is already finalized")
        if entry.content is None and entry.source is None:
            raise ValueError(f"Entry {entry.name!r} has neither content nor source")
        self.entries.append(entry)

    def extend(self, entries: list[ArchiveEntry]) -> None:
        for entry in entries:
            self.add(entry)

    def finalize(self, output: Path | BinaryIO) -> None:
        """Write every entry and close the archive.

        A file destination is only replaced once the whole archive has been
        written; on failure nothing is left behind.

        Raises:
            FetchError: If a source-backed entry cannot be read
        """
        if isinstance(output, (str, Path)):
            self._finalize_file(Path(output))
        else:
            buffer = io.BytesIO()
            self._write(buffer)
            output.write(buffer.getvalue())
            output.flush()
        self.finalized = True
        log.info("Wrote %d archive entries", len(self.entries))

    def _finalize_file(self, output: Path) -> None:
        output.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=output.parent, prefix=f".{output.name}.", suffix=".part")
        tmp = Path(tmp_name)
        try:
            with os.fdopen(fd, "wb") as stream:
                self._write(stream)
            os.chmod(tmp, 0o644)
            os.replace(tmp, output)
        except BaseException:
            tmp.unlink(missing_ok=True)
            raise

    def _write(self, stream: BinaryIO) -> None:
        with zipfile.ZipFile(stream, "w") as archive:
            for entry in self.entries:
                if entry.content is not None:
                    data = entry.content
                else:
                    data = self.fetcher.read_bytes(entry.source)
                info = zipfile.ZipInfo(entry.name, date_time=FIXED_TIMESTAMP)
                info.compress_type = zipfile.ZIP_DEFLATED if entry.compress else zipfile.ZIP_STORED
                info.external_attr = 0o644 << 16
                archive.writestr(info, data)
                log.debug("Archived %s (%d bytes)", entry.name, len(data))
