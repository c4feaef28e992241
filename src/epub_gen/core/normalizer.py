"""Validate a raw manifest and fill in its defaults."""

import datetime as dt
import json
import logging
import sys
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import TextIO

from pydantic import ValidationError as PydanticValidationError

from epub_gen.core.errors import FetchError, ValidationError
from epub_gen.core.formatting import format_list, parse_date, sort_author, sort_title
from epub_gen.models.manifest import Author, Manifest, RawAuthor, RawManifest

log = logging.getLogger(__name__)

DEFAULT_ROLE = "aut"
DEFAULT_TOC_DEPTH = 6


@dataclass
class ManifestSource:
    """Manifest JSON together with the file it was read from."""

    data: dict
    path: Path | None = None  # None when read from standard input

    @property
    def root(self) -> Path:
        """Directory that content paths are relative to."""
        return self.path.parent if self.path else Path.cwd()

    @classmethod
    def load(cls, location: str | Path, stdin: TextIO | None = None) -> "ManifestSource":
        """Read a manifest from a file, or from standard input for ``-``."""
        if str(location) == "-":
            text = (stdin or sys.stdin).read()
            path = None
        else:
            path = Path(location).resolve()
            try:
                text = path.read_text(encoding="utf-8")
            except OSError as e:
                raise FetchError(str(path), e.strerror or str(e)) from e

        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise ValidationError("manifest", f"invalid JSON ({e})") from e
        if not isinstance(data, dict):
            raise ValidationError("manifest", "must be a JSON object")
        return cls(data=data, path=path)

    def persist(self, indent: int = 2) -> None:
        """Write the manifest back to its file."""
        if self.path is None:
            raise ValueError("Manifest read from standard input cannot be persisted")
        self.path.write_text(
            json.dumps(self.data, indent=indent, ensure_ascii=False) + "\n",
            encoding="utf-8",
        )


def ensure_identifier(source: ManifestSource, indent: int = 2) -> str:
    """Give the manifest a permanent UUID, writing it back if it had none."""
    existing = source.data.get("uuid")
    if existing:
        return existing

    identifier = str(uuid.uuid4())
    source.data["uuid"] = identifier
    if source.path is None:
        log.warning(
            "Manifest from standard input has no uuid; %s is used for this run only",
            identifier,
        )
    else:
        source.persist(indent)
        log.info("Wrote new identifier %s to %s", identifier, source.path)
    return identifier


def normalize_manifest(raw: dict, today: dt.date | None = None) -> Manifest:
    """Turn a raw manifest into a fully defaulted one.

    Args:
        raw: Manifest JSON object
        today: Fallback for missing dates (default: current UTC date)

    Returns:
        Normalized manifest

    Raises:
        ValidationError: Naming the first offending key
    """
    if not isinstance(raw, dict):
        raise ValidationError("manifest", "must be a JSON object")

    try:
        parsed = RawManifest.model_validate(raw)
    except PydanticValidationError as e:
        error = e.errors()[0]
        field = str(error["loc"][0]) if error["loc"] else "manifest"
        raise ValidationError(field, error["msg"]) from e

    title = parsed.title or "Untitled"
    contents = _string_list(parsed.contents, "contents", required=True)
    css = _string_list(parsed.css, "css")

    if parsed.authors is not None:
        authors = _authors(parsed.authors, "authors")
    else:
        authors = _authors(parsed.author, "author")

    date = _date(parsed.date, "date") or today or dt.datetime.now(dt.timezone.utc).date()
    created = _date(parsed.created, "created") or date
    copyrighted = _date(parsed.copyrighted, "copyrighted") or date

    rights = parsed.rights
    if not rights:
        names = format_list([a.name for a in authors])
        rights = f"Copyright ©{copyrighted.year} {names}"

    toc_depth = parsed.toc_depth if parsed.toc_depth is not None else DEFAULT_TOC_DEPTH
    if not 1 <= toc_depth <= 6:
        raise ValidationError("tocDepth", "must be between 1 and 6")

    return Manifest(
        title=title,
        subtitle=parsed.subtitle or "",
        only_title=bool(parsed.only_title),
        sort_title=parsed.sort_title or sort_title(title),
        language=parsed.language or "en",
        contents=contents,
        css=css,
        authors=authors,
        publisher=parsed.publisher or "",
        toc_depth=toc_depth,
        date=date,
        created=created,
        copyrighted=copyrighted,
        rights=rights or None,
        uuid=_identifier(parsed.uuid),
        cover=parsed.cover or None,
        isbn=parsed.isbn or None,
        doi=parsed.doi or None,
        toc=True if parsed.toc is None else parsed.toc,
    )


def _string_list(value: str | list[str] | None, field: str, required: bool = False) -> list[str]:
    """Accept a single string or a list of strings."""
    if isinstance(value, str):
        value = [value]
    items = list(value or [])
    if any(not item.strip() for item in items):
        raise ValidationError(field, "must not contain empty file names")
    if required and not items:
        raise ValidationError(field, "must be a filename or an array of filenames")
    return items


def _authors(value, field: str) -> list[Author]:
    if value is None:
        return []
    if not isinstance(value, list):
        value = [value]

    authors = []
    for item in value:
        if isinstance(item, str):
            item = RawAuthor(name=item)
        name = (item.name or "").strip()
        if not name:
            raise ValidationError(field, 'author objects must have a "name" key')
        role = item.role or DEFAULT_ROLE
        if len(role) != 3:
            raise ValidationError(field, f"role {role!r} is not a three-character MARC relator")
        authors.append(Author(name=name, sort=item.sort or sort_author(name), role=role))
    return authors


def _date(value: str | dt.date | None, field: str) -> dt.date | None:
    if value is None or value == "":
        return None
    try:
        return parse_date(value)
    except ValueError as e:
        raise ValidationError(field, str(e)) from e


def _identifier(value: str | None) -> str:
    if not value:
        identifier = str(uuid.uuid4())
        log.debug("Manifest has no uuid; generated %s", identifier)
        return identifier
    try:
        uuid.UUID(value)
    except ValueError as e:
        raise ValidationError("uuid", f"{value!r} is not a UUID") from e
    return value
