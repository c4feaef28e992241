"""Small text helpers shared by the normalizer and the serializer."""

import datetime as dt
import re
import unicodedata

LEADING_ARTICLE = re.compile(r"^(the|an|a)\s+(.+)$", re.IGNORECASE | re.DOTALL)
NUMERIC_DATE = re.compile(r"^(\d{4})(?:[-/.](\d{1,2})(?:[-/.](\d{1,2}))?)?$")
WRITTEN_DATE_FORMATS = ("%B %d, %Y", "%b %d, %Y", "%d %B %Y", "%d %b %Y", "%B %Y", "%b %Y")


def format_list(items: list[str]) -> str:
    """Join names the way they read in a sentence.

    ["A", "B", "C"] -> "A, B, and C"
    """
    if not items:
        return ""
    if len(items) == 1:
        return items[0]
    if len(items) == 2:
        return f"{items[0]} and {items[1]}"
    return ", ".join(items[:-1]) + ", and " + items[-1]


def format_date(value: dt.date) -> str:
    """Format a calendar date as YYYY-MM-DD."""
    return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"


def parse_date(value: str | dt.date) -> dt.date:
    """Parse a loosely written calendar date.

    Accepts date objects, ``YYYY``, ``YYYY-M``, ``YYYY-M-D`` (with ``-``,
    ``/`` or ``.``), ISO datetimes (converted to UTC) and written forms such
    as "March 5, 2020".

    Raises:
        ValueError: If the value is not a recognizable date
    """
    if isinstance(value, dt.datetime):
        return _utc_date(value)
    if isinstance(value, dt.date):
        return value

    text = value.strip()
    match = NUMERIC_DATE.match(text)
    if match:
        year, month, day = match.groups()
        return dt.date(int(year), int(month or 1), int(day or 1))

    try:
        return _utc_date(dt.datetime.fromisoformat(text.replace("Z", "+00:00")))
    except ValueError:
        pass

    for fmt in WRITTEN_DATE_FORMATS:
        try:
            return dt.datetime.strptime(text, fmt).date()
        except ValueError:
            continue

    raise ValueError(f"unrecognized date: {value!r}")


def _utc_date(value: dt.datetime) -> dt.date:
    if value.tzinfo is not None:
        value = value.astimezone(dt.timezone.utc)
    return value.date()


def sort_title(title: str) -> str:
    """Move a leading article to the end ("The Hobbit" -> "Hobbit, The")."""
    match = LEADING_ARTICLE.match(title.strip())
    if not match:
        return title
    article, rest = match.groups()
    return f"{rest}, {article}"


def sort_author(name: str) -> str:
    """Derive a "Last, First" sort key from a display name."""
    name = " ".join(name.split())
    if "," in name:
        return name
    parts = name.rsplit(" ", 1)
    if len(parts) == 1:
        return name
    return f"{parts[1]}, {parts[0]}"


def slugify(text: str, fallback: str = "section") -> str:
    """Convert text to a lowercase, hyphen-separated identifier."""
    slug = unicodedata.normalize("NFKD", text)
    slug = "".join(c for c in slug if not unicodedata.combining(c)).lower()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"[\s_-]+", "-", slug).strip("-")
    return slug or fallback
