"""Tests for epub_gen.core.formatting."""

import datetime as dt

import pytest

from epub_gen.core.formatting import (
    format_date,
    format_list,
    parse_date,
    slugify,
    sort_author,
    sort_title,
)


class TestFormatList:
    """Author list formatting."""

    @pytest.mark.parametrize(
        ("items", "expected"),
        [
            ([], ""),
            (["Alice"], "Alice"),
            (["Alice", "Bob"], "Alice and Bob"),
            (["Alice", "Bob", "Carol"], "Alice, Bob, and Carol"),
            (["A", "B", "C", "D"], "A, B, C, and D"),
        ],
    )
    def test_lengths(self, items, expected):
        assert format_list(items) == expected


class TestDates:
    """Date parsing and formatting."""

    def test_unpadded_date_formats_padded(self):
        assert format_date(parse_date("2020-3-5")) == "2020-03-05"

    def test_partial_dates_default_to_first(self):
        assert parse_date("1999") == dt.date(1999, 1, 1)
        assert parse_date("1999-7") == dt.date(1999, 7, 1)

    def test_slashes(self):
        assert parse_date("2021/12/31") == dt.date(2021, 12, 31)

    def test_iso_datetime_is_converted_to_utc(self):
        assert parse_date("2020-03-05T23:30:00-05:00") == dt.date(2020, 3, 6)

    def test_written_forms(self):
        assert parse_date("March 5, 2020") == dt.date(2020, 3, 5)
        assert parse_date("5 Mar 2020") == dt.date(2020, 3, 5)

    def test_date_objects_pass_through(self):
        assert parse_date(dt.date(2001, 2, 3)) == dt.date(2001, 2, 3)
        assert parse_date(dt.datetime(2001, 2, 3, 12, 0)) == dt.date(2001, 2, 3)

    @pytest.mark.parametrize("value", ["yesterday", "2020-13-01", ""])
    def test_invalid(self, value):
        with pytest.raises(ValueError):
            parse_date(value)


class TestSortKeys:
    """Title and author sort keys."""

    @pytest.mark.parametrize(
        ("title", "expected"),
        [
            ("The Hobbit", "Hobbit, The"),
            ("A Tale of Two Cities", "Tale of Two Cities, A"),
            ("An Example", "Example, An"),
            ("the lower case", "lower case, the"),
            ("Theory of Everything", "Theory of Everything"),
            ("Another Day", "Another Day"),
        ],
    )
    def test_sort_title(self, title, expected):
        assert sort_title(title) == expected

    def test_sort_author(self):
        assert sort_author("Jane Q. Public") == "Public, Jane Q."
        assert sort_author("Plato") == "Plato"
        assert sort_author("Doe, Jane") == "Doe, Jane"


class TestSlugify:
    """Heading identifiers."""

    def test_basic(self):
        assert slugify("Hello, World!") == "hello-world"

    def test_accents_are_folded(self):
        assert slugify("Café Crème") == "cafe-creme"

    def test_runs_collapse(self):
        assert slugify("  a -- b __ c  ") == "a-b-c"

    def test_fallback(self):
        assert slugify("!!!") == "section"
        assert slugify("", "untitled") == "untitled"
