"""Tests for epub_gen.core.headings."""

import pydantic
import pytest

from epub_gen.core.headings import (
    HeadingState,
    build_heading_tree,
    chapter_title,
    iter_headings,
    rewrite_headings,
)


def titles(nodes):
    return [node.title for node in nodes]


class TestTreeShape:
    """Nesting follows heading levels across the whole book."""

    def test_skipped_level_gets_placeholder(self):
        _, headings = build_heading_tree(["# A\n### B\n## C\n"])

        assert titles(headings) == ["A"]
        a = headings[0]
        assert len(a.children) == 2

        placeholder, c = a.children
        assert placeholder.empty
        assert placeholder.level == 2
        assert titles(placeholder.children) == ["B"]
        assert placeholder.children[0].level == 3
        assert c.title == "C"
        assert c.level == 2

    def test_deeper_first_heading(self):
        _, headings = build_heading_tree(["## Only\n"])

        assert len(headings) == 1
        assert headings[0].empty
        assert headings[0].level == 1
        assert titles(headings[0].children) == ["Only"]

    def test_tree_continues_across_chapters(self):
        _, headings = build_heading_tree(["# One\n## One A\n", "## One B\n# Two\n"])

        assert titles(headings) == ["One", "Two"]
        assert titles(headings[0].children) == ["One A", "One B"]
        assert [n.chapter for n in headings[0].children] == [0, 1]
        assert headings[1].chapter == 1

    def test_finished_tree_is_frozen(self):
        _, headings = build_heading_tree(["# A\n### B\n"])

        assert isinstance(headings[0].children, tuple)
        assert isinstance(headings[0].children[0].children, tuple)
        with pytest.raises(pydantic.ValidationError):
            headings[0].children[0].children[0].title = "Changed"

    def test_no_headings(self):
        texts, headings = build_heading_tree(["Just text.\n"])
        assert headings == []
        assert texts == ["Just text.\n"]


class TestRewriting:
    """Heading lines become identified HTML headings."""

    def test_heading_line_rewritten(self):
        text, state = rewrite_headings(0, "Intro\n## Hello, World!\nBody", HeadingState())

        assert '<h2 id="hello-world">Hello, World!</h2>' in text
        assert text.startswith("Intro\n")
        assert text.endswith("\nBody")
        assert state.headings[0].children[0].id == "hello-world"

    def test_duplicate_titles_get_unique_ids(self):
        _, headings = build_heading_tree(["# Notes\n", "# Notes\n# Notes\n"])
        assert [n.id for n in headings] == ["notes", "notes-2", "notes-3"]

    def test_title_without_letters_falls_back(self):
        _, headings = build_heading_tree(["# ???\n"])
        assert headings[0].id == "section"

    def test_closing_hashes_stripped(self):
        text, _ = build_heading_tree(["### Title ###\n"])
        assert '<h3 id="title">Title</h3>' in text[0]

    def test_non_headings_left_alone(self):
        source = "####### seven\n#\nnot # a heading\n"
        texts, headings = build_heading_tree([source])
        assert headings == []
        assert texts == [source]

    def test_fenced_code_is_skipped(self):
        source = "```\n# comment\n```\n~~~~\n## also code\n~~~~\n# Real\n"
        texts, headings = build_heading_tree([source])

        assert titles(headings) == ["Real"]
        assert "# comment" in texts[0]
        assert "## also code" in texts[0]

    def test_windows_line_endings(self):
        texts, headings = build_heading_tree(["# Title\r\nText\r\n"])
        assert titles(headings) == ["Title"]
        assert "\r" not in texts[0]


class TestLookups:
    def test_iter_headings_document_order(self):
        _, headings = build_heading_tree(["# A\n### B\n## C\n# D\n"])
        assert titles(iter_headings(headings)) == ["A", None, "B", "C", "D"]

    def test_chapter_title(self):
        _, headings = build_heading_tree(["# First\n## Sub\n", "## Second\n", "No headings"])

        assert chapter_title(headings, 0) == "First"
        assert chapter_title(headings, 1) == "Second"
        assert chapter_title(headings, 2) is None
