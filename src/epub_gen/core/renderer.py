"""Markdown to HTML rendering."""

import markdown


class MarkdownRenderer:
    """Render markdown with tables, fenced code and smart punctuation.

    Raw HTML in the source is passed through untouched.
    """

    EXTENSIONS = ["extra", "sane_lists", "smarty"]

    def __init__(self, extensions: list[str] | None = None):
        self._md = markdown.Markdown(
            extensions=extensions or self.EXTENSIONS,
            output_format="xhtml",
        )

    def render(self, text: str) -> str:
        """Convert one markdown document to an HTML fragment."""
        self._md.reset()
        return self._md.convert(text)
