"""Build the book-wide heading tree from markdown heading lines."""

import re
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field

from epub_gen.core.formatting import slugify
from epub_gen.models.book import HeadingNode

HEADING_LINE = re.compile(r"^(#{1,6})(?!#)(.*\S.*)$")
CLOSING_HASHES = re.compile(r"\s+#+$")
FENCE = re.compile(r"^ {0,3}(`{3,}|~{3,})(.*)$")


@dataclass
class HeadingDraft:
    """Mutable heading node used while the tree is still being folded."""

    level: int
    title: str | None = None
    chapter: int | None = None
    id: str | None = None
    children: list["HeadingDraft"] = field(default_factory=list)

    @property
    def empty(self) -> bool:
        return self.title is None

    def freeze(self) -> HeadingNode:
        return HeadingNode(
            title=self.title,
            level=self.level,
            chapter=self.chapter,
            id=self.id,
            children=tuple(child.freeze() for child in self.children),
        )


@dataclass
class HeadingState:
    """Tree-building state threaded through every chapter.

    ``stack`` holds one insertion list per open nesting level, starting
    with the root list ``headings``.
    """

    headings: list[HeadingDraft] = field(default_factory=list)
    stack: list[list[HeadingDraft]] = field(default_factory=list)
    slugs: set[str] = field(default_factory=set)

    def __post_init__(self) -> None:
        if not self.stack:
            self.stack.append(self.headings)


def rewrite_headings(chapter: int, text: str, state: HeadingState) -> tuple[str, HeadingState]:
    """Rewrite heading lines of one chapter to identified HTML headings.

    Each heading is added to the shared tree in ``state``. Lines inside
    fenced code blocks are left alone.

    Returns:
        Tuple of (rewritten text, updated state)
    """
    lines = []
    fence: str | None = None

    for line in text.replace("\r\n", "\n").split("\n"):
        fence_match = FENCE.match(line)
        if fence is not None:
            if fence_match and _closes(fence, fence_match):
                fence = None
            lines.append(line)
            continue
        if fence_match:
            fence = fence_match.group(1)
            lines.append(line)
            continue

        match = HEADING_LINE.match(line)
        if not match:
            lines.append(line)
            continue

        level = len(match.group(1))
        title = CLOSING_HASHES.sub("", match.group(2).strip()) or match.group(2).strip()
        node = _push_heading(state, chapter, level, title)
        # Blank lines keep the tag a raw HTML block for the markdown renderer
        lines.append(f'\n<h{level} id="{node.id}">{title}</h{level}>\n')

    return "\n".join(lines), state


def build_heading_tree(texts: list[str]) -> tuple[list[str], list[HeadingNode]]:
    """Fold every chapter, in manifest order, into one frozen heading tree."""
    state = HeadingState()
    rewritten = []
    for index, text in enumerate(texts):
        text, state = rewrite_headings(index, text, state)
        rewritten.append(text)
    return rewritten, [node.freeze() for node in state.headings]


def iter_headings(nodes: Sequence[HeadingNode]) -> Iterator[HeadingNode]:
    """Walk the tree depth-first in document order."""
    for node in nodes:
        yield node
        yield from iter_headings(node.children)


def chapter_title(headings: Sequence[HeadingNode], chapter: int) -> str | None:
    """Title of the first real heading in a chapter."""
    for node in iter_headings(headings):
        if not node.empty and node.chapter == chapter:
            return node.title
    return None


def _closes(fence: str, match: re.Match) -> bool:
    marker = match.group(1)
    return marker[0] == fence[0] and len(marker) >= len(fence) and not match.group(2).strip()


def _push_heading(state: HeadingState, chapter: int, level: int, title: str) -> HeadingDraft:
    while len(state.stack) < level:
        placeholder = HeadingDraft(level=len(state.stack))
        state.stack[-1].append(placeholder)
        state.stack.append(placeholder.children)
    del state.stack[level:]

    node = HeadingDraft(level=level, title=title, chapter=chapter, id=_unique_slug(state, title))
    state.stack[-1].append(node)
    state.stack.append(node.children)
    return node


def _unique_slug(state: HeadingState, title: str) -> str:
    base = slugify(title)
    slug = base
    n = 1
    while slug in state.slugs:
        n += 1
        slug = f"{base}-{n}"
    state.slugs.add(slug)
    return slug
