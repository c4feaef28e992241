"""Outline command implementation."""

from collections.abc import Sequence

from rich.console import Console
from rich.panel import Panel
from rich.tree import Tree

from epub_gen.core.headings import build_heading_tree
from epub_gen.core.loader import ContentLoader, FileSystemFetcher
from epub_gen.core.normalizer import ManifestSource, normalize_manifest
from epub_gen.models.book import HeadingNode


def add_headings(tree: Tree, nodes: Sequence[HeadingNode], toc_depth: int) -> int:
    """Add TOC-visible headings to a Rich tree; returns the entry count.

    Placeholder nodes are not shown, their children move up a level.
    """
    count = 0
    for node in nodes:
        if node.level > toc_depth:
            continue
        if node.empty:
            count += add_headings(tree, node.children, toc_depth)
            continue
        branch = tree.add(f"{node.title} [dim]{node.chapter}.xhtml#{node.id}[/]")
        count += 1 + add_headings(branch, node.children, toc_depth)
    return count


def execute_outline(manifest_path: str, jobs: int, console: Console) -> None:
    """Show the table of contents a manifest would produce.

    Nothing is written, not even a missing identifier.
    """
    source = ManifestSource.load(manifest_path)
    manifest = normalize_manifest(source.data)
    texts = ContentLoader(FileSystemFetcher(source.root), jobs).load(manifest.contents)
    _, headings = build_heading_tree(texts)

    info_lines = [
        f"[bold]{manifest.full_title}[/]",
        "",
        f"[dim]Author(s):[/] {', '.join(a.name for a in manifest.authors) or 'Unknown'}",
        f"[dim]Language:[/] {manifest.language}",
        f"[dim]Content files:[/] {len(manifest.contents)}",
        f"[dim]TOC depth:[/] {manifest.toc_depth}",
    ]
    console.print()
    console.print(
        Panel(
            "\n".join(info_lines),
            title="Book Information",
            border_style="green",
        )
    )

    tree = Tree("[bold cyan]Table of Contents[/]")
    tree.add(f"{manifest.title} [dim]_title.xhtml[/]")
    if add_headings(tree, headings, manifest.toc_depth) == 0:
        tree.add("[dim]No headings found[/]")
    console.print()
    console.print(tree)
    console.print()
