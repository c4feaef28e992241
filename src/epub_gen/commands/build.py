"""Build command implementation."""

from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn

from epub_gen.core.builder import GenerationResult, generate


def execute_build(
    manifest_path: str,
    output: str | None,
    jobs: int,
    indent: int,
    quiet: bool,
    console: Console,
) -> GenerationResult:
    """Execute the build command."""
    if quiet:
        return generate(manifest_path, output, jobs=jobs, indent=indent)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
    ) as progress:
        progress.add_task("Building EPUB...", total=None)
        result = generate(manifest_path, output, jobs=jobs, indent=indent)

    summary_lines = [
        f"[bold]{result.manifest.full_title}[/]",
        "",
        f"[dim]Author(s):[/] {', '.join(a.name for a in result.manifest.authors) or 'Unknown'}",
        f"[dim]Chapters:[/] {result.chapter_count}",
        f"[dim]Resources:[/] {result.resource_count}",
        f"[dim]Identifier:[/] {result.manifest.uuid}",
        f"[dim]Output:[/] {_display_path(result.output)}",
    ]
    console.print()
    console.print(
        Panel(
            "\n".join(summary_lines),
            title="Complete",
            border_style="green",
        )
    )
    return result


def _display_path(path: Path | None) -> str:
    if path is None:
        return "standard output"
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)
