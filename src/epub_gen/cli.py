"""Main CLI application."""

import logging
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from epub_gen.commands.build import execute_build
from epub_gen.core.errors import EpubGenError
from epub_gen.core.loader import ContentLoader
from epub_gen.core.serializer import EpubSerializer

app = typer.Typer(
    name="epub-gen",
    help="Generate EPUB books from a JSON manifest and markdown files.",
    add_completion=False,
)

console = Console()
err_console = Console(stderr=True)


def setup_logging(verbose: bool) -> None:
    """Route log records through Rich on standard error."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


@app.callback()
def main(
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Show debug logging",
        ),
    ] = False,
) -> None:
    """Generate EPUB books from a JSON manifest and markdown files."""
    setup_logging(verbose)


@app.command()
def build(
    manifest: Annotated[
        str,
        typer.Argument(
            help="Path to the JSON manifest, or '-' to read it from standard input",
        ),
    ],
    output: Annotated[
        Optional[str],
        typer.Argument(
            help="Output EPUB path, or '-' for standard output (default: {title}.epub beside the manifest)",
        ),
    ] = None,
    jobs: Annotated[
        int,
        typer.Option(
            "--jobs",
            "-j",
            help="Number of content files to read concurrently",
            min=1,
        ),
    ] = ContentLoader.DEFAULT_JOBS,
    indent: Annotated[
        int,
        typer.Option(
            "--indent",
            help="Spaces of indentation in generated XML (0 for none)",
            min=0,
        ),
    ] = EpubSerializer.DEFAULT_INDENT,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Suppress progress output",
        ),
    ] = False,
) -> None:
    """Build an EPUB from a manifest.

    A manifest without a uuid gets one, written back to the manifest file so
    later builds keep the same identifier.
    """
    # The book itself may be going to standard output
    out = err_console if output == "-" else console
    try:
        execute_build(
            manifest_path=manifest,
            output=output,
            jobs=jobs,
            indent=indent,
            quiet=quiet,
            console=out,
        )
    except (EpubGenError, OSError) as e:
        err_console.print(f"[red]Error: {escape(str(e))}[/]")
        raise typer.Exit(1)


@app.command()
def outline(
    manifest: Annotated[
        str,
        typer.Argument(
            help="Path to the JSON manifest, or '-' to read it from standard input",
        ),
    ],
    jobs: Annotated[
        int,
        typer.Option(
            "--jobs",
            "-j",
            help="Number of content files to read concurrently",
            min=1,
        ),
    ] = ContentLoader.DEFAULT_JOBS,
) -> None:
    """Display the table of contents a manifest would produce."""
    try:
        from epub_gen.commands.outline import execute_outline

        execute_outline(manifest_path=manifest, jobs=jobs, console=console)
    except (EpubGenError, OSError) as e:
        err_console.print(f"[red]Error: {escape(str(e))}[/]")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
