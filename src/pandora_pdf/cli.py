"""Main CLI application."""

import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from pandora_pdf.config import PandoraConfig

app = typer.Typer(
    name="pandora-pdf",
    help="Download Pandora Campus books page by page and rebuild them as chapter PDFs.",
    add_completion=False,
)

console = Console()


def configure_logging(verbose: bool) -> None:
    """Send log records through rich; DEBUG when verbose."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )
    # Malformed object references in captured PDFs are common and harmless
    logging.getLogger("pypdf").setLevel(logging.ERROR)


def fail(message: str) -> None:
    console.print(f"[red]Error: {message}[/]")
    raise typer.Exit(1)


BookDir = Annotated[
    Path,
    typer.Argument(
        help="Book directory (e.g. downloads/10_978_8815_415073)",
        file_okay=False,
        dir_okay=True,
        resolve_path=True,
    ),
]


@app.callback()
def main(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show debug logging"),
    ] = False,
) -> None:
    """Download Pandora Campus books page by page and rebuild them as chapter PDFs."""
    configure_logging(verbose)


@app.command()
def download(
    headless: Annotated[
        Optional[bool],
        typer.Option(
            "--headless/--no-headless",
            help="Run the browser without a window (default: PANDORA_HEADLESS or headless)",
        ),
    ] = None,
    no_merge: Annotated[
        bool,
        typer.Option("--no-merge", help="Skip merging chapters after the download"),
    ] = False,
) -> None:
    """Log in, open the first book in My Books and download every page.

    Writes metadata.json and one PDF per page into downloads/<book>/, then
    merges the pages into chapter PDFs under processed/.
    """
    try:
        from pandora_pdf.commands.download import execute_download

        config = PandoraConfig.from_env(headless=headless)
        execute_download(config=config, console=console, merge=not no_merge)
    except Exception as e:
        fail(str(e))


@app.command()
def check(book_dir: BookDir) -> None:
    """Check which pages are downloaded and write output.json.

    Pages whose file is missing or not larger than the minimum size
    (1000 bytes by default) are reported as failed.
    """
    try:
        from pandora_pdf.commands.check import execute_check

        execute_check(book_dir, console=console, config=PandoraConfig.from_env())
    except Exception as e:
        fail(str(e))


@app.command()
def retry(
    target: Annotated[
        str,
        typer.Argument(
            help="Book directory, book id (10.978.8815.415073) or DOI (doi/10.978.8815/415073)",
        ),
    ],
    doi: Annotated[
        Optional[str],
        typer.Argument(help="DOI path supplying the book id (doi/10.978.8815/415073)"),
    ] = None,
) -> None:
    """Download again only the pages the last check marked as failed.

    Run 'check' afterwards to verify the result.
    """
    try:
        from pandora_pdf.commands.retry import execute_retry

        execute_retry(target, doi, console=console, config=PandoraConfig.from_env())
    except Exception as e:
        fail(str(e))


@app.command()
def merge(book_dir: BookDir) -> None:
    """Merge page PDFs into one PDF per chapter under processed/."""
    try:
        from pandora_pdf.commands.merge import execute_merge

        execute_merge(book_dir, console=console, config=PandoraConfig.from_env())
    except Exception as e:
        fail(str(e))


@app.command()
def cleanup(
    book_dir: BookDir,
    live: Annotated[
        bool,
        typer.Option("--live", help="Actually delete files (default is a dry run)"),
    ] = False,
) -> None:
    """Delete files that are not expected pages or metadata.

    Without --live only lists what would be deleted.
    """
    try:
        from pandora_pdf.commands.cleanup import execute_cleanup

        execute_cleanup(book_dir, dry_run=not live, console=console)
    except Exception as e:
        fail(str(e))


if __name__ == "__main__":
    app()
