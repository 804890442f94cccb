"""termweb CLI: entry-point for the text-mode browser.

Usage:
    python cli/main.py --help

Commands:
    browse    → interactive curses browser (click links to follow them)
    dump      → print a page's extracted text, links and images
    image     → print an image (URL or local file) as ASCII art
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from termweb.xxx import ...`
# works when the CLI is invoked as `python cli/main.py` from any directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import curses
import logging
from functools import partial
from typing import Optional

import typer

from termweb.config import settings
from termweb.errors import BrowserError
from termweb.imaging import DownloadStore, rasterize_file
from termweb.navigation import NavigationController, load_images, load_page
from termweb.scraper import fetch_bytes, normalise_url

app = typer.Typer(
    name="termweb",
    help="Text-mode web browser for the terminal.",
    no_args_is_help=True,
)

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _configure_logging(to_file: bool) -> None:
    """Send logs to ``settings.log_file`` while curses owns the terminal."""
    kwargs = {"filename": str(settings.log_file)} if to_file else {}
    logging.basicConfig(level=settings.log_level, format=_LOG_FORMAT, **kwargs)


# ---------------------------------------------------------------------------
# Interactive browser
# ---------------------------------------------------------------------------
@app.command("browse")
def browse(
    url: Optional[str] = typer.Argument(None, help="URL to open (https:// is assumed)."),
) -> None:
    """Open *url* in the interactive browser."""
    from cli.screen import BrowserScreen

    if not url:
        typer.echo("Usage: termweb browse <url>")
        raise typer.Exit(1)

    _configure_logging(to_file=True)
    store = DownloadStore(settings.download_dir)
    try:
        store.ensure()
        controller = NavigationController(
            image_loader=partial(load_images, store=store, width=settings.ascii_width),
        )
        try:
            controller.navigate(url)
            curses.wrapper(BrowserScreen(controller, wrap=settings.word_wrap).run)
        finally:
            controller.close()
    except (curses.error, BrowserError) as exc:
        typer.echo(f"Error browsing: {exc}")
        raise typer.Exit(1)
    finally:
        store.cleanup()


# ---------------------------------------------------------------------------
# Non-interactive commands
# ---------------------------------------------------------------------------
@app.command("dump")
def dump(
    url: str = typer.Argument(..., help="URL to fetch."),
    show_links: bool = typer.Option(True, "--links/--no-links", help="List links with their rows."),
) -> None:
    """Fetch a URL and print the extracted text, links and images."""
    _configure_logging(to_file=False)
    try:
        url = normalise_url(url)
        typer.echo(f"[dump] Fetching {url!r} …")
        result = load_page(url)
    except BrowserError as exc:
        typer.echo(f"❌ Error: {exc}")
        raise typer.Exit(code=1)

    typer.echo(f"[dump] Rows   : {len(result.rows)}")
    typer.echo(f"[dump] Links  : {len(result.links)}")
    typer.echo(f"[dump] Images : {len(result.images)}")
    typer.echo("")
    typer.echo(result.text)

    if show_links and result.links:
        typer.echo("")
        for link in result.links:
            typer.echo(f"  [{link.line}] {link.text!r} -> {link.href}")
    for img in result.images:
        typer.echo(f"  [img] {img.alt!r} -> {img.src}")


def _rasterize_remote(source: str, width: int) -> str:
    """Download *source* into the download directory and rasterize it."""
    url = normalise_url(source)
    store = DownloadStore(settings.download_dir)
    store.ensure()
    try:
        return rasterize_file(store.save(url, fetch_bytes(url)), width)
    finally:
        store.cleanup()


@app.command("image")
def image(
    source: str = typer.Argument(..., help="Image URL or local file path."),
    width: int = typer.Option(settings.ascii_width, "--width", min=1, help="Output columns."),
) -> None:
    """Render an image as ASCII art."""
    _configure_logging(to_file=False)
    try:
        if Path(source).is_file():
            art = rasterize_file(source, width)
        else:
            art = _rasterize_remote(source, width)
    except BrowserError as exc:
        typer.echo(f"❌ Error: {exc}")
        raise typer.Exit(code=1)

    typer.echo(art, nl=False)


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
