"""Main CLI application."""

import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from folio.config import FolioConfig
from folio.core.parser_factory import ParserFactory

app = typer.Typer(
    name="folio",
    help="Read EPUB, PDF, Markdown and plain-text books from a local library.",
    add_completion=False,
)

console = Console()

bookmarks_app = typer.Typer(help="Bookmark management commands")
app.add_typer(bookmarks_app, name="bookmarks")

settings_app = typer.Typer(help="Reader settings commands")
app.add_typer(settings_app, name="settings")

NOISY_LOGGERS = ("ebooklib", "httpx", "httpcore", "markdown", "MARKDOWN")


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
        force=True,
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


LibraryOption = Annotated[
    Optional[Path],
    typer.Option(
        "--library",
        "-l",
        help="Library directory (default: $FOLIO_LIBRARY_DIR or ./library)",
    ),
]


def _config(library: Path | None) -> FolioConfig:
    return FolioConfig.from_env(library.resolve() if library else None)


@app.callback()
def main(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging"),
    ] = False,
) -> None:
    """Read EPUB, PDF, Markdown and plain-text books from a local library."""
    setup_logging(verbose)


@app.command()
def info(
    book_path: Annotated[
        Path,
        typer.Argument(
            help="Path to the book file (EPUB, PDF, Markdown or TXT)",
            exists=True,
            file_okay=True,
            dir_okay=False,
            resolve_path=True,
        ),
    ],
) -> None:
    """Display book metadata and table of contents."""
    if not ParserFactory.is_supported(book_path):
        console.print(f"[red]Unsupported file format: {escape(book_path.suffix)}[/]")
        console.print("[dim]Supported formats: .epub, .pdf, .md, .markdown, .txt[/]")
        raise typer.Exit(1)

    try:
        from folio.commands.info import execute_info

        execute_info(book_path, console)
    except Exception as e:
        console.print(f"[red]Error reading file: {escape(str(e))}[/]")
        raise typer.Exit(1)


@app.command()
def upload(
    file_path: Annotated[
        Path,
        typer.Argument(help="File to add to the library", resolve_path=True),
    ],
    password: Annotated[
        Optional[str],
        typer.Option(
            "--password",
            "-p",
            help="Upload password (required when FOLIO_UPLOAD_PASSWORD is set)",
        ),
    ] = None,
    library: LibraryOption = None,
) -> None:
    """Store a document in the library and register it as a book."""
    from folio.commands.upload import UploadRejected, ingest_upload, register_upload
    from folio.storage.manager import JsonLibraryStore

    config = _config(library)
    try:
        result = ingest_upload(file_path, config, password=password)
        if result.format == "image":
            console.print(f"[green]Stored image[/] {result.url}")
            return
        book = register_upload(result, JsonLibraryStore(config.library_dir), file_path.stem)
    except UploadRejected as e:
        console.print(f"[red]Error ({e.status}): {escape(str(e))}[/]")
        raise typer.Exit(1)
    except Exception as e:
        console.print(f"[red]Error: {escape(str(e))}[/]")
        raise typer.Exit(1)

    console.print(f"[green]Added[/] [bold]{escape(book.title)}[/] as [cyan]{book.slug}[/]")
    if result.metadata.cover_url:
        console.print(f"[dim]Cover:[/] {result.metadata.cover_url}")


@app.command()
def books(library: LibraryOption = None) -> None:
    """List the books in the library."""
    from folio.storage.manager import JsonLibraryStore

    store = JsonLibraryStore(_config(library).library_dir)
    records = store.list_books()

    if not records:
        console.print("[dim]Library is empty[/]")
        return

    table = Table(title="Library", show_header=True, header_style="bold cyan")
    table.add_column("Slug", style="cyan")
    table.add_column("Title", style="white")
    table.add_column("Author")
    table.add_column("Format", style="dim")
    table.add_column("Added", style="dim")

    for book in records:
        table.add_row(
            book.slug,
            escape(book.title),
            escape(book.author or ""),
            book.format.upper(),
            book.created_at.strftime("%Y-%m-%d"),
        )

    console.print(table)


@app.command()
def render(
    target: Annotated[
        str,
        typer.Argument(help="Markdown/TXT file path or a library book slug"),
    ],
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Output HTML file (default: <name>.html)"),
    ] = None,
    library: LibraryOption = None,
) -> None:
    """Render a Markdown or TXT document to a standalone HTML page."""
    from folio.commands.render import execute_render
    from folio.core.fetcher import DocumentFetcher
    from folio.core.session import source_for_book
    from folio.storage.manager import JsonLibraryStore
    from folio.storage.settings import SettingsStore

    config = _config(library)
    try:
        path = Path(target)
        if path.is_file():
            path = path.resolve()
            source = ParserFactory.source_for_path(path)
            title = path.stem
            fetcher = DocumentFetcher(root=path.parent, timeout=config.fetch_timeout)
        else:
            book = JsonLibraryStore(config.library_dir).get_book(target)
            source = source_for_book(book)
            title = book.title
            path = Path(book.slug)
            fetcher = DocumentFetcher(root=config.library_dir, timeout=config.fetch_timeout)

        execute_render(
            source=source,
            title=title,
            output=output or Path(f"{path.stem}.html"),
            settings=SettingsStore(config.library_dir).load(),
            fetcher=fetcher,
            console=console,
        )
    except Exception as e:
        console.print(f"[red]Error: {escape(str(e))}[/]")
        raise typer.Exit(1)


@app.command()
def read(
    slug: Annotated[str, typer.Argument(help="Slug of the book to open")],
    library: LibraryOption = None,
) -> None:
    """Open a book in the terminal reader."""
    from folio.storage.manager import JsonLibraryStore, NotFound

    config = _config(library)
    store = JsonLibraryStore(config.library_dir)
    try:
        book = store.get_book(slug)
    except NotFound as e:
        console.print(f"[red]Error: {escape(str(e))}[/]")
        raise typer.Exit(1)

    from folio.tui.app import ReaderApp

    ReaderApp(book=book, store=store, config=config).run()


@bookmarks_app.command("list")
def bookmarks_list(
    slug: Annotated[str, typer.Argument(help="Book slug")],
    library: LibraryOption = None,
) -> None:
    """List bookmarks of a book, newest first."""
    from folio.commands.bookmarks import execute_list_bookmarks
    from folio.storage.manager import JsonLibraryStore

    try:
        execute_list_bookmarks(slug, JsonLibraryStore(_config(library).library_dir), console)
    except Exception as e:
        console.print(f"[red]Error: {escape(str(e))}[/]")
        raise typer.Exit(1)


@bookmarks_app.command("add")
def bookmarks_add(
    slug: Annotated[str, typer.Argument(help="Book slug")],
    chapter: Annotated[
        Optional[str],
        typer.Option("--chapter", "-c", help="Chapter anchor (EPUB href)"),
    ] = None,
    scroll_y: Annotated[
        float,
        typer.Option("--scroll-y", help="Scroll offset", min=0),
    ] = 0,
    height: Annotated[
        float,
        typer.Option("--height", help="Document height", min=0),
    ] = 0,
    viewport: Annotated[
        float,
        typer.Option("--viewport", help="Viewport height", min=0),
    ] = 0,
    note: Annotated[
        Optional[str],
        typer.Option("--note", "-n", help="Free-text note"),
    ] = None,
    library: LibraryOption = None,
) -> None:
    """Add a bookmark at the given scroll position."""
    from folio.commands.bookmarks import execute_add_bookmark
    from folio.models.position import ScrollMetrics
    from folio.storage.manager import JsonLibraryStore

    config = _config(library)
    try:
        execute_add_bookmark(
            slug,
            ScrollMetrics(scroll_y=scroll_y, document_height=height, viewport_height=viewport),
            JsonLibraryStore(config.library_dir),
            config,
            console,
            chapter=chapter,
            note=note,
        )
    except Exception as e:
        console.print(f"[red]Error: {escape(str(e))}[/]")
        raise typer.Exit(1)


@bookmarks_app.command("delete")
def bookmarks_delete(
    slug: Annotated[str, typer.Argument(help="Book slug")],
    bookmark_id: Annotated[str, typer.Argument(help="Bookmark ID or unique prefix")],
    library: LibraryOption = None,
) -> None:
    """Delete a bookmark."""
    from folio.commands.bookmarks import execute_delete_bookmark
    from folio.storage.manager import JsonLibraryStore

    try:
        execute_delete_bookmark(
            slug, bookmark_id, JsonLibraryStore(_config(library).library_dir), console
        )
    except Exception as e:
        console.print(f"[red]Error: {escape(str(e))}[/]")
        raise typer.Exit(1)


@settings_app.command("show")
def settings_show(library: LibraryOption = None) -> None:
    """Show the persisted reader settings."""
    from folio.models.settings import FONT_OPTIONS
    from folio.storage.settings import SettingsStore

    settings = SettingsStore(_config(library).library_dir).load()

    table = Table(title="Reader Settings", show_header=True, header_style="bold cyan")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    table.add_row("font-size", f"{settings.font_size}px")
    table.add_row("font-family", f"{settings.font_family} ({FONT_OPTIONS[settings.font_family][0]})")
    table.add_row("line-height", f"{settings.line_height:g}")
    table.add_row("content-width", settings.content_width)
    table.add_row("sidebar", "open" if settings.sidebar_open else "closed")
    console.print(table)


@settings_app.command("set")
def settings_set(
    font_size: Annotated[
        Optional[int], typer.Option("--font-size", help="Font size in px (12-28)")
    ] = None,
    font_family: Annotated[
        Optional[str], typer.Option("--font-family", help="Font family key")
    ] = None,
    line_height: Annotated[
        Optional[float], typer.Option("--line-height", help="Line height (1.25-3)")
    ] = None,
    width: Annotated[
        Optional[str], typer.Option("--width", help="narrow, normal or wide")
    ] = None,
    sidebar: Annotated[
        Optional[bool], typer.Option("--sidebar/--no-sidebar", help="Show the TOC sidebar")
    ] = None,
    library: LibraryOption = None,
) -> None:
    """Update reader settings."""
    from pydantic import ValidationError

    from folio.storage.settings import SettingsStore

    store = SettingsStore(_config(library).library_dir)
    settings = store.load()
    try:
        if font_size is not None:
            settings.font_size = font_size
        if font_family is not None:
            settings.font_family = font_family
        if line_height is not None:
            settings.line_height = line_height
        if width is not None:
            settings.content_width = width
        if sidebar is not None:
            settings.sidebar_open = sidebar
    except ValidationError as e:
        console.print(f"[red]Invalid setting: {e.errors()[0]['msg']}[/]")
        raise typer.Exit(1)

    store.save(settings)
    console.print("[green]Settings saved[/]")


@settings_app.command("reset")
def settings_reset(library: LibraryOption = None) -> None:
    """Restore default typography."""
    from folio.storage.settings import SettingsStore

    store = SettingsStore(_config(library).library_dir)
    settings = store.load()
    settings.reset()
    store.save(settings)
    console.print("[green]Settings reset[/]")


if __name__ == "__main__":
    app()
