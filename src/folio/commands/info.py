"""Info command implementation."""

import asyncio
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.tree import Tree

from folio.core.content_processor import ContentProcessor
from folio.core.epub_metadata import parse_epub_metadata
from folio.core.fetcher import DocumentFetcher
from folio.core.parser_factory import ParserFactory, load_document
from folio.models.book import ParsedDocument, PdfDocument, TOCEntry


def build_toc_tree(entries: list[TOCEntry], title: str = "Table of Contents") -> Tree:
    """Render a TOC as a rich tree, indenting Markdown headings by rank."""
    tree = Tree(f"[bold cyan]{escape(title)}[/]")

    def add(branch: Tree, items: list[TOCEntry]) -> None:
        for entry in items:
            node = branch.add(f"{escape(entry.title)} [dim]#{escape(entry.anchor)}[/]")
            add(node, entry.children)

    add(tree, entries)
    return tree


def _format_size(size_bytes: int) -> str:
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    return f"{size_bytes / (1024 * 1024):.1f} MB"


def execute_info(book_path: Path, console: Console) -> None:
    """Display format, metadata and table of contents of a document."""
    source = ParserFactory.source_for_path(book_path)
    fetcher = DocumentFetcher(root=book_path.parent)
    parsed: ParsedDocument = asyncio.run(load_document(source, fetcher))

    info_lines = [
        f"[bold]{escape(book_path.name)}[/]",
        "",
        f"[dim]Format:[/] {parsed.format.upper()}",
    ]

    if parsed.format == "epub":
        meta = parse_epub_metadata(book_path.read_bytes())
        info_lines.extend(
            [
                f"[dim]Title:[/] {escape(meta.title or 'Unknown')}",
                f"[dim]Author:[/] {escape(meta.author or 'Unknown')}",
                f"[dim]Publisher:[/] {escape(meta.publisher or 'Unknown')}",
                f"[dim]Language:[/] {escape(meta.language or 'Unknown')}",
                f"[dim]Date:[/] {escape(meta.pubdate or 'Unknown')}",
            ]
        )
        if meta.cover is not None:
            info_lines.append(
                f"[dim]Cover:[/] {meta.cover.mime_type} ({_format_size(len(meta.cover.data))})"
            )
        else:
            info_lines.append("[dim]Cover:[/] none")
        info_lines.append(f"[dim]Chapters:[/] {len(parsed.chapters)}")
        if meta.description:
            info_lines.extend(["", escape(meta.description)])
    elif parsed.format == "markdown":
        for key, value in parsed.metadata.items():
            info_lines.append(f"[dim]{escape(key)}:[/] {escape(value)}")
        info_lines.append(f"[dim]Headings:[/] {len(parsed.headings)}")
    elif parsed.format == "txt" and isinstance(parsed.content, str):
        stats = ContentProcessor().get_stats(parsed.content)
        info_lines.append(f"[dim]Characters:[/] {stats['character_count']:,}")
        info_lines.append(f"[dim]Words:[/] {stats['word_count']:,}")
        info_lines.append(f"[dim]Paragraphs:[/] {stats['paragraph_count']:,}")
    elif isinstance(parsed.content, PdfDocument):
        info_lines.append(f"[dim]Pages:[/] {parsed.content.page_count}")

    console.print()
    console.print(Panel("\n".join(info_lines), title="Book Information", border_style="green"))

    if parsed.toc:
        console.print()
        console.print(build_toc_tree(parsed.toc))
    console.print()
