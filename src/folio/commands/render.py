"""Render command: standalone HTML page for Markdown and TXT documents."""

import asyncio
import html
from pathlib import Path

from rich.console import Console

from folio.core.fetcher import DocumentFetcher
from folio.core.parser_factory import load_document
from folio.core.text_renderer import ChunkedTextRenderer
from folio.models.book import ParsedDocument
from folio.models.settings import ReaderSettings
from folio.models.source import DocumentSource

PAGE_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>{title}</title>
<meta name="viewport" content="width=device-width, initial-scale=1">
</head>
<body>
{nav}
<article style="{style}">
{body}
</article>
</body>
</html>
"""


def render_page(document: ParsedDocument, settings: ReaderSettings, title: str) -> str:
    """Wrap a Markdown or TXT document in an HTML page styled by ``settings``."""
    if document.format == "markdown" and isinstance(document.content, str):
        body = document.content
    elif document.format == "txt" and isinstance(document.content, str):
        renderer = ChunkedTextRenderer(document.content)
        renderer.reveal_all()
        body = renderer.render_html()
    else:
        raise ValueError(f"Cannot render {document.format} documents to HTML")

    nav = ""
    if document.toc and settings.sidebar_open:
        items = "\n".join(
            f'<li style="margin-left: {max(entry.level - 1, 0)}em">'
            f'<a href="#{html.escape(entry.anchor)}">{html.escape(entry.title)}</a></li>'
            for entry in document.iter_toc()
        )
        nav = f"<nav><ul>\n{items}\n</ul></nav>"

    return PAGE_TEMPLATE.format(
        title=html.escape(title),
        nav=nav,
        style=settings.article_style(),
        body=body,
    )


def execute_render(
    source: DocumentSource,
    title: str,
    output: Path,
    settings: ReaderSettings,
    fetcher: DocumentFetcher,
    console: Console,
) -> Path:
    document = asyncio.run(load_document(source, fetcher))
    output.write_text(render_page(document, settings, title), encoding="utf-8")
    console.print(f"[green]Wrote {output}[/]")
    return output
