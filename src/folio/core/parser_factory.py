"""Format detection and dispatch of document sources to their pipelines."""

import logging
import tempfile
from pathlib import Path

from folio.core.epub_parser import EpubParser
from folio.core.fetcher import DocumentFetcher, is_remote
from folio.core.markdown_parser import parse_markdown_document
from folio.core.pdf_parser import open_pdf
from folio.models.book import ParsedDocument
from folio.models.source import (
    DocumentSource,
    EpubSource,
    MarkdownSource,
    PdfSource,
    TxtSource,
)

log = logging.getLogger(__name__)


class UnsupportedFormat(ValueError):
    """Raised for file extensions no pipeline handles."""


class ParserFactory:
    """Map files to formats and formats to parsing pipelines."""

    SUPPORTED_FORMATS = {
        ".epub": "epub",
        ".pdf": "pdf",
        ".md": "markdown",
        ".markdown": "markdown",
        ".txt": "txt",
    }

    @classmethod
    def detect_format(cls, path: Path | str) -> str:
        """Detect file format from extension.

        Returns:
            Format string ("epub", "pdf", "markdown", "txt" or "unknown")
        """
        suffix = Path(str(path)).suffix.lower()
        return cls.SUPPORTED_FORMATS.get(suffix, "unknown")

    @classmethod
    def is_supported(cls, path: Path | str) -> bool:
        return Path(str(path)).suffix.lower() in cls.SUPPORTED_FORMATS

    @classmethod
    def source_for_path(cls, location: Path | str) -> DocumentSource:
        """Build the tagged source for a file path or URL.

        Raises:
            UnsupportedFormat: If the extension is not handled
        """
        fmt = cls.detect_format(location)
        url = str(location)
        if fmt == "markdown":
            return MarkdownSource(url=url)
        if fmt == "txt":
            return TxtSource(url=url)
        if fmt == "epub":
            return EpubSource(url=url)
        if fmt == "pdf":
            return PdfSource(url=url)

        supported = ", ".join(cls.SUPPORTED_FORMATS.keys())
        raise UnsupportedFormat(
            f"Unsupported format: {Path(url).suffix}. Supported formats: {supported}"
        )


async def _load_epub(url: str, fetcher: DocumentFetcher) -> ParsedDocument:
    if not is_remote(url):
        path = fetcher.local_path(url)
        if path.exists():
            return EpubParser(path).parse()

    # ebooklib reads from the filesystem, so remote archives are spooled first
    data = await fetcher.fetch_bytes(url)
    with tempfile.TemporaryDirectory() as tmp:
        path = Path(tmp) / "book.epub"
        path.write_bytes(data)
        return EpubParser(path).parse()


async def load_document(
    source: DocumentSource, fetcher: DocumentFetcher | None = None
) -> ParsedDocument:
    """Run the pipeline matching ``source`` and return the canonical document.

    Raises:
        FetchFailure: If the body cannot be retrieved
        InvalidContainer: If an EPUB cannot be opened
    """
    fetcher = fetcher or DocumentFetcher()

    match source:
        case MarkdownSource(content=content, url=url):
            text = content if content is not None else await fetcher.fetch_text(url or "")
            return parse_markdown_document(text)
        case TxtSource(content=content, url=url):
            text = content if content is not None else await fetcher.fetch_text(url or "")
            return ParsedDocument(format="txt", content=text)
        case EpubSource(url=url):
            return await _load_epub(url, fetcher)
        case PdfSource(url=url):
            data = await fetcher.fetch_bytes(url)
            return ParsedDocument(format="pdf", content=open_pdf(url, data))

    raise UnsupportedFormat(f"Unsupported source: {source!r}")
