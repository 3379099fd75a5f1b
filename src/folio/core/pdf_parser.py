"""PDF handle for the external page renderer."""

import io
import logging

# Suppress warnings about malformed PDF object references
logging.getLogger("pypdf").setLevel(logging.ERROR)

import pypdf
from pypdf.errors import EmptyFileError, FileNotDecryptedError, PdfReadError

from folio.models.book import PdfDocument

log = logging.getLogger(__name__)


def count_pages(pdf_bytes: bytes) -> int:
    """Number of pages, or 0 when the file cannot be read."""
    try:
        reader = pypdf.PdfReader(io.BytesIO(pdf_bytes))
        return len(reader.pages)
    except (EmptyFileError, FileNotDecryptedError, PdfReadError) as e:
        log.warning("Could not read PDF page count: %s", e)
        return 0


def open_pdf(url: str, pdf_bytes: bytes | None = None) -> PdfDocument:
    """Build the opaque PDF handle; the page count is filled when bytes are given."""
    page_count = count_pages(pdf_bytes) if pdf_bytes is not None else 0
    return PdfDocument(url=url, page_count=page_count)
