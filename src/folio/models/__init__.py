"""Data models."""

from folio.models.book import (
    Chapter,
    DocumentFormat,
    Heading,
    ParsedDocument,
    PdfDocument,
    TOCEntry,
)
from folio.models.epub import (
    CoverImage,
    EpubCoverCandidate,
    EpubMetadata,
    ManifestItem,
    MetadataEntry,
    PackageDocument,
)
from folio.models.position import PositionSnapshot, ScrollMetrics
from folio.models.settings import ReaderSettings
from folio.models.source import (
    DocumentSource,
    EpubSource,
    MarkdownSource,
    PdfSource,
    TxtSource,
)

__all__ = [
    # Document models
    "TOCEntry",
    "Heading",
    "Chapter",
    "PdfDocument",
    "ParsedDocument",
    "DocumentFormat",
    # EPUB models
    "MetadataEntry",
    "ManifestItem",
    "PackageDocument",
    "EpubCoverCandidate",
    "CoverImage",
    "EpubMetadata",
    # Position models
    "PositionSnapshot",
    "ScrollMetrics",
    # Settings
    "ReaderSettings",
    # Sources
    "DocumentSource",
    "MarkdownSource",
    "TxtSource",
    "EpubSource",
    "PdfSource",
]
