"""EPUB metadata extraction used by the upload pipeline."""

import logging
import re

from folio.core.epub_container import EpubContainerResolver, InvalidContainer
from folio.core.epub_cover import EpubCoverResolver
from folio.models.epub import EpubMetadata, PackageDocument

log = logging.getLogger(__name__)

_TAG_RE = re.compile(r"<[^>]*>")
_WHITESPACE_RE = re.compile(r"\s+")

_DC_FIELDS = {
    "title": "dc:title",
    "author": "dc:creator",
    "description": "dc:description",
    "publisher": "dc:publisher",
    "language": "dc:language",
    "pubdate": "dc:date",
}


def clean_description(value: str | None) -> str | None:
    """Strip embedded markup and collapse whitespace runs."""
    if not value:
        return None
    cleaned = _WHITESPACE_RE.sub(" ", _TAG_RE.sub("", value)).strip()
    return cleaned or None


class EpubMetadataExtractor:
    """Compose container, package and cover resolution into one record.

    Extraction never fails: malformed archives produce an empty (or partial)
    :class:`EpubMetadata`, which callers must accept.
    """

    def extract(self, epub_bytes: bytes) -> EpubMetadata:
        try:
            resolver = EpubContainerResolver(epub_bytes)
        except InvalidContainer as e:
            log.warning("Error parsing EPUB metadata: %s", e)
            return EpubMetadata()

        with resolver:
            try:
                package = resolver.resolve()
            except InvalidContainer as e:
                log.warning("Error parsing EPUB metadata: %s", e)
                return EpubMetadata()
            except Exception:
                log.warning("Error parsing EPUB metadata", exc_info=True)
                return EpubMetadata()

            metadata = self._from_package(package)

            try:
                metadata.cover = EpubCoverResolver(package, resolver.archive).resolve()
            except Exception:
                log.warning("Error extracting cover", exc_info=True)

        return metadata

    def _from_package(self, package: PackageDocument) -> EpubMetadata:
        values = {
            field: package.first_text(element) for field, element in _DC_FIELDS.items()
        }
        values["description"] = clean_description(values["description"])
        return EpubMetadata(**values)


def parse_epub_metadata(epub_bytes: bytes) -> EpubMetadata:
    """Extract title, author, description, publisher, language, date and cover."""
    return EpubMetadataExtractor().extract(epub_bytes)
