"""EPUB container resolution: zip archive -> container.xml -> OPF package."""

import io
import logging
import warnings
import zipfile

from bs4 import BeautifulSoup, Tag, XMLParsedAsHTMLWarning

from folio.models.epub import ManifestItem, MetadataEntry, PackageDocument

warnings.filterwarnings("ignore", category=XMLParsedAsHTMLWarning)

log = logging.getLogger(__name__)

CONTAINER_PATH = "META-INF/container.xml"


class InvalidContainer(ValueError):
    """Raised when an EPUB archive is structurally malformed."""


def _qualified_name(tag: Tag) -> str:
    return f"{tag.prefix}:{tag.name}" if tag.prefix else tag.name


def _read_member(archive: zipfile.ZipFile, name: str) -> bytes | None:
    try:
        return archive.read(name)
    except KeyError:
        return None


class EpubContainerResolver:
    """Open an EPUB archive and parse its package document.

    Each stage feeds the next: the OPF directory resolved here is required
    to locate manifest resources later on.
    """

    def __init__(self, epub_bytes: bytes):
        try:
            self.archive = zipfile.ZipFile(io.BytesIO(epub_bytes))
        except (zipfile.BadZipFile, ValueError) as e:
            raise InvalidContainer(f"Invalid EPUB: not a zip archive ({e})") from e

    def read(self, name: str) -> bytes | None:
        """Read an archive member, returning None when it does not exist."""
        return _read_member(self.archive, name)

    def resolve(self) -> PackageDocument:
        """Locate and parse the OPF package document."""
        opf_path = self._find_rootfile()

        opf_xml = self.read(opf_path)
        if opf_xml is None:
            raise InvalidContainer(f"Invalid EPUB: cannot read OPF file {opf_path}")

        return parse_package(opf_xml, opf_path)

    def close(self) -> None:
        self.archive.close()

    def __enter__(self) -> "EpubContainerResolver":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _find_rootfile(self) -> str:
        container_xml = self.read(CONTAINER_PATH)
        if container_xml is None:
            raise InvalidContainer("Invalid EPUB: missing container.xml")

        soup = BeautifulSoup(container_xml, "xml")
        rootfile = soup.find("rootfile")
        full_path = rootfile.get("full-path") if isinstance(rootfile, Tag) else None
        if not full_path:
            raise InvalidContainer("Invalid EPUB: cannot find rootfile path")
        return str(full_path)


def parse_package(opf_xml: bytes | str, opf_path: str) -> PackageDocument:
    """Parse OPF XML into metadata, manifest and spine."""
    soup = BeautifulSoup(opf_xml, "xml")
    package = soup.find("package")
    if not isinstance(package, Tag):
        raise InvalidContainer(f"Invalid EPUB: {opf_path} has no package element")

    metadata: list[MetadataEntry] = []
    metadata_el = package.find("metadata")
    if isinstance(metadata_el, Tag):
        for child in metadata_el.find_all(True, recursive=False):
            text = child.get_text().strip()
            metadata.append(
                MetadataEntry(
                    name=_qualified_name(child),
                    text=text or None,
                    attributes={k: str(v) for k, v in child.attrs.items()},
                )
            )

    manifest: list[ManifestItem] = []
    manifest_el = package.find("manifest")
    if isinstance(manifest_el, Tag):
        for item in manifest_el.find_all("item"):
            item_id = item.get("id")
            if not item_id:
                log.debug("Skipping manifest item without id in %s", opf_path)
                continue
            manifest.append(
                ManifestItem(
                    id=str(item_id),
                    href=str(item.get("href") or ""),
                    media_type=str(item.get("media-type") or ""),
                    properties=str(item.get("properties") or ""),
                )
            )

    spine: list[str] = []
    spine_el = package.find("spine")
    if isinstance(spine_el, Tag):
        spine = [str(ref["idref"]) for ref in spine_el.find_all("itemref") if ref.get("idref")]

    return PackageDocument(
        opf_path=opf_path,
        metadata=metadata,
        manifest=manifest,
        spine=spine,
    )


def resolve_package(epub_bytes: bytes) -> PackageDocument:
    """Convenience wrapper: bytes in, package document out."""
    with EpubContainerResolver(epub_bytes) as resolver:
        return resolver.resolve()
