"""Cover image resolution for EPUB packages."""

import logging
import posixpath
import zipfile
from urllib.parse import unquote

from folio.models.epub import CoverImage, EpubCoverCandidate, PackageDocument

log = logging.getLogger(__name__)


class EpubCoverResolver:
    """Resolve the single cover image of a package.

    Tiers are tried in order and the first one that names an item wins:

    1. ``<meta name="cover" content="ITEM-ID"/>`` in the metadata
    2. a manifest item whose ``properties`` include ``cover-image``
    3. an image item whose id contains ``cover`` (case-insensitive)

    A missing cover is a normal outcome and yields None.
    """

    def __init__(self, package: PackageDocument, archive: zipfile.ZipFile):
        self.package = package
        self.archive = archive

    def resolve(self) -> CoverImage | None:
        cover_id = (
            self._from_meta_element()
            or self._from_manifest_properties()
            or self._from_id_substring()
        )
        if not cover_id:
            return None

        item = self.package.find_item(cover_id)
        if item is None:
            log.debug("Cover id %r not present in manifest", cover_id)
            return None

        candidate = EpubCoverCandidate.from_item(item, declared_id=cover_id)
        if not candidate.href or not candidate.media_type.startswith("image/"):
            return None

        data = self._read_relative(candidate.href)
        if data is None:
            log.debug("Cover %s not found in archive", candidate.href)
            return None

        return CoverImage(data=data, mime_type=candidate.media_type)

    def _from_meta_element(self) -> str | None:
        for entry in self.package.metadata:
            if entry.name.split(":")[-1] == "meta" and entry.attributes.get("name") == "cover":
                return entry.attributes.get("content") or None
        return None

    def _from_manifest_properties(self) -> str | None:
        for item in self.package.manifest:
            if "cover-image" in item.properties.split():
                return item.id
        return None

    def _from_id_substring(self) -> str | None:
        for item in self.package.manifest:
            candidate = EpubCoverCandidate.from_item(item)
            if candidate.id_looks_like_cover and item.is_image:
                return item.id
        return None

    def _read_relative(self, href: str) -> bytes | None:
        """Read ``href`` relative to the OPF directory.

        Retries with the URL-decoded path since archives and manifests
        disagree on percent-encoding.
        """
        path = posixpath.normpath(posixpath.join(self.package.opf_dir, href))
        for name in dict.fromkeys((path, unquote(path))):
            try:
                return self.archive.read(name)
            except KeyError:
                continue
        return None


def resolve_cover(
    package: PackageDocument, archive: zipfile.ZipFile
) -> CoverImage | None:
    return EpubCoverResolver(package, archive).resolve()
