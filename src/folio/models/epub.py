"""Data models for EPUB package structure."""

import posixpath

from pydantic import BaseModel, Field


class MetadataEntry(BaseModel):
    """One child of the OPF ``<metadata>`` element.

    ``dc:*`` elements may be plain strings or carry attributes (``opf:role``,
    ``id``); ``meta`` elements usually only carry attributes.
    """

    name: str
    text: str | None = None
    attributes: dict[str, str] = Field(default_factory=dict)


class ManifestItem(BaseModel):
    """Single resource declared in the OPF manifest."""

    id: str
    href: str = ""
    media_type: str = ""
    properties: str = ""

    @property
    def is_image(self) -> bool:
        return self.media_type.startswith("image/")


class PackageDocument(BaseModel):
    """Parsed OPF package document."""

    opf_path: str
    metadata: list[MetadataEntry] = Field(default_factory=list)
    manifest: list[ManifestItem] = Field(default_factory=list)
    spine: list[str] = Field(default_factory=list)

    @property
    def opf_dir(self) -> str:
        return posixpath.dirname(self.opf_path)

    def first_text(self, name: str) -> str | None:
        """Text of the first metadata entry called ``name``."""
        for entry in self.metadata:
            if entry.name == name:
                return entry.text
        return None

    def find_item(self, item_id: str) -> ManifestItem | None:
        for item in self.manifest:
            if item.id == item_id:
                return item
        return None


class EpubCoverCandidate(BaseModel):
    """Manifest item considered during cover resolution."""

    id: str
    href: str
    media_type: str
    is_declared_cover: bool = False
    id_looks_like_cover: bool = False

    @classmethod
    def from_item(cls, item: ManifestItem, declared_id: str | None = None) -> "EpubCoverCandidate":
        return cls(
            id=item.id,
            href=item.href,
            media_type=item.media_type,
            is_declared_cover=item.id == declared_id
            or "cover-image" in item.properties.split(),
            id_looks_like_cover="cover" in item.id.lower(),
        )


class CoverImage(BaseModel):
    """Raw cover bytes and declared MIME type."""

    data: bytes
    mime_type: str

    @property
    def extension(self) -> str:
        return self.mime_type.split("/", 1)[-1] or "jpg"


class EpubMetadata(BaseModel):
    """Book-level metadata extracted at upload time. Every field is optional."""

    title: str | None = None
    author: str | None = None
    description: str | None = None
    publisher: str | None = None
    language: str | None = None
    pubdate: str | None = None
    cover: CoverImage | None = None

    @property
    def is_empty(self) -> bool:
        return not any(
            (
                self.title,
                self.author,
                self.description,
                self.publisher,
                self.language,
                self.pubdate,
                self.cover,
            )
        )
