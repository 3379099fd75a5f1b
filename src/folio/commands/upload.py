"""Upload ingestion: credential check, file storage and EPUB metadata."""

import hmac
import logging
import re
import time
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from folio.config import FolioConfig
from folio.core.epub_metadata import parse_epub_metadata
from folio.storage.manager import JsonLibraryStore
from folio.storage.models import BookCreate, BookRecord

log = logging.getLogger(__name__)

UPLOAD_FORMATS = {
    ".pdf": "pdf",
    ".epub": "epub",
    ".md": "markdown",
    ".markdown": "markdown",
    ".txt": "txt",
    ".jpg": "image",
    ".jpeg": "image",
    ".png": "image",
    ".gif": "image",
    ".webp": "image",
}

_UNSAFE_CHARS_RE = re.compile(r"[^a-zA-Z0-9.\-_\u4e00-\u9fa5]")


class UploadRejected(Exception):
    """Raised when the gate refuses an upload; ``status`` mirrors HTTP."""

    def __init__(self, message: str, status: int):
        super().__init__(message)
        self.status = status


class UploadMetadata(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str | None = None
    author: str | None = None
    description: str | None = None
    cover_url: str | None = Field(default=None, alias="coverUrl")


class UploadResult(BaseModel):
    filename: str
    url: str
    format: str
    size: int
    metadata: UploadMetadata = Field(default_factory=UploadMetadata)


def verify_password(password: str | None, config: FolioConfig) -> bool:
    """No configured password means uploads are open."""
    if not config.upload_password:
        return True
    return hmac.compare_digest((password or "").encode(), config.upload_password.encode())


def safe_filename(name: str) -> str:
    return _UNSAFE_CHARS_RE.sub("_", name)[:100]


def ingest_upload(
    file_path: Path,
    config: FolioConfig,
    password: str | None = None,
) -> UploadResult:
    """Store an uploaded file and extract what metadata it carries.

    Raises:
        UploadRejected: 401 for a bad credential, 400 for a missing file or
            an unsupported extension
    """
    if not verify_password(password, config):
        raise UploadRejected("Invalid upload password", status=401)

    if not file_path.is_file():
        raise UploadRejected(f"No file uploaded: {file_path}", status=400)

    ext = file_path.suffix.lower()
    file_format = UPLOAD_FORMATS.get(ext)
    if file_format is None:
        raise UploadRejected(f"Unsupported file format: {ext}", status=400)

    config.uploads_dir.mkdir(parents=True, exist_ok=True)
    timestamp = int(time.time() * 1000)
    filename = f"{timestamp}-{safe_filename(file_path.name)}"
    data = file_path.read_bytes()
    (config.uploads_dir / filename).write_bytes(data)

    metadata = UploadMetadata()
    if file_format == "epub":
        epub_meta = parse_epub_metadata(data)
        metadata = UploadMetadata(
            title=epub_meta.title,
            author=epub_meta.author,
            description=epub_meta.description,
        )
        if epub_meta.cover is not None:
            cover_name = f"{timestamp}-cover.{epub_meta.cover.extension}"
            (config.uploads_dir / cover_name).write_bytes(epub_meta.cover.data)
            metadata.cover_url = f"/uploads/{cover_name}"

    log.info("Stored upload %s (%s, %d bytes)", filename, file_format, len(data))
    return UploadResult(
        filename=filename,
        url=f"/uploads/{filename}",
        format=file_format,
        size=len(data),
        metadata=metadata,
    )


def register_upload(
    result: UploadResult, store: JsonLibraryStore, fallback_title: str
) -> BookRecord:
    """Create the library entry for a stored document upload."""
    if result.format == "image":
        raise UploadRejected("Images can only be used as covers", status=400)
    return store.add_book(
        BookCreate(
            title=result.metadata.title or fallback_title,
            author=result.metadata.author,
            description=result.metadata.description,
            cover=result.metadata.cover_url,
            format=result.format,
            file_path=result.url,
        )
    )
