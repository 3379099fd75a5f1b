"""Persisted library records."""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from folio.models.position import PositionSnapshot


def _new_id() -> str:
    return uuid.uuid4().hex


class ChapterRecord(BaseModel):
    """Stored chapter of a Markdown/TXT book."""

    model_config = ConfigDict(populate_by_name=True)

    title: str
    slug: str
    order: int = 0
    content: str | None = None
    file_path: str | None = Field(default=None, alias="filePath")


class BookCreate(BaseModel):
    """Fields accepted when registering a book."""

    model_config = ConfigDict(populate_by_name=True)

    title: str
    format: str
    file_path: str = Field(alias="filePath")
    slug: str | None = None
    author: str | None = None
    description: str | None = None
    cover: str | None = None
    chapters: list[ChapterRecord] = Field(default_factory=list)


class BookRecord(BaseModel):
    """A book in the library."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=_new_id)
    slug: str
    title: str
    author: str | None = None
    description: str | None = None
    cover: str | None = None
    format: str
    file_path: str = Field(alias="filePath")
    chapters: list[ChapterRecord] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=datetime.now, alias="createdAt")


class BookmarkCreate(BaseModel):
    """Fields accepted when creating a bookmark."""

    model_config = ConfigDict(populate_by_name=True)

    chapter_anchor: str | None = Field(default=None, alias="chapterSlug")
    position: str | None = None
    title: str | None = None
    note: str | None = None


class BookmarkRecord(BaseModel):
    """A stored bookmark; ``position`` holds a serialized PositionSnapshot."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=_new_id)
    book_id: str = Field(alias="bookId")
    chapter_anchor: str | None = Field(default=None, alias="chapterSlug")
    position: str | None = None
    title: str | None = None
    note: str | None = None
    created_at: datetime = Field(default_factory=datetime.now, alias="createdAt")

    def snapshot(self) -> PositionSnapshot | None:
        return PositionSnapshot.from_payload(self.position)


class LibraryIndex(BaseModel):
    """On-disk layout of the JSON library store."""

    books: list[BookRecord] = Field(default_factory=list)
    bookmarks: list[BookmarkRecord] = Field(default_factory=list)
