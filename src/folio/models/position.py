"""Reading-position payload stored inside bookmarks."""

import json

from pydantic import BaseModel, ConfigDict, Field, ValidationError


class PositionSnapshot(BaseModel):
    """Serialized reading location.

    Wire format is a JSON object with optional keys ``scrollY``,
    ``chapterSlug`` and ``percentage`` (0-100).
    """

    model_config = ConfigDict(populate_by_name=True)

    scroll_y: float | None = Field(default=None, alias="scrollY")
    chapter_anchor: str | None = Field(default=None, alias="chapterSlug")
    percentage: int | None = Field(default=None, ge=0, le=100)

    @property
    def has_scroll_offset(self) -> bool:
        return self.scroll_y is not None and self.scroll_y > 0

    @property
    def is_usable(self) -> bool:
        return self.has_scroll_offset or self.percentage is not None

    def to_payload(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)

    @classmethod
    def from_payload(cls, payload: str | None) -> "PositionSnapshot | None":
        """Parse a stored payload, returning None for anything unreadable."""
        if not payload:
            return None
        try:
            data = json.loads(payload)
        except json.JSONDecodeError:
            return None
        if not isinstance(data, dict):
            return None
        try:
            return cls.model_validate(data)
        except ValidationError:
            return None


class ScrollMetrics(BaseModel):
    """Scroll state of the reading surface at one instant."""

    scroll_y: float = 0
    document_height: float = 0
    viewport_height: float = 0
