"""Tagged document sources, one variant per supported format."""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter, model_validator


class _InlineOrRemote(BaseModel):
    """Text formats carry inline content, a location to fetch, or both."""

    content: str | None = None
    url: str | None = None

    @model_validator(mode="after")
    def _require_one(self) -> "_InlineOrRemote":
        if self.content is None and not self.url:
            raise ValueError("either content or url is required")
        return self


class MarkdownSource(_InlineOrRemote):
    format: Literal["markdown"] = "markdown"


class TxtSource(_InlineOrRemote):
    format: Literal["txt"] = "txt"


class EpubSource(BaseModel):
    format: Literal["epub"] = "epub"
    url: str


class PdfSource(BaseModel):
    format: Literal["pdf"] = "pdf"
    url: str


DocumentSource = Annotated[
    Union[MarkdownSource, TxtSource, EpubSource, PdfSource],
    Field(discriminator="format"),
]

source_adapter: TypeAdapter[DocumentSource] = TypeAdapter(DocumentSource)
