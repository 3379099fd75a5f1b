"""Reader preference model passed explicitly to renderers."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

FontFamily = Literal["lxgw", "serif", "sans", "kai", "song", "hei", "fangsong", "system"]
ContentWidth = Literal["narrow", "normal", "wide"]

FONT_OPTIONS: dict[str, tuple[str, str]] = {
    "lxgw": ("LXGW WenKai", "'LXGW WenKai Screen', 'KaiTi', serif"),
    "serif": ("Serif", "Georgia, 'Noto Serif SC', 'Source Han Serif SC', serif"),
    "sans": ("Sans", "'PingFang SC', 'Microsoft YaHei', 'Noto Sans SC', sans-serif"),
    "kai": ("Kai", "'KaiTi', 'STKaiti', 'AR PL UKai CN', serif"),
    "song": ("Song", "'SimSun', 'STSong', 'AR PL UMing CN', serif"),
    "hei": ("Hei", "'SimHei', 'STHeiti', 'Noto Sans SC', sans-serif"),
    "fangsong": ("FangSong", "'FangSong', 'STFangsong', serif"),
    "system": ("System", "system-ui, -apple-system, sans-serif"),
}

CONTENT_WIDTHS: dict[str, str] = {
    "narrow": "42rem",
    "normal": "48rem",
    "wide": "56rem",
}

FONT_SIZE_MIN, FONT_SIZE_MAX, FONT_SIZE_STEP = 12, 28, 2
LINE_HEIGHT_MIN, LINE_HEIGHT_MAX, LINE_HEIGHT_STEP = 1.25, 3.0, 0.25


class ReaderSettings(BaseModel):
    """Persisted reader preferences (font, line height, width, sidebar)."""

    model_config = ConfigDict(populate_by_name=True, validate_assignment=True)

    font_size: int = Field(default=16, ge=FONT_SIZE_MIN, le=FONT_SIZE_MAX, alias="fontSize")
    font_family: FontFamily = Field(default="lxgw", alias="fontFamily")
    line_height: float = Field(
        default=1.75, ge=LINE_HEIGHT_MIN, le=LINE_HEIGHT_MAX, alias="lineHeight"
    )
    content_width: ContentWidth = Field(default="normal", alias="contentWidth")
    sidebar_open: bool = Field(default=True, alias="sidebarOpen")

    def increase_font_size(self) -> None:
        self.font_size = min(self.font_size + FONT_SIZE_STEP, FONT_SIZE_MAX)

    def decrease_font_size(self) -> None:
        self.font_size = max(self.font_size - FONT_SIZE_STEP, FONT_SIZE_MIN)

    def increase_line_height(self) -> None:
        self.line_height = min(self.line_height + LINE_HEIGHT_STEP, LINE_HEIGHT_MAX)

    def decrease_line_height(self) -> None:
        self.line_height = max(self.line_height - LINE_HEIGHT_STEP, LINE_HEIGHT_MIN)

    def toggle_sidebar(self) -> None:
        self.sidebar_open = not self.sidebar_open

    def reset(self) -> None:
        """Restore typography defaults; width and sidebar are left alone."""
        self.font_size = 16
        self.line_height = 1.75
        self.font_family = "lxgw"

    def font_stack(self) -> str:
        return FONT_OPTIONS.get(self.font_family, FONT_OPTIONS["lxgw"])[1]

    def article_style(self) -> str:
        """Inline CSS for the article element of rendered HTML."""
        return (
            f"font-size: {self.font_size}px; "
            f"line-height: {self.line_height}; "
            f"font-family: {self.font_stack()}; "
            f"max-width: {CONTENT_WIDTHS[self.content_width]}; "
            "margin: 0 auto;"
        )
