"""Convert rendered HTML (EPUB chapters, Markdown output) for terminal display."""

import re
from typing import Literal

from bs4 import BeautifulSoup, Tag
from markdownify import markdownify as md

_BLANK_RUN_RE = re.compile(r"\n{3,}")
_TEXT_BLOCKS = ["p", "h1", "h2", "h3", "h4", "h5", "h6", "li", "pre"]


def _code_language(el: Tag) -> str:
    """Language of a highlighted ``<pre><code class="language-x">`` block."""
    code = el.find("code")
    classes = code.get("class") if isinstance(code, Tag) else None
    for cls in classes or []:
        if cls.startswith("language-"):
            return cls[len("language-"):]
    return ""


class ContentProcessor:
    """Turn reader HTML into Markdown for textual's Markdown widget, or plain text."""

    def process(
        self,
        html_content: str | bytes,
        output_format: Literal["markdown", "text"] = "markdown",
    ) -> str:
        soup = BeautifulSoup(html_content, "lxml")

        for tag in soup(["script", "style", "nav"]):
            tag.decompose()
        # Unwrap heading self-links
        for link in soup.select("a.toclink"):
            link.unwrap()

        if output_format == "text":
            return self._to_plain_text(soup)
        return self._to_markdown(soup)

    def _to_markdown(self, soup: BeautifulSoup) -> str:
        body = soup.body or soup
        markdown = md(
            str(body),
            heading_style="ATX",
            bullets="-",
            strip=["img"],
            code_language_callback=_code_language,
        )
        lines = "\n".join(line.rstrip() for line in markdown.split("\n"))
        return _BLANK_RUN_RE.sub("\n\n", lines).strip()

    def _to_plain_text(self, soup: BeautifulSoup) -> str:
        paragraphs = []
        for block in soup.find_all(_TEXT_BLOCKS):
            text = block.get_text(strip=True)
            if text:
                paragraphs.append(text)
        return "\n\n".join(paragraphs)

    def get_stats(self, content: str) -> dict[str, int]:
        """Word, character and paragraph counts of processed content."""
        paragraphs = [p for p in content.split("\n\n") if p.strip()]
        return {
            "word_count": len(content.split()),
            "character_count": len(content),
            "paragraph_count": len(paragraphs),
        }
