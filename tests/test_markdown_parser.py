from folio.core.markdown_parser import (
    MarkdownPipeline,
    SlugCounter,
    parse_frontmatter,
    parse_markdown_document,
    render_markdown,
)

# --- Headings and anchors ---


def test_single_heading_gets_id_and_toc_entry() -> None:
    html, headings = render_markdown("## Hello World")

    assert len(headings) == 1
    assert headings[0].level == 2
    assert headings[0].text == "Hello World"
    assert headings[0].id == "hello-world"
    assert 'id="hello-world"' in html


def test_heading_text_is_self_linked() -> None:
    html, _ = render_markdown("# Title")

    assert 'href="#title"' in html


def test_only_first_three_levels_are_collected() -> None:
    html, headings = render_markdown("# One\n\n## Two\n\n### Three\n\n#### Four")

    assert [h.level for h in headings] == [1, 2, 3]
    assert 'id="four"' in html


def test_duplicate_headings_get_numbered_suffixes() -> None:
    _, headings = render_markdown("## Notes\n\n## Notes\n\n## Notes")

    assert [h.id for h in headings] == ["notes", "notes-1", "notes-2"]


def test_unicode_headings_keep_their_characters() -> None:
    _, headings = render_markdown("## 第一章 开始")

    assert headings[0].id == "第一章-开始"


def test_slug_counter_skips_taken_suffixes() -> None:
    slugs = SlugCounter()

    assert [slugs(v, "-") for v in ("A", "A 1", "A")] == ["a", "a-1", "a-2"]


def test_headings_without_text_are_skipped() -> None:
    _, headings = render_markdown('<h2 id="empty"></h2>\n\n## Real')

    assert [h.text for h in headings] == ["Real"]


# --- Extensions ---


def test_tables_strikethrough_and_task_lists() -> None:
    source = "| a | b |\n|---|---|\n| 1 | 2 |\n\n~~gone~~\n\n- [x] done\n- [ ] todo\n"
    html, _ = render_markdown(source)

    assert "<table>" in html
    assert "<del>gone</del>" in html
    assert 'type="checkbox"' in html


def test_raw_html_passes_through() -> None:
    html, _ = render_markdown('<div class="note">kept</div>')

    assert '<div class="note">kept</div>' in html


def test_malformed_markdown_still_renders() -> None:
    source = "# Title\n\n| a | b\n|---\n| 1 |\n\n<div <span\n\n[broken](\n\n```python\nunclosed = ("

    html, headings = render_markdown(source)

    assert "unclosed" in html
    assert [h.text for h in headings] == ["Title"]


# --- Code highlighting ---


def test_known_language_is_highlighted() -> None:
    html, _ = render_markdown("```python\ndef f():\n    return 1\n```")

    assert "highlight" in html
    assert '<span class="k">def</span>' in html


def test_unknown_language_degrades_to_plain_code() -> None:
    html, _ = render_markdown("```nosuchlanguage\nx = 1 < 2\n```")

    assert 'class="language-nosuchlanguage"' in html
    assert "x = 1 &lt; 2" in html
    assert "<span" not in html


def test_untagged_block_language_is_detected() -> None:
    html, _ = render_markdown(
        "```\n#!/usr/bin/env python3\nimport os\n\ndef f():\n    return os.sep\n```"
    )

    assert "language-python" in html
    assert '<span class="k">def</span>' in html


def test_highlighting_can_be_disabled() -> None:
    html, _ = MarkdownPipeline(highlight_code=False).render("```python\npass\n```")

    assert "<span" not in html


# --- Frontmatter ---


def test_frontmatter_is_parsed_and_stripped() -> None:
    source = '---\ntitle: "My Notes"\nauthor: Ada\n---\n# Body\n'

    metadata, body = parse_frontmatter(source)

    assert metadata == {"title": "My Notes", "author": "Ada"}
    assert body == "# Body\n"


def test_invalid_yaml_falls_back_to_key_value_lines() -> None:
    metadata, _ = parse_frontmatter("---\ntitle: [broken\nauthor: 'Ada'\n---\ntext")

    assert metadata == {"title": "[broken", "author": "Ada"}


def test_no_frontmatter_returns_source_untouched() -> None:
    assert parse_frontmatter("# Just text") == ({}, "# Just text")


def test_document_carries_toc_and_metadata() -> None:
    document = parse_markdown_document("---\ntitle: T\n---\n# One\n\n## Two\n")

    assert document.format == "markdown"
    assert document.metadata == {"title": "T"}
    assert [(e.title, e.anchor, e.level) for e in document.toc] == [
        ("One", "one", 1),
        ("Two", "two", 2),
    ]
    assert document.unresolved_anchors() == []
    assert "title: T" not in document.content
