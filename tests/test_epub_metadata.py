from folio.core.epub_metadata import clean_description, parse_epub_metadata


def test_extracts_dublin_core_fields(sample_epub: bytes) -> None:
    metadata = parse_epub_metadata(sample_epub)

    assert metadata.title == "Test Book"
    assert metadata.author == "Jane Author"
    assert metadata.publisher == "Folio Press"
    assert metadata.language == "en"
    assert metadata.pubdate == "2020-01-01"


def test_description_markup_is_stripped(sample_epub: bytes) -> None:
    assert parse_epub_metadata(sample_epub).description == "Hello World now"


def test_clean_description() -> None:
    assert clean_description("<p>Line one</p>\n\n<p>Line   two</p>") == "Line one Line two"
    assert clean_description("  plain  ") == "plain"
    assert clean_description("<br/>") is None
    assert clean_description(None) is None


def test_malformed_archive_yields_empty_metadata() -> None:
    metadata = parse_epub_metadata(b"PK\x03\x04 broken")

    assert metadata.is_empty
    assert metadata.title is None
    assert metadata.cover is None


def test_missing_opf_yields_empty_metadata(zip_factory) -> None:
    container = (
        '<container xmlns="urn:oasis:names:tc:opendocument:xmlns:container">'
        '<rootfiles><rootfile full-path="nowhere.opf"/></rootfiles></container>'
    )

    assert parse_epub_metadata(zip_factory({"META-INF/container.xml": container})).is_empty


def test_opf_without_metadata_yields_empty_fields(zip_factory) -> None:
    container = (
        '<container xmlns="urn:oasis:names:tc:opendocument:xmlns:container">'
        '<rootfiles><rootfile full-path="content.opf"/></rootfiles></container>'
    )
    opf = '<package xmlns="http://www.idpf.org/2007/opf"><manifest/><spine/></package>'

    metadata = parse_epub_metadata(
        zip_factory({"META-INF/container.xml": container, "content.opf": opf})
    )

    assert metadata.is_empty
