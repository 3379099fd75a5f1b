import io
import zipfile
from pathlib import Path
from typing import Callable

import pytest

from folio.config import FolioConfig
from folio.storage.manager import JsonLibraryStore
from folio.storage.models import BookCreate, BookRecord

CONTAINER_XML = """<?xml version="1.0" encoding="UTF-8"?>
<container version="1.0" xmlns="urn:oasis:names:tc:opendocument:xmlns:container">
  <rootfiles>
    <rootfile full-path="{opf_path}" media-type="application/oebps-package+xml"/>
  </rootfiles>
</container>
"""

OPF_TEMPLATE = """<?xml version="1.0" encoding="UTF-8"?>
<package xmlns="http://www.idpf.org/2007/opf" version="2.0" unique-identifier="bookid">
  <metadata xmlns:dc="http://purl.org/dc/elements/1.1/" xmlns:opf="http://www.idpf.org/2007/opf">
    <dc:title>Test Book</dc:title>
    <dc:creator opf:role="aut">Jane Author</dc:creator>
    <dc:identifier id="bookid">urn:uuid:12345678</dc:identifier>
    <dc:language>en</dc:language>
    <dc:publisher>Folio Press</dc:publisher>
    <dc:date>2020-01-01</dc:date>
    <dc:description>Hello &lt;b&gt;World&lt;/b&gt;   now</dc:description>
    {metadata}
  </metadata>
  <manifest>
    <item id="ncx" href="toc.ncx" media-type="application/x-dtbncx+xml"/>
    <item id="intro" href="intro.xhtml" media-type="application/xhtml+xml"/>
    <item id="chapter-1" href="text/chapter1.xhtml" media-type="application/xhtml+xml"/>
    {manifest}
  </manifest>
  <spine toc="ncx">
    <itemref idref="intro"/>
    <itemref idref="chapter-1"/>
  </spine>
</package>
"""

NCX = """<?xml version="1.0" encoding="UTF-8"?>
<ncx xmlns="http://www.daisy.org/z3986/2005/ncx/" version="2005-1">
  <head><meta name="dtb:uid" content="urn:uuid:12345678"/></head>
  <docTitle><text>Test Book</text></docTitle>
  <navMap>
    <navPoint id="np1" playOrder="1">
      <navLabel><text>Introduction</text></navLabel>
      <content src="intro.xhtml"/>
    </navPoint>
    <navPoint id="np2" playOrder="2">
      <navLabel><text>Chapter One</text></navLabel>
      <content src="text/chapter1.xhtml"/>
      <navPoint id="np3" playOrder="3">
        <navLabel><text>Section 1.1</text></navLabel>
        <content src="text/chapter1.xhtml#s1"/>
      </navPoint>
    </navPoint>
    <navPoint id="np4" playOrder="4">
      <navLabel><text>Missing</text></navLabel>
      <content src="missing.xhtml"/>
    </navPoint>
  </navMap>
</ncx>
"""

INTRO_XHTML = """<?xml version="1.0" encoding="utf-8"?>
<html xmlns="http://www.w3.org/1999/xhtml">
<head><title>Intro</title><style>p { margin: 0; }</style></head>
<body><h1>Introduction</h1><p>Welcome to the book.</p><script>track();</script></body>
</html>
"""

CHAPTER_XHTML = """<?xml version="1.0" encoding="utf-8"?>
<html xmlns="http://www.w3.org/1999/xhtml">
<head><title>Chapter 1</title></head>
<body><h1>The Beginning</h1><p>It was a dark night.</p><h2 id="s1">Part one</h2><p>More text.</p></body>
</html>
"""


def build_zip(files: dict[str, str | bytes]) -> bytes:
    """Zip ``files`` in order, storing an uncompressed ``mimetype`` first."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        archive.writestr(
            zipfile.ZipInfo("mimetype"), "application/epub+zip", zipfile.ZIP_STORED
        )
        for name, data in files.items():
            archive.writestr(name, data, zipfile.ZIP_DEFLATED)
    return buffer.getvalue()


def build_epub(
    metadata: str = "",
    manifest: str = "",
    extra_files: dict[str, str | bytes] | None = None,
    opf_path: str = "OEBPS/content.opf",
) -> bytes:
    opf_dir = opf_path.rsplit("/", 1)[0] + "/" if "/" in opf_path else ""
    files: dict[str, str | bytes] = {
        "META-INF/container.xml": CONTAINER_XML.format(opf_path=opf_path),
        opf_path: OPF_TEMPLATE.format(metadata=metadata, manifest=manifest),
        f"{opf_dir}toc.ncx": NCX,
        f"{opf_dir}intro.xhtml": INTRO_XHTML,
        f"{opf_dir}text/chapter1.xhtml": CHAPTER_XHTML,
    }
    files.update(extra_files or {})
    return build_zip(files)


@pytest.fixture
def epub_factory() -> Callable[..., bytes]:
    return build_epub


@pytest.fixture
def zip_factory() -> Callable[[dict[str, str | bytes]], bytes]:
    return build_zip


@pytest.fixture
def sample_epub() -> bytes:
    return build_epub()


@pytest.fixture
def sample_epub_path(tmp_path: Path, sample_epub: bytes) -> Path:
    path = tmp_path / "book.epub"
    path.write_bytes(sample_epub)
    return path


@pytest.fixture
def library_dir(tmp_path: Path) -> Path:
    return tmp_path / "library"


@pytest.fixture
def config(library_dir: Path) -> FolioConfig:
    return FolioConfig(library_dir=library_dir, settle_delay=0)


@pytest.fixture
def store(library_dir: Path) -> JsonLibraryStore:
    return JsonLibraryStore(library_dir)


@pytest.fixture
def markdown_book(store: JsonLibraryStore) -> BookRecord:
    return store.add_book(
        BookCreate(
            title="Notes",
            format="markdown",
            file_path="/uploads/notes.md",
            chapters=[
                {
                    "title": "Notes",
                    "slug": "notes",
                    "content": "# Notes\n\n## First\n\nText.\n\n## Second\n\nMore.",
                }
            ],
        )
    )


@pytest.fixture
def epub_book(store: JsonLibraryStore, library_dir: Path, sample_epub: bytes) -> BookRecord:
    uploads = library_dir / "uploads"
    uploads.mkdir(parents=True, exist_ok=True)
    (uploads / "book.epub").write_bytes(sample_epub)
    return store.add_book(
        BookCreate(title="Test Book", format="epub", file_path="/uploads/book.epub")
    )
