import pytest
from textual.widgets import Markdown

from folio.config import FolioConfig
from folio.storage.manager import JsonLibraryStore
from folio.storage.models import BookRecord
from folio.tui import ReaderApp
from folio.tui.widgets import TocTree


@pytest.mark.asyncio
async def test_toc_is_filled_after_content_mounts(
    epub_book: BookRecord, store: JsonLibraryStore, config: FolioConfig, monkeypatch
) -> None:
    mounted_blocks: list[int] = []
    load_entries = TocTree.load_entries

    def recording_load(self, entries):
        if entries:
            markdown = self.screen.query_one("#document", Markdown)
            mounted_blocks.append(len(markdown.children))
        load_entries(self, entries)

    monkeypatch.setattr(TocTree, "load_entries", recording_load)
    app = ReaderApp(epub_book, store, config=config)

    async with app.run_test() as pilot:
        await pilot.pause()
        await app.workers.wait_for_complete()
        await pilot.pause()

        toc = app.screen.query_one(TocTree)
        assert [node.data for node in toc.root.children][0] == "intro.xhtml"

    assert mounted_blocks and mounted_blocks[0] > 0
