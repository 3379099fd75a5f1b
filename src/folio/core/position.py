"""Capture and restore reading positions across chapter boundaries."""

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable

from folio.models.position import PositionSnapshot

log = logging.getLogger(__name__)

# Seconds to wait for a switched chapter to mount when no readiness
# signal is available
SETTLE_DELAY = 0.5

SwitchChapter = Callable[[str], Awaitable[Any] | Any]
ScrollTo = Callable[[float], Any]


def scroll_percentage(scroll_y: float, document_height: float, viewport_height: float) -> int:
    """Percentage of the scrollable range above ``scroll_y``, clamped to 0-100."""
    scrollable = document_height - viewport_height
    if scrollable <= 0:
        return 0
    return max(0, min(100, round(scroll_y / scrollable * 100)))


def capture(
    current_chapter: str | None,
    scroll_y: float,
    document_height: float,
    viewport_height: float,
) -> PositionSnapshot:
    """Snapshot the current position with an offset and a reflow-safe percentage."""
    return PositionSnapshot(
        scroll_y=scroll_y,
        chapter_anchor=current_chapter,
        percentage=scroll_percentage(scroll_y, document_height, viewport_height),
    )


def resolve_offset(
    snapshot: PositionSnapshot, document_height: float, viewport_height: float
) -> float | None:
    """Target scroll offset for ``snapshot`` in the current layout.

    A positive ``scroll_y`` wins; otherwise ``percentage`` is applied to the
    current document's scrollable range.
    """
    if snapshot.has_scroll_offset:
        return snapshot.scroll_y
    if snapshot.percentage is not None:
        scrollable = max(document_height - viewport_height, 0)
        return round(snapshot.percentage / 100 * scrollable)
    return None


class BookmarkPositionModel:
    """Two-phase navigation: switch chapter, then seek.

    If ``switch_chapter`` returns an awaitable it is treated as the "content
    mounted" signal. Otherwise the model waits ``settle_delay`` seconds
    before seeking, which can still race with slow rendering.
    """

    def __init__(self, settle_delay: float = SETTLE_DELAY):
        self.settle_delay = settle_delay

    capture = staticmethod(capture)

    async def navigate(
        self,
        snapshot: PositionSnapshot,
        current_chapter: str | None,
        switch_chapter: SwitchChapter,
        scroll_to: ScrollTo,
        measure: Callable[[], tuple[float, float]] = lambda: (0.0, 0.0),
    ) -> bool:
        """Restore ``snapshot``; returns False when nothing was done.

        ``measure`` returns ``(document_height, viewport_height)`` and is
        called after any chapter switch so percentages map onto the content
        that is actually mounted.
        """
        if not snapshot.is_usable:
            return False

        anchor = snapshot.chapter_anchor
        if anchor and anchor != current_chapter:
            result = switch_chapter(anchor)
            if inspect.isawaitable(result):
                await result
            else:
                await asyncio.sleep(self.settle_delay)

        document_height, viewport_height = measure()
        offset = resolve_offset(snapshot, document_height, viewport_height)
        if offset is None:
            return False
        log.debug("Restoring position to offset %s", offset)
        scroll_to(offset)
        return True
