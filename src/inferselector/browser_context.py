from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterator

from bs4 import BeautifulSoup
from playwright.sync_api import Error as PlaywrightError

from . import dom
from .errors import InvalidSelectorError

if TYPE_CHECKING:
    from playwright.sync_api import Frame, Page

LOGGER = logging.getLogger("inferselector.browser")


def _is_selector_error(exc: Exception) -> bool:
    message = str(exc).lower()
    return "selector" in message and ("valid" in message or "unexpected" in message or "syntax" in message)


class PlaywrightFrameContext:
    """Availability context backed by a live Playwright frame."""

    def __init__(self, frame: Frame) -> None:
        self.frame = frame

    @property
    def url(self) -> str:
        return self.frame.url

    @property
    def is_top_frame(self) -> bool:
        return self.frame.parent_frame is None

    def count_matches(self, selector: str) -> int:
        try:
            return len(self.frame.query_selector_all(f"css={selector}"))
        except PlaywrightError as exc:
            if _is_selector_error(exc):
                raise InvalidSelectorError(selector, str(exc).splitlines()[0]) from exc
            raise


def frame_contexts(page: Page) -> Iterator[PlaywrightFrameContext]:
    for frame in page.frames:
        yield PlaywrightFrameContext(frame)


def snapshot_frame(frame: Frame | Page) -> BeautifulSoup:
    """Parse the current markup of a frame or page for offline inference."""
    html = frame.content()
    LOGGER.info("Captured DOM snapshot: url=%s chars=%s", frame.url, len(html))
    return dom.parse_document(html)
