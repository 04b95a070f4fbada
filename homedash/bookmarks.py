"""
bookmarks.py - bookmark grid store and browser bookmark-export import

The store keeps an ordered list of Bookmark records (order is the grid
position). parse_bookmark_document reads the standard "Netscape bookmark
file" HTML that browsers export and returns the usable links without
touching any store.
"""

from html.parser import HTMLParser
from typing import List, Optional, Tuple, Iterable
import logging

from homedash.errors import IndexOutOfRange
from homedash.models import Bookmark, Snapshot

logger = logging.getLogger(__name__)

# the grid stops offering the "+" tile at this size
MAX_BOOKMARKS = 20


def grid_layout(count: int) -> Tuple[int, int]:
    """Return (columns, tile height in px) for a grid holding `count` bookmarks."""
    if count <= 4:
        return 2, 220
    if count <= 9:
        return 3, 180
    if count <= 16:
        return 4, 140
    return 5, 120


class BookmarkStore:
    def __init__(self, state: Optional[Snapshot] = None):
        self._state = state if state is not None else Snapshot()

    @property
    def items(self) -> List[Bookmark]:
        return self._state.bookmarks

    def __len__(self) -> int:
        return len(self._state.bookmarks)

    def _check_index(self, index: int):
        size = len(self._state.bookmarks)
        if not isinstance(index, int) or isinstance(index, bool) or index < 0 or index >= size:
            raise IndexOutOfRange("bookmark", index, size)

    def add(self, name: str, url: str) -> bool:
        """Append a bookmark. Both name and url are required; returns False otherwise."""
        name = (name or "").strip()
        url = (url or "").strip()
        if not name or not url:
            return False
        self._state.bookmarks.append(Bookmark(name=name, url=url))
        return True

    def remove(self, index: int) -> Bookmark:
        self._check_index(index)
        return self._state.bookmarks.pop(index)

    def swap(self, i: int, j: int):
        """Exchange two grid positions (drag-and-drop reorder)."""
        self._check_index(i)
        self._check_index(j)
        items = self._state.bookmarks
        items[i], items[j] = items[j], items[i]

    def extend(self, bookmarks: Iterable[Bookmark]) -> int:
        added = list(bookmarks)
        self._state.bookmarks.extend(added)
        return len(added)


class _AnchorCollector(HTMLParser):
    """Collect (href, text) for every <a> element; everything else is ignored."""

    def __init__(self):
        super().__init__(convert_charrefs=True)
        self.links: List[Tuple[str, str]] = []
        self._href: Optional[str] = None
        self._text: List[str] = []
        self._depth = 0

    def handle_starttag(self, tag, attrs):
        if tag != "a":
            return
        if self._depth:
            # nested anchor: close the open one first, like browsers do
            self._finish()
        self._href = dict(attrs).get("href")
        self._text = []
        self._depth = 1

    def handle_endtag(self, tag):
        if tag == "a" and self._depth:
            self._finish()

    def handle_data(self, data):
        if self._depth:
            self._text.append(data)

    def close(self):
        super().close()
        if self._depth:
            self._finish()

    def _finish(self):
        if self._href is not None:
            self.links.append((self._href, "".join(self._text)))
        self._href = None
        self._text = []
        self._depth = 0


def parse_bookmark_document(markup: str) -> List[Bookmark]:
    """
    Extract bookmarks from an exported bookmarks.html.

    Keeps every anchor with non-empty visible text and an href starting with
    "http". Duplicates are kept. An empty list means nothing usable was found.
    """
    parser = _AnchorCollector()
    parser.feed(markup or "")
    parser.close()
    out: List[Bookmark] = []
    for href, text in parser.links:
        name = text.strip()
        url = (href or "").strip()
        if name and url.startswith("http"):
            out.append(Bookmark(name=name, url=url))
    logger.info("Parsed bookmark document: %d anchors, %d usable", len(parser.links), len(out))
    return out
