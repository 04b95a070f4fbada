import pytest

from homedash.bookmarks import BookmarkStore, parse_bookmark_document, grid_layout
from homedash.errors import IndexOutOfRange
from homedash.models import Bookmark

EXPORT = """<!DOCTYPE NETSCAPE-Bookmark-file-1>
<META HTTP-EQUIV="Content-Type" CONTENT="text/html; charset=UTF-8">
<TITLE>Bookmarks</TITLE>
<H1>Bookmarks</H1>
<DL><p>
    <DT><H3 ADD_DATE="1700000000">Bookmarks bar</H3>
    <DL><p>
        <DT><A HREF="https://example.com/" ADD_DATE="1700000001">Example</A>
        <DT><A HREF="http://news.ycombinator.com">  Hacker News  </A>
        <DT><A HREF="ftp://files.example.com">FTP mirror</A>
        <DT><A HREF="https://empty.example.com"></A>
        <DT><A HREF="javascript:void(0)">Bookmarklet</A>
        <DT><A NAME="anchor">No href</A>
        <DT><A HREF="https://cartoons.example.com">Tom &amp; Jerry</A>
        <DT><A HREF="https://example.com/" ADD_DATE="1700000002">Example</A>
    </DL><p>
</DL><p>
"""


def _store(*pairs):
    store = BookmarkStore()
    for name, url in pairs:
        store.add(name, url)
    return store


def test_add_requires_name_and_url():
    store = BookmarkStore()
    assert store.add("", "http://x.com") is False
    assert store.add("X", "") is False
    assert len(store) == 0
    assert store.add("X", "http://x.com") is True
    assert store.items == [Bookmark("X", "http://x.com")]


def test_remove():
    store = _store(("a", "http://a"), ("b", "http://b"), ("c", "http://c"))
    removed = store.remove(1)
    assert removed.name == "b"
    assert [b.name for b in store.items] == ["a", "c"]
    with pytest.raises(IndexOutOfRange):
        store.remove(2)


def test_swap():
    store = _store(("a", "http://a"), ("b", "http://b"), ("c", "http://c"))
    store.swap(0, 2)
    assert [b.name for b in store.items] == ["c", "b", "a"]
    store.swap(1, 1)
    assert [b.name for b in store.items] == ["c", "b", "a"]


def test_swap_rejects_bad_indices():
    store = _store(("a", "http://a"), ("b", "http://b"))
    with pytest.raises(IndexOutOfRange):
        store.swap(0, 5)
    with pytest.raises(IndexOutOfRange):
        store.swap(-1, 0)
    assert [b.name for b in store.items] == ["a", "b"]


def test_parse_bookmark_document():
    found = parse_bookmark_document(EXPORT)
    assert found == [
        Bookmark("Example", "https://example.com/"),
        Bookmark("Hacker News", "http://news.ycombinator.com"),
        Bookmark("Tom & Jerry", "https://cartoons.example.com"),
        Bookmark("Example", "https://example.com/"),
    ]


def test_parse_bookmark_document_does_not_touch_store():
    store = _store(("a", "http://a"))
    parse_bookmark_document(EXPORT)
    assert len(store) == 1


def test_parse_document_without_links():
    assert parse_bookmark_document("<html><body><p>nothing here</p></body></html>") == []
    assert parse_bookmark_document("") == []


def test_unclosed_anchor_is_kept():
    assert parse_bookmark_document('<a href="https://a.example">A') == [Bookmark("A", "https://a.example")]


def test_grid_layout():
    assert grid_layout(0) == (2, 220)
    assert grid_layout(4) == (2, 220)
    assert grid_layout(5) == (3, 180)
    assert grid_layout(16) == (4, 140)
    assert grid_layout(17) == (5, 120)
