"""Exceptions raised by the stores, the persistence layer and the session."""


class HomeDashError(Exception):
    pass


class IndexOutOfRange(HomeDashError, IndexError):
    """A transaction or bookmark index outside the current list."""

    def __init__(self, what: str, index: int, size: int):
        self.what = what
        self.index = index
        self.size = size
        super().__init__(f"{what} index {index} out of range (size {size})")


class LoadError(HomeDashError):
    """A saved snapshot could not be parsed. The current state is left unchanged."""


class NoBookmarksFound(HomeDashError):
    """A bookmark export parsed fine but held no usable http(s) links."""
