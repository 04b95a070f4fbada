"""
session.py - application state owner

Responsibilities:
 - own the single live Snapshot for a dashboard session
 - expose every mutation the UI performs (transactions, bookmarks,
   settings, theme, base balance) through validated stores
 - export/import the snapshot as a JSON document; a load replaces the whole
   snapshot at once and leaves it untouched on failure
 - import bookmarks from a browser bookmark export
 - persist/restore to Google Sheets (when configured) or the local JSON file
"""

from typing import Optional, Tuple, Any, List
import logging

from homedash import storage
from homedash.bookmarks import BookmarkStore, parse_bookmark_document
from homedash.errors import LoadError, NoBookmarksFound
from homedash.ledger import Ledger, Change
from homedash.models import Snapshot, Bookmark, Transaction, DARK, LIGHT, DEFAULT_USER_NAME, sample_snapshot

# ensure a logger is available
logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)


class DashboardSession:
    """
    Single owner of the dashboard state. The UI keeps one DashboardSession
    in st.session_state and always reads through `snapshot`, `ledger` and
    `bookmarks` rather than holding copies.
    """

    def __init__(self, local_backend: Optional[storage.LocalJsonBackend] = None,
                 sheets_backend: Optional[storage.GoogleSheetsBackend] = None,
                 restore: bool = True):
        self._local = local_backend or storage.LocalJsonBackend()
        self._gs_backend = sheets_backend if sheets_backend is not None else storage.GoogleSheetsBackend()
        self._replace(Snapshot())
        if restore:
            self.restore()

    def _replace(self, snapshot: Snapshot):
        # stores are handles on the snapshot, so they are rebuilt with it
        self.snapshot = snapshot
        self.ledger = Ledger(snapshot)
        self.bookmarks = BookmarkStore(snapshot)

    def uses_google_sheets(self) -> bool:
        """True when the durable Google Sheets backend is active."""
        return bool(self._gs_backend and self._gs_backend.available)

    def storage_status(self) -> Tuple[str, str]:
        """Return current storage backend and a short diagnostic message for the UI."""
        if self.uses_google_sheets():
            return "google_sheets", "Persistent storage active (Google Sheets)."
        reason = getattr(self._gs_backend, "reason", "") or "Google Sheets not configured"
        return "local_json", f"Using local file fallback: {reason}."

    # -----------------------
    # Transactions
    # -----------------------
    def add_transaction(self) -> Transaction:
        return self.ledger.append()

    def update_transaction(self, index: int, change: Change) -> Transaction:
        return self.ledger.update(index, change)

    def delete_transaction(self, index: int) -> Transaction:
        removed = self.ledger.remove(index)
        logger.info("Deleted transaction #%d (%s, %s)", index, removed.category, removed.amount)
        return removed

    def set_base_balance(self, value: Any) -> bool:
        return self.ledger.set_base_balance(value)

    # -----------------------
    # Bookmarks
    # -----------------------
    def add_bookmark(self, name: str, url: str) -> bool:
        return self.bookmarks.add(name, url)

    def delete_bookmark(self, index: int) -> Bookmark:
        return self.bookmarks.remove(index)

    def swap_bookmarks(self, i: int, j: int):
        self.bookmarks.swap(i, j)

    def import_bookmarks(self, markup: str) -> int:
        """
        Append every usable link from a bookmark export. Raises
        NoBookmarksFound when the document holds none; returns the count added.
        """
        found: List[Bookmark] = parse_bookmark_document(markup)
        if not found:
            raise NoBookmarksFound("No valid bookmarks found in the file.")
        added = self.bookmarks.extend(found)
        logger.info("Imported %d bookmarks", added)
        return added

    # -----------------------
    # Settings
    # -----------------------
    def save_settings(self, name: str, wallpaper: str):
        self.snapshot.user_name = (name or "").strip() or DEFAULT_USER_NAME
        self.snapshot.wallpaper = (wallpaper or "").strip()

    def toggle_theme(self) -> str:
        self.snapshot.theme = LIGHT if self.snapshot.theme == DARK else DARK
        return self.snapshot.theme

    # -----------------------
    # Import / export
    # -----------------------
    def export_bytes(self) -> bytes:
        return storage.dumps(self.snapshot)

    def load_bytes(self, data) -> Snapshot:
        """
        Replace the whole snapshot with a saved document. On LoadError the
        current snapshot stays as it was.
        """
        snapshot = storage.loads(data)
        self._replace(snapshot)
        logger.info("Loaded snapshot (expenses=%d, bookmarks=%d)",
                    len(snapshot.transactions), len(snapshot.bookmarks))
        return snapshot

    def reset(self, sample: bool = False):
        self._replace(sample_snapshot() if sample else Snapshot())

    # -----------------------
    # Persistence
    # -----------------------
    def persist(self):
        """Save to Google Sheets when configured, otherwise the local JSON file."""
        data = self.snapshot.to_dict()
        try:
            if self.uses_google_sheets():
                logger.info("Saving data to Google Sheets (expenses=%d)", len(self.snapshot.transactions))
                if self._gs_backend.save_state(data):
                    return
                logger.warning("Google Sheets save failed, falling back to local JSON")
        except Exception:
            logger.exception("Error while attempting to save to Google Sheets; falling back to local JSON")
        self._local.write_state(data)

    def restore(self) -> bool:
        """
        Load the stored snapshot (Google Sheets first, then the local file).
        Seeds the sample ledger when nothing has been stored yet. Returns True
        when stored data was found.
        """
        data = None
        try:
            if self.uses_google_sheets():
                logger.info("Loading data from Google Sheets")
                data = self._gs_backend.load_state() or None
        except Exception:
            logger.exception("Error loading from Google Sheets, falling back to local JSON")
            data = None

        if data is None:
            data = self._local.read_state()

        if data is None:
            logger.info("No stored data found, starting from sample data")
            self._replace(sample_snapshot())
            return False

        self._replace(storage.from_state(data))
        return True


def open_session(local_backend: Optional[storage.LocalJsonBackend] = None,
                 sheets_backend: Optional[storage.GoogleSheetsBackend] = None
                 ) -> Tuple[DashboardSession, Optional[LoadError]]:
    """
    Build a restored session. When the stored data cannot be read, the
    unreadable local file is moved aside and an empty session is returned
    together with the error, so the next save starts a new file.
    """
    local_backend = local_backend or storage.LocalJsonBackend()
    try:
        return DashboardSession(local_backend, sheets_backend), None
    except LoadError as exc:
        logger.error("Could not restore stored data: %s", exc)
        local_backend.set_aside()
        return DashboardSession(local_backend, sheets_backend, restore=False), exc
