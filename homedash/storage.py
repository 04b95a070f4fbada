"""
storage.py - snapshot persistence

Responsibilities:
 - encode/decode the whole snapshot as pretty-printed JSON (the file users
   download and upload from the Data page)
 - keep a local JSON copy of the snapshot, written atomically
 - optionally keep the snapshot in Google Sheets when GOOGLE_SHEET_ID and
   service account credentials are configured

Backends exchange plain dicts in the JSON document shape
(userName, wallpaper, bankBalance, bookmarks, expenses, theme).
"""

from typing import List, Dict, Any, Optional, Union
import ast
import json
import logging
import os
import shutil
import tempfile

import gspread
from google.oauth2.service_account import Credentials

from homedash.errors import LoadError
from homedash.models import Snapshot

logger = logging.getLogger(__name__)

# suggested file name for downloads
DEFAULT_EXPORT_NAME = "home-expense-data.json"

_default_data_file = os.path.join(os.path.dirname(__file__), "..", "data", "homedash_data.json")


def data_file_path() -> str:
    """Local snapshot path: HOMEDASH_DATA_FILE when set, else data/homedash_data.json."""
    return (os.getenv("HOMEDASH_DATA_FILE") or "").strip() or _default_data_file


def dumps(snapshot: Snapshot) -> bytes:
    """Serialize the whole snapshot as pretty-printed UTF-8 JSON."""
    return json.dumps(snapshot.to_dict(), indent=2, ensure_ascii=False).encode("utf-8")


def check_shape(data: Any):
    if not isinstance(data, dict):
        raise LoadError(f"Error loading file: expected a JSON object, got {type(data).__name__}")
    for key in ("bookmarks", "expenses"):
        items = data.get(key)
        if items is None:
            continue
        if not isinstance(items, list) or not all(isinstance(i, dict) for i in items):
            raise LoadError(f"Error loading file: '{key}' must be a list of objects")


def loads(data: Union[bytes, str]) -> Snapshot:
    """
    Parse a saved snapshot. Raises LoadError with the parse message when the
    document is not valid JSON or is not shaped like a snapshot.
    """
    try:
        text = data.decode("utf-8-sig") if isinstance(data, (bytes, bytearray)) else data
        raw = json.loads(text)
    except (UnicodeDecodeError, ValueError) as exc:
        raise LoadError(f"Error loading file: {exc}") from exc
    return from_state(raw)


def from_state(data: Any) -> Snapshot:
    """Build a Snapshot from an already-decoded document, checking its shape."""
    check_shape(data)
    return Snapshot.from_dict(data)


save = dumps
load = loads


class LocalJsonBackend:
    """Snapshot kept in a single JSON file on disk."""

    def __init__(self, path: Optional[str] = None):
        self.path = os.path.abspath(path or data_file_path())

    def read_state(self) -> Optional[Dict[str, Any]]:
        if not os.path.exists(self.path):
            return None
        with open(self.path, "r", encoding="utf-8") as f:
            try:
                return json.load(f)
            except ValueError as exc:
                raise LoadError(f"Error loading {self.path}: {exc}") from exc

    def set_aside(self) -> Optional[str]:
        """
        Move an unreadable data file to `<path>.corrupt` (numbered when that
        name is taken) so later saves cannot overwrite it. Returns the new
        path, or None when there was no file.
        """
        if not os.path.exists(self.path):
            return None
        target = f"{self.path}.corrupt"
        n = 1
        while os.path.exists(target):
            target = f"{self.path}.corrupt{n}"
            n += 1
        os.replace(self.path, target)
        logger.warning("Moved unreadable data file to %s", target)
        return target

    def write_state(self, data: Dict[str, Any]):
        """
        Persist as JSON atomically: write a temp file next to the target,
        then move it into place.
        """
        dirn = os.path.dirname(self.path)
        os.makedirs(dirn, exist_ok=True)
        logger.info("Saving data to %s (expenses=%d)", self.path, len(data.get("expenses", [])))
        fd, tmp_path = tempfile.mkstemp(prefix="tmp_homedash_", dir=dirn, text=True)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
                f.flush()
                os.fsync(f.fileno())
            shutil.move(tmp_path, self.path)
        except Exception:
            logger.exception("Failed to save data file")
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise


class GoogleSheetsBackend:
    """
    Google Sheets persistence backend.

    Data layout:
      - worksheet "expenses": one row per transaction
      - worksheet "bookmarks": one row per bookmark, in grid order
      - worksheet "meta": key/value settings (userName, wallpaper, bankBalance, theme)
    """

    EXPENSES_SHEET_NAME = "expenses"
    BOOKMARKS_SHEET_NAME = "bookmarks"
    META_SHEET_NAME = "meta"
    EXPENSE_HEADERS = ["date", "description", "category", "type", "amount"]
    BOOKMARK_HEADERS = ["name", "url"]
    META_HEADERS = ["key", "value"]
    META_KEYS = ("userName", "wallpaper", "bankBalance", "theme")
    SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]

    def __init__(self, spreadsheet=None):
        self.available = False
        self.reason = ""
        self.sheet_id = (os.getenv("GOOGLE_SHEET_ID") or "").strip()
        self._spreadsheet = spreadsheet
        self._worksheets: Dict[str, Any] = {}

        if self._spreadsheet is None and not self.sheet_id:
            self.reason = "GOOGLE_SHEET_ID is not set"
            return

        try:
            if self._spreadsheet is None:
                client = gspread.authorize(self._build_credentials())
                self._spreadsheet = client.open_by_key(self.sheet_id)
            for title, headers in self._layout():
                self._worksheets[title] = self._get_or_create_worksheet(
                    title, rows=1000 if title != self.META_SHEET_NAME else 50, cols=max(4, len(headers))
                )
            self._ensure_headers()
            self.available = True
        except Exception as exc:
            self.available = False
            self.reason = f"Google Sheets init failed ({exc.__class__.__name__})"
            logger.warning("Google Sheets backend unavailable: %s", self.reason)

    def _layout(self):
        return [
            (self.EXPENSES_SHEET_NAME, self.EXPENSE_HEADERS),
            (self.BOOKMARKS_SHEET_NAME, self.BOOKMARK_HEADERS),
            (self.META_SHEET_NAME, self.META_HEADERS),
        ]

    def _build_credentials(self):
        service_account_json = (os.getenv("GOOGLE_SERVICE_ACCOUNT_JSON") or "").strip()
        service_account_file = (os.getenv("GOOGLE_SERVICE_ACCOUNT_FILE") or "").strip()

        if service_account_json:
            try:
                info = json.loads(service_account_json)
            except ValueError:
                # tolerate Python-dict style strings often used by mistake in env vars
                info = ast.literal_eval(service_account_json)
            if not isinstance(info, dict):
                raise ValueError("GOOGLE_SERVICE_ACCOUNT_JSON must decode to an object")
            return Credentials.from_service_account_info(info, scopes=self.SCOPES)

        if service_account_file:
            return Credentials.from_service_account_file(service_account_file, scopes=self.SCOPES)

        # Fallback to application default credentials if available.
        import google.auth
        creds, _ = google.auth.default(scopes=self.SCOPES)
        return creds

    def _get_or_create_worksheet(self, title: str, rows: int, cols: int):
        try:
            return self._spreadsheet.worksheet(title)
        except Exception:
            return self._spreadsheet.add_worksheet(title=title, rows=rows, cols=cols)

    @staticmethod
    def _ensure_sheet_size(ws, min_rows: int, min_cols: int):
        new_rows = max(ws.row_count, min_rows)
        new_cols = max(ws.col_count, min_cols)
        if new_rows != ws.row_count or new_cols != ws.col_count:
            ws.resize(rows=new_rows, cols=new_cols)

    def _ensure_headers(self):
        for title, headers in self._layout():
            ws = self._worksheets[title]
            first = ws.row_values(1) or []
            if [x.strip() for x in first] != headers:
                self._ensure_sheet_size(ws, 2, len(headers))
                ws.update(range_name="A1", values=[headers], value_input_option="RAW")

    def _replace_rows(self, title: str, rows: List[List[str]], width: int):
        ws = self._worksheets[title]
        self._ensure_sheet_size(ws, len(rows) + 10, width)
        # RAW keeps user content as plain values (not spreadsheet formulas).
        ws.clear()
        ws.update(range_name="A1", values=rows, value_input_option="RAW")

    @staticmethod
    def _cell_text(value: Any) -> str:
        return "" if value is None else str(value)

    @staticmethod
    def _cell_amount(value: Any) -> Any:
        text = str(value if value is not None else "").strip()
        try:
            return float(text)
        except ValueError:
            # malformed amounts are kept as text; readers treat them as 0
            return text

    def _records(self, title: str) -> List[Dict[str, str]]:
        values = self._worksheets[title].get_all_values() or []
        if not values:
            return []
        headers = [str(h).strip() for h in values[0]]
        out = []
        for row in values[1:]:
            if not any(str(c).strip() for c in row):
                continue
            out.append({h: (row[i] if i < len(row) else "") for i, h in enumerate(headers) if h})
        return out

    def save_state(self, data: Dict[str, Any]) -> bool:
        if not self.available:
            return False

        try:
            self._ensure_headers()
            expense_rows = [self.EXPENSE_HEADERS]
            for e in data.get("expenses", []) or []:
                expense_rows.append([self._cell_text(e.get(h)) for h in self.EXPENSE_HEADERS])
            bookmark_rows = [self.BOOKMARK_HEADERS]
            for b in data.get("bookmarks", []) or []:
                bookmark_rows.append([str(b.get("name", "") or ""), str(b.get("url", "") or "")])
            meta_rows = [self.META_HEADERS] + [[k, str(data.get(k, ""))] for k in self.META_KEYS]

            self._replace_rows(self.EXPENSES_SHEET_NAME, expense_rows, len(self.EXPENSE_HEADERS))
            self._replace_rows(self.BOOKMARKS_SHEET_NAME, bookmark_rows, len(self.BOOKMARK_HEADERS))
            self._replace_rows(self.META_SHEET_NAME, meta_rows, len(self.META_HEADERS))
            return True
        except Exception:
            logger.exception("Failed to save snapshot to Google Sheets")
            return False

    def load_state(self) -> Dict[str, Any]:
        if not self.available:
            return {}

        try:
            self._ensure_headers()
            expenses = []
            for r in self._records(self.EXPENSES_SHEET_NAME):
                expenses.append({
                    "date": r.get("date", ""),
                    "description": r.get("description", ""),
                    "category": r.get("category", ""),
                    "type": r.get("type", "") or "expense",
                    "amount": self._cell_amount(r.get("amount", "")),
                })
            bookmarks = [
                {"name": r.get("name", ""), "url": r.get("url", "")}
                for r in self._records(self.BOOKMARKS_SHEET_NAME)
            ]
            meta = {r.get("key", ""): r.get("value", "") for r in self._records(self.META_SHEET_NAME)}
            if not expenses and not bookmarks and not meta:
                return {}
            return {
                "userName": meta.get("userName", "User"),
                "wallpaper": meta.get("wallpaper", ""),
                "bankBalance": self._cell_amount(meta.get("bankBalance", 0)),
                "bookmarks": bookmarks,
                "expenses": expenses,
                "theme": meta.get("theme", "dark") or "dark",
            }
        except Exception:
            logger.exception("Failed to load snapshot from Google Sheets")
            return {}
