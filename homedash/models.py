"""
models.py - Data model definitions

Transaction, Bookmark and Snapshot dataclasses shared by the stores, the
metrics functions and the persistence layer. Records are serialized to/from
plain dicts using the field names of the saved JSON document
(userName, wallpaper, bankBalance, bookmarks, expenses, theme).

Amount and date parsing live here too so every reader applies the same
"parse or treat as 0" rule.
"""

from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional, Union
import datetime
import math
import re

INCOME = "income"
EXPENSE = "expense"
KINDS = (INCOME, EXPENSE)

DARK = "dark"
LIGHT = "light"
THEMES = (DARK, LIGHT)

DEFAULT_USER_NAME = "User"

# leading decimal number, e.g. "12.5" in "12.5kg"
_DECIMAL_PREFIX = re.compile(r"^\s*[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")


def parse_amount(value: Any) -> float:
    """
    Read an amount the way every aggregation does: text is parsed as a
    leading decimal, other values go through float(). Anything unreadable
    (including NaN, infinities, oversized integers and booleans) counts as 0.
    """
    if isinstance(value, bool) or value is None:
        return 0.0
    if isinstance(value, str):
        m = _DECIMAL_PREFIX.match(value)
        if not m:
            return 0.0
        value = m.group(0)
    try:
        f = float(value)
    except (TypeError, ValueError, OverflowError):
        return 0.0
    return f if math.isfinite(f) else 0.0


def parse_date(value: Any) -> Optional[datetime.date]:
    """Parse an ISO "YYYY-MM-DD" value; None when missing or invalid."""
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    text = str(value or "").strip()
    if not text:
        return None
    try:
        return datetime.date.fromisoformat(text)
    except ValueError:
        return None


def today_iso() -> str:
    return datetime.date.today().isoformat()


@dataclass
class Transaction:
    """
    A single income or expense entry.

    Fields:
      - date: ISO date string "YYYY-MM-DD" (may be invalid when loaded from disk)
      - description: free text
      - category: free text (e.g. Food); empty categories are left out of
        category totals
      - kind: "income" or "expense" (saved as "type")
      - amount: non-negative amount; a malformed value read from disk is kept
        as-is and treated as 0 by readers
    """
    date: str = field(default_factory=today_iso)
    description: str = ""
    category: str = ""
    kind: str = EXPENSE
    amount: Union[float, str] = 0.0

    @property
    def value(self) -> float:
        """Amount as read by every aggregation."""
        return parse_amount(self.amount)

    @property
    def is_income(self) -> bool:
        return self.kind == INCOME

    @property
    def signed_value(self) -> float:
        """Contribution to a balance: income adds, anything else subtracts."""
        return self.value if self.is_income else -self.value

    def to_dict(self) -> Dict:
        return {
            "date": self.date,
            "description": self.description,
            "category": self.category,
            "type": self.kind,
            "amount": self.amount,
        }

    @staticmethod
    def from_dict(d: Dict) -> "Transaction":
        return Transaction(
            date=str(d.get("date", "") or ""),
            description=str(d.get("description", "") or ""),
            category=str(d.get("category", "") or ""),
            kind=str(d.get("type", d.get("kind", EXPENSE)) or EXPENSE),
            amount=d.get("amount", 0),
        )


@dataclass
class Bookmark:
    name: str
    url: str

    def to_dict(self) -> Dict:
        return {"name": self.name, "url": self.url}

    @staticmethod
    def from_dict(d: Dict) -> "Bookmark":
        return Bookmark(name=str(d.get("name", "") or ""), url=str(d.get("url", "") or ""))


@dataclass
class Snapshot:
    """
    Complete application state and the unit of persistence.

    The ledger and bookmark lists are plain data here; the stores in
    homedash.ledger and homedash.bookmarks wrap them with validated
    mutations.
    """
    user_name: str = DEFAULT_USER_NAME
    wallpaper: str = ""
    base_balance: float = 0.0
    bookmarks: List[Bookmark] = field(default_factory=list)
    transactions: List[Transaction] = field(default_factory=list)
    theme: str = DARK

    def to_dict(self) -> Dict:
        return {
            "userName": self.user_name,
            "wallpaper": self.wallpaper,
            "bankBalance": self.base_balance,
            "bookmarks": [b.to_dict() for b in self.bookmarks],
            "expenses": [t.to_dict() for t in self.transactions],
            "theme": self.theme,
        }

    @staticmethod
    def from_dict(d: Dict) -> "Snapshot":
        theme = d.get("theme", DARK)
        user_name = d.get("userName")
        return Snapshot(
            user_name=DEFAULT_USER_NAME if user_name is None else str(user_name),
            wallpaper=str(d.get("wallpaper", "") or ""),
            base_balance=parse_amount(d.get("bankBalance", 0)),
            bookmarks=[Bookmark.from_dict(b) for b in d.get("bookmarks", []) or []],
            transactions=[Transaction.from_dict(t) for t in d.get("expenses", []) or []],
            theme=theme if theme in THEMES else DARK,
        )


def sample_snapshot() -> Snapshot:
    """Starter data shown on first launch when nothing has been saved yet."""
    rows = [
        ("2025-09-01", "Salary", "Income", INCOME, 50000),
        ("2025-09-05", "Groceries", "Food", EXPENSE, 3000),
        ("2025-09-10", "Electricity Bill", "Utilities", EXPENSE, 1200),
        ("2025-09-15", "Freelance", "Income", INCOME, 10000),
        ("2025-09-20", "Restaurant", "Food", EXPENSE, 1500),
        ("2025-10-01", "Salary", "Income", INCOME, 50000),
        ("2025-10-03", "Rent", "Housing", EXPENSE, 15000),
    ]
    return Snapshot(
        base_balance=20000.0,
        transactions=[
            Transaction(date=d, description=desc, category=cat, kind=kind, amount=float(amt))
            for d, desc, cat, kind, amt in rows
        ],
    )
