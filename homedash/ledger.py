"""
ledger.py - the ledger store

Responsibilities:
 - hold a reference to the live snapshot and mutate its transaction list
 - apply typed field changes (SetDate, SetDescription, SetCategory, SetKind,
   SetAmount) to a transaction by index
 - validate every index before mutating; out-of-range calls raise
   IndexOutOfRange and leave the list untouched
 - update the base bank balance, ignoring values that are not numbers

The store never caches anything derived; see homedash.metrics.
"""

from dataclasses import dataclass
from typing import List, Any, Optional, Union
import datetime
import logging
import math

from homedash.errors import IndexOutOfRange
from homedash.models import Transaction, Snapshot, KINDS, EXPENSE, today_iso

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SetDate:
    value: Union[str, datetime.date]


@dataclass(frozen=True)
class SetDescription:
    value: str


@dataclass(frozen=True)
class SetCategory:
    value: str


@dataclass(frozen=True)
class SetKind:
    value: str

    def __post_init__(self):
        if self.value not in KINDS:
            raise ValueError(f"kind must be one of {KINDS}, got {self.value!r}")


@dataclass(frozen=True)
class SetAmount:
    # callers coerce before building the change; readers coerce again
    value: Union[float, str]


Change = Union[SetDate, SetDescription, SetCategory, SetKind, SetAmount]

_FIELD_CHANGES = {
    "date": SetDate,
    "description": SetDescription,
    "category": SetCategory,
    "type": SetKind,
    "kind": SetKind,
    "amount": SetAmount,
}


def field_change(field: str, value: Any) -> Change:
    """
    Build the change for a named column, as produced by the expense table
    editor. Raises ValueError for unknown fields.
    """
    try:
        cls = _FIELD_CHANGES[field]
    except KeyError:
        raise ValueError(f"unknown transaction field {field!r}") from None
    return cls(value)


class Ledger:
    """
    Transaction list plus base balance, read through to a Snapshot.

    The session owns the snapshot; a Ledger is a thin handle on it, so a
    store created before a reload must not be reused after it.
    """

    def __init__(self, state: Optional[Snapshot] = None):
        self._state = state if state is not None else Snapshot()

    @property
    def base_balance(self) -> float:
        return self._state.base_balance

    @property
    def transactions(self) -> List[Transaction]:
        return self._state.transactions

    def __len__(self) -> int:
        return len(self._state.transactions)

    def __getitem__(self, index: int) -> Transaction:
        self._check_index(index)
        return self._state.transactions[index]

    def _check_index(self, index: int):
        size = len(self._state.transactions)
        if not isinstance(index, int) or isinstance(index, bool) or index < 0 or index >= size:
            raise IndexOutOfRange("transaction", index, size)

    def append(self) -> Transaction:
        """Add a transaction dated today with empty text, kind expense and amount 0."""
        tx = Transaction(date=today_iso(), description="", category="", kind=EXPENSE, amount=0.0)
        self._state.transactions.append(tx)
        return tx

    def update(self, index: int, change: Change) -> Transaction:
        """Apply one typed change to the transaction at index."""
        self._check_index(index)
        tx = self._state.transactions[index]
        if isinstance(change, SetDate):
            value = change.value
            tx.date = value.isoformat() if isinstance(value, datetime.date) else str(value)
        elif isinstance(change, SetDescription):
            tx.description = str(change.value)
        elif isinstance(change, SetCategory):
            tx.category = str(change.value)
        elif isinstance(change, SetKind):
            tx.kind = change.value
        elif isinstance(change, SetAmount):
            tx.amount = change.value
        else:
            raise TypeError(f"unsupported transaction change: {change!r}")
        return tx

    def remove(self, index: int) -> Transaction:
        """Delete by index; later transactions shift down by one."""
        self._check_index(index)
        return self._state.transactions.pop(index)

    def set_base_balance(self, value: Any) -> bool:
        """
        Replace the base balance when value is a finite number or numeric
        text. Anything else is ignored. Returns True when applied.
        """
        if isinstance(value, bool):
            number = None
        else:
            try:
                number = float(value.strip() if isinstance(value, str) else value)
            except (TypeError, ValueError, OverflowError):
                number = None
        if number is None or not math.isfinite(number):
            logger.debug("Ignoring non-numeric base balance %r", value)
            return False
        self._state.base_balance = number
        return True
