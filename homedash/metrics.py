"""
metrics.py - derived figures for the summary cards, the expense table and the charts

Every function takes the ledger explicitly (anything exposing
`base_balance` and `transactions`) and recomputes from scratch. Amounts are
always read through models.parse_amount, so malformed values count as 0.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Dict
import datetime

from homedash.models import EXPENSE, parse_date

INVALID_DATE = "Invalid Date"

MONTH_NAMES = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]


@dataclass(frozen=True)
class Totals:
    income: float
    expense: float
    balance: float


@dataclass(frozen=True)
class Summary:
    income: float
    expense: float
    balance: float
    total_balance: float


@dataclass
class MonthlyAggregates:
    labels: List[str] = field(default_factory=list)  # "YYYY-MM" keys, ascending
    income: List[float] = field(default_factory=list)
    expense: List[float] = field(default_factory=list)

    @property
    def display_labels(self) -> List[str]:
        """Chart axis labels in "MM/YYYY" form."""
        return [k if k == INVALID_DATE else f"{k[5:]}/{k[:4]}" for k in self.labels]


@dataclass
class CategoryAggregates:
    labels: List[str] = field(default_factory=list)
    values: List[float] = field(default_factory=list)


@dataclass
class BalanceTrend:
    labels: List[str] = field(default_factory=list)
    values: List[float] = field(default_factory=list)


def _split_totals(transactions):
    income = expense = 0.0
    for t in transactions:
        if t.is_income:
            income += t.value
        else:
            expense += t.value
    return income, expense


def totals(ledger) -> Totals:
    income, expense = _split_totals(ledger.transactions)
    return Totals(income=income, expense=expense, balance=income - expense)


def summary(ledger) -> Summary:
    income, expense = _split_totals(ledger.transactions)
    return Summary(
        income=income,
        expense=expense,
        balance=income - expense,
        total_balance=ledger.base_balance + income - expense,
    )


def running_balance(ledger, index: int) -> float:
    """
    Balance after the transaction at `index`, walking the ledger in stored
    order (not date order) from the base balance.
    """
    balance = ledger.base_balance
    for t in ledger.transactions[: max(index + 1, 0)]:
        balance += t.signed_value
    return balance


def running_balances(ledger) -> List[float]:
    """Running balance for every row of the expense table, in one pass."""
    out = []
    balance = ledger.base_balance
    for t in ledger.transactions:
        balance += t.signed_value
        out.append(balance)
    return out


def _month_key(date_value) -> str:
    d = parse_date(date_value)
    if d is None:
        return INVALID_DATE
    return f"{d.year:04d}-{d.month:02d}"


def monthly_aggregates(ledger) -> MonthlyAggregates:
    """
    Income and expense per calendar month.

    Labels are "YYYY-MM" keys in ascending order; "Invalid Date" collects
    transactions whose date cannot be parsed and sorts last.
    """
    months: Dict[str, List[float]] = {}
    for t in ledger.transactions:
        bucket = months.setdefault(_month_key(t.date), [0.0, 0.0])
        if t.is_income:
            bucket[0] += t.value
        else:
            bucket[1] += t.value
    keys = sorted(months, key=lambda k: (k == INVALID_DATE, k))
    return MonthlyAggregates(
        labels=keys,
        income=[months[k][0] for k in keys],
        expense=[months[k][1] for k in keys],
    )


def category_aggregates(ledger) -> CategoryAggregates:
    """Expense totals per non-empty category, in first-seen order."""
    categories: Dict[str, float] = {}
    for t in ledger.transactions:
        if t.kind == EXPENSE and t.category:
            categories[t.category] = categories.get(t.category, 0.0) + t.value
    return CategoryAggregates(labels=list(categories.keys()), values=list(categories.values()))


def _date_sort_key(t):
    d = parse_date(t.date)
    # undated rows go after dated ones
    return (d is None, d or datetime.date.min)


def balance_trend(ledger) -> BalanceTrend:
    """
    One (date, balance) point per transaction, walking a date-sorted copy
    of the ledger. sorted() is stable, so same-day rows keep their order.
    """
    trend = BalanceTrend()
    balance = ledger.base_balance
    for t in sorted(ledger.transactions, key=_date_sort_key):
        balance += t.signed_value
        trend.labels.append(t.date)
        trend.values.append(balance)
    return trend


def filter_mask(
    ledger,
    month: Optional[int] = None,
    year: Optional[int] = None,
    search: Optional[str] = None,
) -> List[bool]:
    """
    Visibility flag per transaction for the month/year/search filters.
    Missing filters match everything; search is a case-insensitive substring
    test against description or category.
    """
    needle = (search or "").lower()
    out = []
    for t in ledger.transactions:
        d = parse_date(t.date)
        match_month = not month or (d is not None and d.month == int(month))
        match_year = not year or (d is not None and d.year == int(year))
        match_search = (
            not needle
            or needle in (t.description or "").lower()
            or needle in (t.category or "").lower()
        )
        out.append(match_month and match_year and match_search)
    return out


def available_years(ledger) -> List[int]:
    """Distinct years present in valid transaction dates, ascending."""
    years = set()
    for t in ledger.transactions:
        d = parse_date(t.date)
        if d is not None:
            years.add(d.year)
    return sorted(years)
