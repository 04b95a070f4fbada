from homedash import metrics
from homedash.ledger import Ledger
from homedash.models import Snapshot, Transaction, INCOME, EXPENSE, sample_snapshot


def test_totals_example(ledger):
    t = metrics.totals(ledger)
    assert t.income == 60000
    assert t.expense == 5700
    assert t.balance == 54300
    assert t.balance == t.income - t.expense


def test_summary_total_balance(ledger):
    s = metrics.summary(ledger)
    assert s.total_balance == 74300
    assert s.total_balance == ledger.base_balance + s.income - s.expense


def test_totals_is_idempotent(ledger):
    assert metrics.totals(ledger) == metrics.totals(ledger)
    assert metrics.summary(ledger) == metrics.summary(ledger)


def test_malformed_amounts_count_as_zero():
    ledger = Ledger(Snapshot(transactions=[
        Transaction("2025-01-01", "a", "Food", EXPENSE, "abc"),
        Transaction("2025-01-02", "b", "Food", EXPENSE, "12.5"),
        Transaction("2025-01-03", "c", "", INCOME, None),
    ]))
    t = metrics.totals(ledger)
    assert t.income == 0
    assert t.expense == 12.5
    assert metrics.category_aggregates(ledger).values == [12.5]


def test_running_balance_stored_order(ledger):
    assert metrics.running_balance(ledger, 0) == 70000
    assert metrics.running_balance(ledger, 1) == 67000
    last = metrics.running_balance(ledger, len(ledger) - 1)
    assert last == metrics.totals(ledger).balance + ledger.base_balance
    assert metrics.running_balance(ledger, -1) == ledger.base_balance
    assert metrics.running_balances(ledger)[-1] == last


def test_running_balance_ignores_dates():
    ledger = Ledger(Snapshot(transactions=[
        Transaction("2025-09-10", "late", "", EXPENSE, 100.0),
        Transaction("2025-09-01", "early", "", INCOME, 1000.0),
    ]))
    assert metrics.running_balance(ledger, 0) == -100
    assert metrics.running_balance(ledger, 1) == 900


def test_balance_trend_sorts_copy_by_date():
    ledger = Ledger(Snapshot(base_balance=0.0, transactions=[
        Transaction("2025-09-10", "late", "", EXPENSE, 100.0),
        Transaction("2025-09-01", "early", "", INCOME, 1000.0),
    ]))
    trend = metrics.balance_trend(ledger)
    assert trend.labels == ["2025-09-01", "2025-09-10"]
    assert trend.values == [1000, 900]
    # stored order untouched
    assert [t.description for t in ledger.transactions] == ["late", "early"]


def test_balance_trend_ties_keep_input_order():
    ledger = Ledger(Snapshot(transactions=[
        Transaction("2025-09-05", "a", "", INCOME, 10.0),
        Transaction("2025-09-05", "b", "", EXPENSE, 3.0),
        Transaction("2025-09-01", "c", "", INCOME, 1.0),
    ]))
    trend = metrics.balance_trend(ledger)
    assert trend.values == [1, 11, 8]


def test_balance_trend_length_and_final_value(ledger):
    trend = metrics.balance_trend(ledger)
    assert len(trend.values) == len(ledger)
    assert trend.values[-1] == metrics.summary(ledger).total_balance


def test_monthly_aggregates_sorted_with_invalid_bucket():
    snap = sample_snapshot()
    snap.transactions.insert(0, Transaction("bad", "x", "", INCOME, 5.0))
    snap.transactions.append(Transaction("2024-12-31", "y", "Gifts", EXPENSE, 40.0))
    data = metrics.monthly_aggregates(Ledger(snap))
    assert data.labels == ["2024-12", "2025-09", "2025-10", "Invalid Date"]
    assert data.income == [0, 60000, 50000, 5]
    assert data.expense == [40, 5700, 15000, 0]
    assert data.display_labels == ["12/2024", "09/2025", "10/2025", "Invalid Date"]
    assert len(set(data.labels)) == len(data.labels)


def test_category_aggregates_first_seen_order(ledger):
    data = metrics.category_aggregates(ledger)
    assert data.labels == ["Food", "Utilities"]
    assert data.values == [4500, 1200]


def test_filter_mask_example(ledger):
    mask = metrics.filter_mask(ledger, month=9, year=2025, search="food")
    assert mask == [False, True, False, False, True]


def test_filter_mask_defaults_and_case(ledger):
    assert metrics.filter_mask(ledger) == [True] * 5
    assert metrics.filter_mask(ledger, search="ELECTRICITY") == [False, False, True, False, False]
    assert metrics.filter_mask(ledger, month=10) == [False] * 5
    assert metrics.filter_mask(ledger, year=2024) == [False] * 5


def test_filter_mask_invalid_date_only_matches_without_date_filters():
    ledger = Ledger(Snapshot(transactions=[Transaction("oops", "Rent", "Housing", EXPENSE, 1.0)]))
    assert metrics.filter_mask(ledger, search="rent") == [True]
    assert metrics.filter_mask(ledger, month=1) == [False]


def test_available_years():
    snap = sample_snapshot()
    snap.transactions.append(Transaction("2023-02-01", "old", "", EXPENSE, 1.0))
    snap.transactions.append(Transaction("", "undated", "", EXPENSE, 1.0))
    assert metrics.available_years(Ledger(snap)) == [2023, 2025]
