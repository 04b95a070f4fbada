import altair as alt
import pytest

from homedash.ledger import Ledger
from homedash.models import Snapshot
from homedash.ui import components


def test_format_money():
    assert components.format_money(74300) == "₹74300.00"
    assert components.format_money(-12.5) == "₹-12.50"


def test_chart_colors_follow_theme():
    assert components.chart_colors("dark")["text"] == "#f1f5f9"
    assert components.chart_colors("light")["text"] == "#0f172a"


def test_ledger_frame_has_running_balance(ledger):
    df = components.ledger_frame(ledger)
    assert list(df.columns) == ["date", "description", "category", "type", "amount", "balance"]
    assert list(df["balance"]) == [70000, 67000, 65800, 75800, 74300]


def test_apply_table_edits(make_session):
    session = make_session()
    before = components.ledger_frame(session.ledger)
    after = before.copy()
    after.loc[1, "amount"] = 3500.0
    after.loc[0, "type"] = "expense"
    assert components.apply_table_edits(session, before, after) == 2
    assert session.ledger[1].amount == 3500.0
    assert session.ledger[0].kind == "expense"
    assert components.apply_table_edits(session, after, after) == 0


def test_apply_table_edits_on_filtered_rows(make_session):
    session = make_session()
    positions = [1, 4]
    before = components.ledger_frame(session.ledger).iloc[positions].reset_index(drop=True)
    after = before.copy()
    after.loc[1, "description"] = "Dinner out"
    assert components.apply_table_edits(session, before, after, positions) == 1
    assert session.ledger[4].description == "Dinner out"


def test_apply_table_edits_rejects_unknown_kind(make_session):
    session = make_session()
    before = components.ledger_frame(session.ledger)
    after = before.copy()
    after.loc[0, "type"] = "transfer"
    with pytest.raises(ValueError):
        components.apply_table_edits(session, before, after)


def test_charts_build(ledger):
    assert isinstance(components.monthly_chart(ledger), alt.Chart)
    assert isinstance(components.income_expense_chart(ledger), alt.Chart)
    assert isinstance(components.balance_chart(ledger), alt.Chart)
    assert isinstance(components.category_chart(ledger), alt.Chart)
    assert components.category_chart(Ledger(Snapshot())) is None


def test_ledger_workbook_is_xlsx(ledger):
    data = components.ledger_workbook(ledger)
    assert data[:2] == b"PK"


def test_persist_failure_is_reported_not_raised(monkeypatch):
    class Unwritable:
        def persist(self):
            raise PermissionError("read-only data directory")

    shown, reruns = [], []
    monkeypatch.setattr(components.st, "error", shown.append)
    monkeypatch.setattr(components, "_trigger_rerun", lambda: reruns.append(True))
    components._persist_and_rerun(Unwritable())
    assert shown and "read-only data directory" in shown[0]
    assert reruns == []
