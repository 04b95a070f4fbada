import pytest

from homedash import storage
from homedash.ledger import Ledger
from homedash.models import Snapshot, Transaction, INCOME, EXPENSE
from homedash.session import DashboardSession


def september_snapshot() -> Snapshot:
    return Snapshot(
        base_balance=20000.0,
        transactions=[
            Transaction("2025-09-01", "Salary", "Income", INCOME, 50000.0),
            Transaction("2025-09-05", "Groceries", "Food", EXPENSE, 3000.0),
            Transaction("2025-09-10", "Electricity Bill", "Utilities", EXPENSE, 1200.0),
            Transaction("2025-09-15", "Freelance", "Income", INCOME, 10000.0),
            Transaction("2025-09-20", "Restaurant", "Food", EXPENSE, 1500.0),
        ],
    )


@pytest.fixture
def ledger():
    return Ledger(september_snapshot())


@pytest.fixture
def make_session(tmp_path, monkeypatch):
    """Build sessions backed by a temp JSON file, with Google Sheets switched off."""
    monkeypatch.delenv("GOOGLE_SHEET_ID", raising=False)
    path = tmp_path / "homedash_data.json"

    def _make(restore=True, sheets_backend=None):
        return DashboardSession(
            local_backend=storage.LocalJsonBackend(str(path)),
            sheets_backend=sheets_backend,
            restore=restore,
        )

    _make.path = path
    return _make


class FakeWorksheet:
    """In-memory stand-in for a gspread Worksheet."""

    def __init__(self, rows=10, cols=4):
        self.row_count = rows
        self.col_count = cols
        self.values = []

    def resize(self, rows, cols):
        self.row_count = rows
        self.col_count = cols

    def row_values(self, n):
        return list(self.values[n - 1]) if len(self.values) >= n else []

    def update(self, range_name, values, value_input_option=None):
        assert range_name == "A1"
        assert value_input_option == "RAW"
        for i, row in enumerate(values):
            if i < len(self.values):
                self.values[i] = list(row)
            else:
                self.values.append(list(row))

    def clear(self):
        self.values = []

    def get_all_values(self):
        return [list(r) for r in self.values]


class FakeSpreadsheet:
    def __init__(self):
        self.sheets = {}

    def worksheet(self, title):
        return self.sheets[title]

    def add_worksheet(self, title, rows, cols):
        self.sheets[title] = FakeWorksheet(rows, cols)
        return self.sheets[title]


@pytest.fixture
def spreadsheet():
    return FakeSpreadsheet()
