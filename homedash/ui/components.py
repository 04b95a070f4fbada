"""
components.py - reusable Streamlit components / tables / charts

This module contains the UI helpers used by the dashboard:
 - summary cards, bookmark grid, editable expense table with running balance
 - monthly / category / income-vs-expense / balance-trend charts (altair)
 - settings form and the data page (JSON download/upload, bookmark import,
   XLSX export)

Everything reads through the DashboardSession; nothing here keeps its own
copy of the ledger. Pure helpers (format_money, ledger_frame,
apply_table_edits, chart_colors) carry no Streamlit calls and are unit tested.
"""

from typing import Dict, List, Optional, Any
from io import BytesIO
import datetime
import logging

import altair as alt
import pandas as pd
import streamlit as st

from homedash import metrics, storage
from homedash.bookmarks import MAX_BOOKMARKS, grid_layout
from homedash.errors import HomeDashError, LoadError, NoBookmarksFound
from homedash.ledger import field_change
from homedash.models import INCOME, EXPENSE, DARK, parse_amount

logger = logging.getLogger(__name__)

CURRENCY = "₹"

TABLE_COLUMNS = ["date", "description", "category", "type", "amount"]

CATEGORY_PALETTE = ["#3b82f6", "#10b981", "#f59e0b", "#ef4444", "#8b5cf6", "#ec4899", "#06b6d4", "#84cc16"]
INCOME_COLOR = "#10b981"
EXPENSE_COLOR = "#ef4444"
BALANCE_COLOR = "#3b82f6"


def _trigger_rerun():
    # st.rerun replaced st.experimental_rerun in newer Streamlit releases
    if hasattr(st, "rerun"):
        st.rerun()
    else:
        st.experimental_rerun()


def format_money(value: float) -> str:
    return f"{CURRENCY}{value:.2f}"


def chart_colors(theme: str) -> Dict[str, str]:
    """Text and grid colours for charts in the given theme."""
    if theme == DARK:
        return {"text": "#f1f5f9", "grid": "rgba(148, 163, 184, 0.1)"}
    return {"text": "#0f172a", "grid": "rgba(15, 23, 42, 0.1)"}


def ledger_frame(ledger) -> pd.DataFrame:
    """
    One row per transaction in stored order, with the running balance the
    table shows next to each row. Amounts are shown as parsed (malformed → 0).
    """
    rows = []
    balances = metrics.running_balances(ledger)
    for t, bal in zip(ledger.transactions, balances):
        rows.append({
            "date": t.date,
            "description": t.description,
            "category": t.category,
            "type": t.kind,
            "amount": t.value,
            "balance": bal,
        })
    return pd.DataFrame(rows, columns=TABLE_COLUMNS + ["balance"])


def _cell_value(field: str, value: Any) -> Any:
    if field == "amount":
        return parse_amount(value)
    if field == "date" and isinstance(value, (datetime.date, pd.Timestamp)):
        return value.strftime("%Y-%m-%d")
    return "" if pd.isna(value) else value


def apply_table_edits(session, before: pd.DataFrame, after: pd.DataFrame,
                      positions: Optional[List[int]] = None) -> int:
    """
    Compare the displayed table with the edited one and apply each changed
    cell as a typed change. `positions` maps table rows back to ledger
    indices when the table is filtered. Returns the number of cells applied.
    """
    positions = positions if positions is not None else list(range(len(before)))
    applied = 0
    for row, index in enumerate(positions):
        for field in TABLE_COLUMNS:
            old = before.iloc[row][field]
            new = after.iloc[row][field]
            if _cell_value(field, old) == _cell_value(field, new):
                continue
            session.update_transaction(index, field_change(field, _cell_value(field, new)))
            applied += 1
    return applied


def display_summary(ledger):
    """Summary cards: income, expense, net balance and bank balance."""
    s = metrics.summary(ledger)
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Total Income", format_money(s.income))
    col2.metric("Total Expense", format_money(s.expense))
    col3.metric("Balance", format_money(s.balance))
    col4.metric("Bank Balance", format_money(s.total_balance))


def display_bookmark_grid(session):
    """
    Bookmark tiles in a grid sized by count. Arrow buttons swap a tile
    with its neighbour (the drag-and-drop reorder).
    """
    st.header(f"Hello, {session.snapshot.user_name}")
    items = session.bookmarks.items
    cols_count, tile_height = grid_layout(len(items))
    if not items:
        st.info("No bookmarks yet. Add one below or import a bookmarks.html file.")
    cols = st.columns(cols_count)
    for i, b in enumerate(items):
        with cols[i % cols_count]:
            with st.container(border=True, height=tile_height):
                st.markdown(f"**[{b.name}]({b.url})**")
                st.caption(b.url)
                left, right, delete = st.columns(3)
                if left.button("◀", key=f"bm_left_{i}", disabled=i == 0):
                    session.swap_bookmarks(i, i - 1)
                    _persist_and_rerun(session)
                if right.button("▶", key=f"bm_right_{i}", disabled=i == len(items) - 1):
                    session.swap_bookmarks(i, i + 1)
                    _persist_and_rerun(session)
                if delete.button("×", key=f"bm_delete_{i}"):
                    session.delete_bookmark(i)
                    _persist_and_rerun(session)

    if len(items) >= MAX_BOOKMARKS:
        return
    with st.form(key="bookmark_form", clear_on_submit=True):
        name = st.text_input("Bookmark name")
        url = st.text_input("URL", placeholder="https://")
        if st.form_submit_button("Add bookmark"):
            if session.add_bookmark(name, url):
                _persist_and_rerun(session)
            else:
                st.error("Both name and URL are required.")


def _month_filter_options():
    return [None] + list(range(1, 13))


def display_expense_table(session):
    """
    Editable expense table with month/year/search filters and the running
    balance per row (stored order, not date order).
    """
    st.header("Expenses")
    ledger = session.ledger
    display_summary(ledger)

    col1, col2, col3 = st.columns(3)
    with col1:
        month = st.selectbox(
            "Month",
            options=_month_filter_options(),
            format_func=lambda m: "All Months" if m is None else metrics.MONTH_NAMES[m - 1],
        )
    with col2:
        year = st.selectbox(
            "Year",
            options=[None] + metrics.available_years(ledger),
            format_func=lambda y: "All Years" if y is None else str(y),
        )
    with col3:
        search = st.text_input("Search description or category")

    frame = ledger_frame(ledger)
    mask = metrics.filter_mask(ledger, month=month, year=year, search=search)
    positions = [i for i, visible in enumerate(mask) if visible]
    shown = frame.iloc[positions].reset_index(drop=True)

    # row edits are positional, so the widget state must not outlive this table
    editor_key = f"expense_editor_{month}_{year}_{search}"
    edited = st.data_editor(
        shown,
        key=editor_key,
        use_container_width=True,
        hide_index=True,
        disabled=["balance"],
        column_config={
            "type": st.column_config.SelectboxColumn("Type", options=[EXPENSE, INCOME], required=True),
            "amount": st.column_config.NumberColumn("Amount", min_value=0.0, format="%.2f"),
            "balance": st.column_config.NumberColumn("Balance", format=f"{CURRENCY}%.2f"),
        },
    )
    try:
        if apply_table_edits(session, shown, edited, positions):
            st.session_state.pop(editor_key, None)
            _persist_and_rerun(session)
    except (HomeDashError, ValueError) as exc:
        st.error(f"Could not apply edit: {exc}")

    col_add, col_del = st.columns(2)
    with col_add:
        if st.button("Add row"):
            session.add_transaction()
            _persist_and_rerun(session)
    with col_del:
        if positions:
            labels = {
                f"#{i + 1} {ledger.transactions[i].date} {ledger.transactions[i].description}": i
                for i in positions
            }
            choice = st.selectbox("Row to delete", options=list(labels.keys()))
            if st.button("Delete row"):
                try:
                    session.delete_transaction(labels[choice])
                except HomeDashError as exc:
                    st.error(str(exc))
                else:
                    _persist_and_rerun(session)


def _themed(chart, theme: str):
    colors = chart_colors(theme)
    return chart.configure_axis(
        labelColor=colors["text"], titleColor=colors["text"], gridColor=colors["grid"]
    ).configure_legend(labelColor=colors["text"], titleColor=colors["text"])


def monthly_chart(ledger) -> alt.Chart:
    data = metrics.monthly_aggregates(ledger)
    labels = data.display_labels
    rows = []
    for label, inc, exp in zip(labels, data.income, data.expense):
        rows.append({"month": label, "series": "Income", "amount": inc})
        rows.append({"month": label, "series": "Expense", "amount": exp})
    df = pd.DataFrame(rows, columns=["month", "series", "amount"])
    return alt.Chart(df).mark_line(point=True, interpolate="monotone").encode(
        x=alt.X("month:N", title="Month", sort=labels),
        y=alt.Y("amount:Q", title="Amount", scale=alt.Scale(zero=True)),
        color=alt.Color(
            "series:N",
            scale=alt.Scale(domain=["Income", "Expense"], range=[INCOME_COLOR, EXPENSE_COLOR]),
            legend=alt.Legend(title=None),
        ),
        tooltip=[
            alt.Tooltip("month:N", title="Month"),
            alt.Tooltip("series:N", title="Series"),
            alt.Tooltip("amount:Q", title="Amount", format=".2f"),
        ],
    ).properties(title="Monthly trend", height=300)


def category_chart(ledger) -> Optional[alt.Chart]:
    data = metrics.category_aggregates(ledger)
    if not data.labels:
        return None
    df = pd.DataFrame({"category": data.labels, "amount": data.values})
    times = (len(data.labels) + len(CATEGORY_PALETTE) - 1) // len(CATEGORY_PALETTE)
    colors = (CATEGORY_PALETTE * times)[: len(data.labels)]
    return alt.Chart(df).mark_arc(innerRadius=50).encode(
        theta=alt.Theta(field="amount", type="quantitative"),
        color=alt.Color(
            field="category",
            type="nominal",
            scale=alt.Scale(domain=data.labels, range=colors),
            sort=data.labels,
            legend=alt.Legend(title="Category", orient="right"),
        ),
        tooltip=[
            alt.Tooltip("category:N", title="Category"),
            alt.Tooltip("amount:Q", title="Amount", format=".2f"),
        ],
    ).properties(title="Expenses by category")


def income_expense_chart(ledger) -> alt.Chart:
    t = metrics.totals(ledger)
    df = pd.DataFrame({
        "label": ["Income", "Expense", "Balance"],
        "amount": [t.income, t.expense, t.balance],
    })
    return alt.Chart(df).mark_bar().encode(
        x=alt.X("label:N", title=None, sort=["Income", "Expense", "Balance"]),
        y=alt.Y("amount:Q", title="Amount"),
        color=alt.Color(
            "label:N",
            scale=alt.Scale(domain=["Income", "Expense", "Balance"],
                            range=[INCOME_COLOR, EXPENSE_COLOR, BALANCE_COLOR]),
            legend=None,
        ),
        tooltip=[alt.Tooltip("amount:Q", title="Amount", format=".2f")],
    ).properties(title="Income vs expense", height=300)


def balance_chart(ledger) -> alt.Chart:
    trend = metrics.balance_trend(ledger)
    df = pd.DataFrame({
        "step": list(range(len(trend.labels))),
        "date": trend.labels,
        "balance": trend.values,
    })
    return alt.Chart(df).mark_area(
        line={"color": BALANCE_COLOR}, color=BALANCE_COLOR, opacity=0.2, interpolate="monotone"
    ).encode(
        # one point per transaction, so same-day rows stay separate
        x=alt.X("step:O", title="Date", axis=alt.Axis(labelExpr="''")),
        y=alt.Y("balance:Q", title="Balance", scale=alt.Scale(zero=False)),
        tooltip=[
            alt.Tooltip("date:N", title="Date"),
            alt.Tooltip("balance:Q", title="Balance", format=".2f"),
        ],
    ).properties(title="Balance trend", height=300)


def display_charts(ledger, theme: str):
    st.header("Charts")
    if not ledger.transactions:
        st.write("No transactions recorded.")
        return
    col1, col2 = st.columns(2)
    with col1:
        st.altair_chart(_themed(monthly_chart(ledger), theme), use_container_width=True)
        st.altair_chart(_themed(income_expense_chart(ledger), theme), use_container_width=True)
    with col2:
        pie = category_chart(ledger)
        if pie is None:
            st.info("No categorised expenses to chart.")
        else:
            st.altair_chart(_themed(pie, theme), use_container_width=True)
        st.altair_chart(_themed(balance_chart(ledger), theme), use_container_width=True)


def display_settings(session):
    """Name, wallpaper (with preview), theme and base bank balance."""
    st.header("Settings")
    snap = session.snapshot
    with st.form(key="settings_form"):
        name = st.text_input("Your name", value=snap.user_name)
        wallpaper = st.text_input("Wallpaper URL", value=snap.wallpaper)
        if st.form_submit_button("Save settings"):
            session.save_settings(name, wallpaper)
            _persist_and_rerun(session)
    if snap.wallpaper:
        st.image(snap.wallpaper, caption="Wallpaper preview", use_container_width=True)

    st.write(f"Theme: **{snap.theme}**")
    if st.button("Toggle theme"):
        session.toggle_theme()
        _persist_and_rerun(session)

    st.markdown("---")
    st.write(f"Base bank balance: **{format_money(snap.base_balance)}**")
    with st.form(key="bank_form", clear_on_submit=True):
        value = st.text_input("New base balance")
        if st.form_submit_button("Update balance"):
            if session.set_base_balance(value):
                _persist_and_rerun(session)
            else:
                st.warning("Base balance must be a number.")


def ledger_workbook(ledger) -> bytes:
    """XLSX export: the expense table plus a summary sheet."""
    df = ledger_frame(ledger)
    s = metrics.summary(ledger)
    totals = pd.DataFrame({
        "metric": ["income", "expense", "balance", "total_balance"],
        "amount": [s.income, s.expense, s.balance, s.total_balance],
    })
    buffer = BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        df.to_excel(writer, index=False, sheet_name="expenses")
        totals.to_excel(writer, index=False, sheet_name="summary")
    buffer.seek(0)
    return buffer.getvalue()


def display_data_page(session):
    """Save/load the whole snapshot, import browser bookmarks, export XLSX."""
    st.header("Data")
    st.download_button(
        label="Save (download JSON)",
        data=session.export_bytes(),
        file_name=storage.DEFAULT_EXPORT_NAME,
        mime="application/json",
    )

    uploaded = st.file_uploader("Load a saved JSON file", type=["json"], key="snapshot_upload")
    if uploaded is not None and st.button("Load file"):
        try:
            session.load_bytes(uploaded.getvalue())
        except LoadError as exc:
            st.error(f"❌ {exc}")
        else:
            st.success("✅ Data loaded successfully!")
            _persist_and_rerun(session)

    markup_file = st.file_uploader("Import bookmarks.html", type=["html", "htm"], key="bookmark_upload")
    if markup_file is not None and st.button("Import bookmarks"):
        try:
            count = session.import_bookmarks(markup_file.getvalue().decode("utf-8", errors="replace"))
        except NoBookmarksFound:
            st.warning("❌ No valid bookmarks found in the file.")
        else:
            st.success(f"✅ Imported {count} bookmarks!")
            _persist_and_rerun(session)

    st.download_button(
        label="Download as XLSX",
        data=ledger_workbook(session.ledger),
        file_name="expenses.xlsx",
        mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    )


def apply_wallpaper(snapshot):
    if not snapshot.wallpaper:
        return
    st.markdown(
        f"""<style>.stApp {{ background-image: url("{snapshot.wallpaper}"); background-size: cover; }}</style>""",
        unsafe_allow_html=True,
    )


def _persist_and_rerun(session):
    try:
        session.persist()
    except OSError as exc:
        logger.warning("Could not save data: %s", exc)
        st.error(f"Could not save data: {exc}")
        return
    _trigger_rerun()
