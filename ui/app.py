# ui/app.py
"""
Expense Tracker - Streamlit front end

Pages:
- Add Expense: amount, category with autocomplete, note
- Expenses: history with category filter and date/amount sort
- Charts: spending by category (bar/pie) and the weekly trend
"""
from __future__ import annotations

import sys
from pathlib import Path

import pandas as pd
import streamlit as st

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from categorizer.suggester import CategorySuggester  # noqa: E402
from config.loader import load_config, load_seed_categories, load_settings  # noqa: E402
from ext_utils.logging_setup import setup_logging  # noqa: E402
from ledger.charts import RANGES  # noqa: E402
from ledger.service import ALL_CATEGORIES, ExpenseService  # noqa: E402
from ledger.validation import InvalidAmountError, parse_amount  # noqa: E402
from storage.category_store import category_store_from_settings  # noqa: E402
from storage.sqlite_store import SQLiteStore  # noqa: E402

st.set_page_config(
    page_title="Expense Tracker",
    page_icon="💸",
    layout="centered",
)

PENDING_CATEGORY = "category_pending"
RANGE_LABELS = {"today": "Today", "week": "This Week", "month": "This Month"}


# =============================================================================
# Helper Functions
# =============================================================================


def get_settings():
    if "settings" not in st.session_state:
        try:
            cfg = load_config()
        except FileNotFoundError:
            cfg = {}
        settings = load_settings(cfg)
        setup_logging(settings.log_level)
        st.session_state.settings = settings
    return st.session_state.settings


def get_store() -> SQLiteStore:
    """Get or create SQLiteStore instance."""
    if "store" not in st.session_state:
        db_path = get_settings().storage.db_path
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        # streamlit reruns the script on other threads
        store = SQLiteStore(db_path, check_same_thread=False)
        store.ensure_schema()
        st.session_state.store = store
    return st.session_state.store


def get_suggester() -> CategorySuggester:
    """One suggester per browser session, loaded once."""
    if "suggester" not in st.session_state:
        settings = get_settings()
        conn = get_store().conn if settings.storage.category_backend == "sqlite" else None
        cat_store = category_store_from_settings(settings.storage, conn)
        sug = CategorySuggester.from_settings(
            cat_store,
            settings.suggester,
            load_seed_categories(settings.suggester.seed_file),
        )
        sug.initialize()
        st.session_state.suggester = sug
    return st.session_state.suggester


def get_ledger() -> ExpenseService:
    return ExpenseService(
        get_store(), default_category=get_settings().ledger.default_category
    )


def format_currency(value: float) -> str:
    """Format value as currency."""
    if value is None:
        return "$0.00"
    return f"${value:,.2f}"


# =============================================================================
# Page: Add Expense
# =============================================================================


def category_input() -> str:
    """Text box + suggestion buttons driven by CategorySuggester."""
    sug = get_suggester()
    # a picked suggestion goes into the box before the widget is built
    if PENDING_CATEGORY in st.session_state:
        st.session_state.category_text = st.session_state.pop(PENDING_CATEGORY)
    text = st.text_input(
        "Category",
        key="category_text",
        placeholder="Start typing a category...",
    )
    if text != sug.query:
        sug.on_query_change(text)

    if sug.visible:
        cols = st.columns(min(len(sug.suggestions), 3))
        for i, cat in enumerate(sug.suggestions):
            if cols[i % len(cols)].button(cat, key=f"suggest_{cat}"):
                sug.select_suggestion(cat)
                st.session_state[PENDING_CATEGORY] = cat
                st.rerun()

    return text


def page_add():
    st.header("Add Expense")
    sug = get_suggester()

    category = category_input()
    with st.form("expense_form", clear_on_submit=True):
        amount = st.text_input("Amount", key="amount_text", placeholder="e.g. 12.50")
        note = st.text_area("Note", placeholder="e.g. Lunch at KFC", height=80)
        submitted = st.form_submit_button("Add Expense", use_container_width=True)

    if not submitted:
        return

    try:
        value = parse_amount(amount)
    except InvalidAmountError as e:
        st.error(str(e))
        return

    resolved = sug.commit(category)
    expense = get_ledger().add_expense(value, resolved, note=note)

    sug.set_value("")
    st.session_state.pop("category_text", None)
    st.success(
        f"Expense added! {format_currency(expense.amount)} in {expense.category}"
    )


# =============================================================================
# Page: Expenses
# =============================================================================


def page_expenses():
    st.header("Expense History")
    sug = get_suggester()
    ledger = get_ledger()

    col1, col2 = st.columns(2)
    with col1:
        category = st.selectbox(
            "Category", [ALL_CATEGORIES] + list(sug.vocabulary),
            format_func=lambda c: "All Categories" if c == ALL_CATEGORIES else c,
        )
    with col2:
        sort_by = st.selectbox(
            "Sort by", ["date", "amount"],
            format_func=lambda s: "Sort by Date" if s == "date" else "Sort by Amount",
        )

    expenses = ledger.list_expenses(category=category, sort_by=sort_by)
    if not expenses:
        st.info("No expenses yet!")
        return

    for e in expenses:
        c1, c2, c3, c4 = st.columns([2, 2, 5, 1])
        c1.markdown(f"**{format_currency(e.amount)}**")
        c2.caption(e.category)
        c3.write(f"{e.note}  \n{e.date}")
        if c4.button("Delete", key=f"del_{e.id}"):
            ledger.delete_expense(e.id)
            st.rerun()


# =============================================================================
# Page: Charts
# =============================================================================


def page_charts():
    st.header("Spending Analysis")
    ledger = get_ledger()

    range_name = st.radio(
        "Period",
        list(RANGES),
        index=list(RANGES).index("month"),
        format_func=RANGE_LABELS.get,
        horizontal=True,
    )
    as_pie = st.toggle("Pie chart", value=False)

    totals = ledger.category_chart(range_name, categories=get_suggester().vocabulary)
    if not totals:
        st.info("No expenses in this period.")
    else:
        df = pd.DataFrame([t.__dict__ for t in totals])
        if as_pie:
            st.vega_lite_chart(
                df,
                {
                    "mark": {"type": "arc"},
                    "encoding": {
                        "theta": {"field": "total", "type": "quantitative"},
                        "color": {
                            "field": "category",
                            "type": "nominal",
                            "scale": {
                                "domain": list(df["category"]),
                                "range": list(df["color"]),
                            },
                        },
                    },
                },
                use_container_width=True,
            )
        else:
            st.bar_chart(df.set_index("category")["total"], use_container_width=True)

    st.subheader("Weekly Trend (This Month)")
    trend = ledger.weekly_chart()
    if not trend.has_data:
        st.info("No expenses this month.")
        return
    wdf = pd.DataFrame(trend.rows).set_index("day")
    st.line_chart(wdf[trend.week_labels], use_container_width=True)


# =============================================================================
# Main Application
# =============================================================================


def main():
    """Main application entry point."""
    with st.sidebar:
        st.title("Expense Tracker")
        st.write("---")

        pages = {
            "Add Expense": page_add,
            "Expenses": page_expenses,
            "Charts": page_charts,
        }
        selected = st.radio("Navigation", list(pages.keys()), label_visibility="collapsed")

        st.write("---")
        stats = get_store().get_stats()
        st.caption(f"Expenses: {stats.get('expenses', 0)}")
        st.caption(f"Learned categories: {len(get_suggester().learned())}")

    pages[selected]()


if __name__ == "__main__":
    main()
