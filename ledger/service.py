# ledger/service.py
"""
Expense ledger: record, list and delete expenses, and hand chart data
to whatever is rendering it.
"""
from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import List, Optional, Sequence, Union

from ext_core.models import CategoryTotal, Expense, WeeklyTrend
from ext_utils.categories import DEFAULT_CATEGORIES
from ledger.charts import category_totals, filter_by_range, weekly_trend
from ledger.validation import parse_amount
from storage.sqlite_store import SQLiteStore, generate_expense_id

log = logging.getLogger("ledger")

ALL_CATEGORIES = "all"
CHART_LIMIT = 10000


def to_timestamp(when: Union[date, datetime, str, None] = None) -> str:
    """ISO-8601 timestamp (seconds precision) for storage."""
    if when is None:
        when = datetime.now(timezone.utc)
    elif isinstance(when, str):
        when = datetime.fromisoformat(when)
    elif not isinstance(when, datetime):
        when = datetime(when.year, when.month, when.day)
    return when.isoformat(timespec="seconds")


class ExpenseService:
    """Thin layer over SQLiteStore that validates what goes in."""

    def __init__(self, store: SQLiteStore, default_category: str = "Food"):
        self.store = store
        self.default_category = default_category

    def add_expense(
        self,
        amount: Union[str, float],
        category: Optional[str] = None,
        note: str = "",
        when: Union[date, datetime, str, None] = None,
    ) -> Expense:
        """Validate and store one expense. Raises InvalidAmountError."""
        expense = Expense(
            id=generate_expense_id(),
            amount=parse_amount(amount),
            category=(category or "").strip() or self.default_category,
            note=(note or "").strip(),
            date=to_timestamp(when),
        )
        self.store.insert_expense(expense)
        log.info(
            "Added expense %s: %.2f [%s]", expense.id[:8], expense.amount, expense.category
        )
        return expense

    def list_expenses(
        self, category: Optional[str] = ALL_CATEGORIES, sort_by: str = "date"
    ) -> List[Expense]:
        if not category or category == ALL_CATEGORIES:
            category = None
        return self.store.list_expenses(category=category, sort_by=sort_by)

    def delete_expense(self, expense_id: str) -> bool:
        deleted = self.store.delete_expense(expense_id)
        if not deleted:
            log.warning("No expense with id %s", expense_id)
        return deleted

    def category_chart(
        self,
        range_name: str = "month",
        categories: Sequence[str] = DEFAULT_CATEGORIES,
        now: Union[date, datetime, None] = None,
    ) -> List[CategoryTotal]:
        expenses = filter_by_range(self.store.list_expenses(limit=CHART_LIMIT), range_name, now)
        return category_totals(expenses, categories)

    def weekly_chart(self, today: Union[date, datetime, None] = None) -> WeeklyTrend:
        return weekly_trend(self.store.list_expenses(limit=CHART_LIMIT), today)
