# storage/sqlite_store.py
"""
SQLite persistence for expenses.

One SQLiteStore owns one connection; the learned-category store borrows
that same connection so both live in a single database file.
"""
from __future__ import annotations

import sqlite3
import uuid
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from ext_core.models import Expense

from .migrations import check_integrity, ensure_current_schema, get_table_stats

DEFAULT_DB_PATH = "data/expenses.sqlite"

# newest first / largest first
SORT_ORDERS = {
    "date": "date DESC, created_at DESC",
    "amount": "amount DESC, date DESC",
}

PERIOD_EXPRS = {
    "day": "substr(date, 1, 10)",
    "week": "strftime('%Y-%W', date)",
    "month": "strftime('%Y-%m', date)",
}

_COLUMNS = "id, amount, category, note, date"


def open_conn(
    path: str = DEFAULT_DB_PATH, check_same_thread: bool = True
) -> sqlite3.Connection:
    conn = sqlite3.connect(path, check_same_thread=check_same_thread)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def generate_expense_id() -> str:
    return str(uuid.uuid4())


def _as_row(e: Expense) -> Tuple[str, float, str, str, str]:
    return (e.id or generate_expense_id(), e.amount, e.category, e.note, e.date)


class SQLiteStore:
    """
    Expense storage. The connection is opened on first use and can be
    shared with SQLiteCategoryStore through `conn`.

        with SQLiteStore("data/expenses.sqlite") as store:
            store.ensure_schema()
            store.insert_expense(expense)
    """

    def __init__(self, db_path: str = DEFAULT_DB_PATH, check_same_thread: bool = True):
        self.db_path = db_path
        self.check_same_thread = check_same_thread
        self._conn: Optional[sqlite3.Connection] = None

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = open_conn(self.db_path, self.check_same_thread)
        return self._conn

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> "SQLiteStore":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def ensure_schema(self) -> Dict[str, Any]:
        return ensure_current_schema(self.conn)

    def check_integrity(self) -> Dict[str, Any]:
        return check_integrity(self.conn)

    def get_stats(self) -> Dict[str, int]:
        return get_table_stats(self.conn)

    # =========================================================================
    # Expenses
    # =========================================================================

    def insert_expense(self, expense: Expense) -> str:
        """Store one expense and return its id (generated when blank)."""
        row = _as_row(expense)
        expense.id = row[0]
        with self.conn:
            self.conn.execute(
                f"INSERT INTO expenses ({_COLUMNS}) VALUES (?, ?, ?, ?, ?)", row
            )
        return expense.id

    def get_expense(self, expense_id: str) -> Optional[Expense]:
        row = self.conn.execute(
            f"SELECT {_COLUMNS} FROM expenses WHERE id = ?", (expense_id,)
        ).fetchone()
        return Expense.from_row(dict(row)) if row else None

    def delete_expense(self, expense_id: str) -> bool:
        """True when a row was actually removed."""
        with self.conn:
            cur = self.conn.execute("DELETE FROM expenses WHERE id = ?", (expense_id,))
        return cur.rowcount > 0

    def list_expenses(
        self,
        category: Optional[str] = None,
        sort_by: str = "date",
        date_from: Optional[str] = None,
        date_to: Optional[str] = None,
        limit: int = 1000,
    ) -> List[Expense]:
        """
        Expenses matching the filters.
        sort_by="date" -> newest first, sort_by="amount" -> largest first.
        """
        if sort_by not in SORT_ORDERS:
            raise ValueError(f"Unsupported sort: {sort_by!r}")

        base: List[str] = []
        params: List[Any] = []
        if category:
            base.append("category = ?")
            params.append(category)
        where, range_params = self._date_range(date_from, date_to, base=base)

        rows = self.conn.execute(
            f"SELECT {_COLUMNS} FROM expenses {where} "
            f"ORDER BY {SORT_ORDERS[sort_by]} LIMIT ?",
            params + range_params + [limit],
        ).fetchall()
        return [Expense.from_row(dict(r)) for r in rows]

    def replace_expenses(self, expenses: Iterable[Expense]) -> int:
        """Swap the whole table for `expenses` in one transaction. Returns the new count."""
        rows = [_as_row(e) for e in expenses]
        with self.conn:
            self.conn.execute("DELETE FROM expenses")
            self.conn.executemany(
                f"INSERT INTO expenses ({_COLUMNS}) VALUES (?, ?, ?, ?, ?)", rows
            )
        return len(rows)

    # =========================================================================
    # Analytics Queries
    # =========================================================================

    @staticmethod
    def _date_range(
        date_from: Optional[str], date_to: Optional[str], base: Sequence[str] = ()
    ) -> Tuple[str, List[Any]]:
        clauses = list(base)
        params: List[Any] = []
        if date_from:
            clauses.append("date >= ?")
            params.append(date_from)
        if date_to:
            clauses.append("date <= ?")
            params.append(date_to)
        where = ("WHERE " + " AND ".join(clauses)) if clauses else ""
        return where, params

    def spending_by_category(
        self, date_from: Optional[str] = None, date_to: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """[{category, count, total}], biggest spender first."""
        where, params = self._date_range(date_from, date_to)
        rows = self.conn.execute(
            f"SELECT category, COUNT(*) AS count, SUM(amount) AS total "
            f"FROM expenses {where} GROUP BY category ORDER BY total DESC, category",
            params,
        ).fetchall()
        return [dict(r) for r in rows]

    def spending_over_time(
        self,
        group_by: str = "day",
        date_from: Optional[str] = None,
        date_to: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """[{period, count, total}] in period order; group_by is day, week or month."""
        if group_by not in PERIOD_EXPRS:
            raise ValueError(f"Unsupported grouping: {group_by!r}")
        period = PERIOD_EXPRS[group_by]
        where, params = self._date_range(date_from, date_to, base=["date != ''"])
        rows = self.conn.execute(
            f"SELECT {period} AS period, COUNT(*) AS count, SUM(amount) AS total "
            f"FROM expenses {where} GROUP BY period ORDER BY period",
            params,
        ).fetchall()
        return [dict(r) for r in rows]
