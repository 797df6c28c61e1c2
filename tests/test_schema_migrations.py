"""
Tests for database schema, migrations and the expense store.
"""
import sqlite3

import pytest

from ext_core.models import Expense
from storage.migrations import (
    check_integrity,
    ensure_current_schema,
    get_schema_version,
    get_table_stats,
    set_schema_version,
    table_exists,
)
from storage.schema import CREATE_EXPENSES, CREATE_SCHEMA_VERSION, SCHEMA_VERSION
from storage.sqlite_store import SQLiteStore, open_conn


@pytest.fixture
def fresh_conn(db_path):
    conn = open_conn(db_path)
    yield conn
    conn.close()


def _exp(id, amount, category="Food", date="2026-10-01T12:00:00", note=""):
    return Expense(id=id, amount=amount, category=category, note=note, date=date)


class TestMigrations:
    def test_fresh_db_initialized(self, fresh_conn):
        assert get_schema_version(fresh_conn) == 0
        result = ensure_current_schema(fresh_conn)
        assert result["status"] == "initialized"
        assert get_schema_version(fresh_conn) == SCHEMA_VERSION
        assert table_exists(fresh_conn, "expenses")
        assert table_exists(fresh_conn, "user_categories")

    def test_second_run_is_current(self, fresh_conn):
        ensure_current_schema(fresh_conn)
        assert ensure_current_schema(fresh_conn)["status"] == "current"

    def test_v1_database_migrated_and_rows_kept(self, fresh_conn):
        fresh_conn.execute(CREATE_SCHEMA_VERSION)
        fresh_conn.execute(CREATE_EXPENSES)
        fresh_conn.execute(
            "INSERT INTO expenses (id, amount, category, note, date) VALUES ('a', 5, 'Food', '', '2026-10-01')"
        )
        fresh_conn.commit()
        set_schema_version(fresh_conn, 1)

        result = ensure_current_schema(fresh_conn)
        assert result["status"] == "migrated"
        assert result["from_version"] == 1
        assert "user_categories" in result["tables_created"]
        assert get_table_stats(fresh_conn)["expenses"] == 1

    def test_integrity_ok(self, fresh_conn):
        ensure_current_schema(fresh_conn)
        report = check_integrity(fresh_conn)
        assert report["status"] == "ok"
        assert report["integrity_check"] == "ok"
        assert report["tables"]["expenses"]["empty"]

    def test_integrity_warns_on_missing_tables(self, fresh_conn):
        report = check_integrity(fresh_conn)
        assert report["status"] == "warning"
        assert "Missing table: expenses" in report["issues"]

    def test_stats_missing_table(self, fresh_conn):
        assert get_table_stats(fresh_conn) == {"expenses": -1, "user_categories": -1}


class TestExpenseStore:
    def test_insert_and_get(self, store):
        store.insert_expense(_exp("e1", 12.5, note="Lunch"))
        got = store.get_expense("e1")
        assert got == _exp("e1", 12.5, note="Lunch")
        assert store.get_expense("missing") is None

    def test_blank_id_generated(self, store):
        e = _exp("", 3.0)
        new_id = store.insert_expense(e)
        assert new_id and e.id == new_id

    def test_non_positive_amount_rejected_by_schema(self, store):
        with pytest.raises(sqlite3.IntegrityError):
            store.insert_expense(_exp("bad", 0))

    def test_delete(self, store):
        store.insert_expense(_exp("e1", 1.0))
        assert store.delete_expense("e1") is True
        assert store.delete_expense("e1") is False

    def test_sort_by_date_newest_first(self, store):
        store.insert_expense(_exp("old", 50, date="2026-09-01T10:00:00"))
        store.insert_expense(_exp("new", 5, date="2026-10-02T10:00:00"))
        store.insert_expense(_exp("mid", 20, date="2026-09-15T10:00:00"))
        assert [e.id for e in store.list_expenses()] == ["new", "mid", "old"]

    def test_sort_by_amount_largest_first(self, store):
        store.insert_expense(_exp("a", 5))
        store.insert_expense(_exp("b", 50))
        store.insert_expense(_exp("c", 20))
        assert [e.id for e in store.list_expenses(sort_by="amount")] == ["b", "c", "a"]

    def test_unknown_sort(self, store):
        with pytest.raises(ValueError):
            store.list_expenses(sort_by="note")

    def test_filter_by_category_and_date(self, store):
        store.insert_expense(_exp("a", 5, "Food", "2026-09-01T10:00:00"))
        store.insert_expense(_exp("b", 6, "Travel", "2026-10-01T10:00:00"))
        store.insert_expense(_exp("c", 7, "Food", "2026-10-03T10:00:00"))
        assert [e.id for e in store.list_expenses(category="Food")] == ["c", "a"]
        assert [e.id for e in store.list_expenses(date_from="2026-10-01")] == ["c", "b"]

    def test_replace_expenses(self, store):
        store.insert_expense(_exp("a", 5))
        n = store.replace_expenses([_exp("x", 1), _exp("y", 2)])
        assert n == 2
        assert sorted(e.id for e in store.list_expenses()) == ["x", "y"]

    def test_spending_by_category(self, store):
        store.insert_expense(_exp("a", 5, "Food"))
        store.insert_expense(_exp("b", 10, "Travel"))
        store.insert_expense(_exp("c", 7, "Food"))
        rows = store.spending_by_category()
        assert rows[0] == {"category": "Food", "count": 2, "total": 12.0}
        assert rows[1]["category"] == "Travel"

    def test_spending_over_time(self, store):
        store.insert_expense(_exp("a", 5, date="2026-09-30T10:00:00"))
        store.insert_expense(_exp("b", 10, date="2026-10-01T09:00:00"))
        store.insert_expense(_exp("c", 1, date="2026-10-01T18:00:00"))
        by_day = store.spending_over_time("day")
        assert [(r["period"], r["total"]) for r in by_day] == [
            ("2026-09-30", 5.0),
            ("2026-10-01", 11.0),
        ]
        by_month = store.spending_over_time("month")
        assert [r["period"] for r in by_month] == ["2026-09", "2026-10"]
        with pytest.raises(ValueError):
            store.spending_over_time("year")

    def test_context_manager_closes(self, db_path):
        with SQLiteStore(db_path) as s:
            s.ensure_schema()
            assert s.get_stats()["expenses"] == 0
        assert s._conn is None
