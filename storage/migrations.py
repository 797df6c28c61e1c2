# storage/migrations.py
"""
Schema bookkeeping for the expense database.

  v0 -> v2: empty file, build everything
  v1 -> v2: expenses only; add user_categories, keep the rows
"""
from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from typing import Any, Dict, List

from .schema import ALL_TABLES, CREATE_INDEXES, SCHEMA_VERSION

EXPECTED_TABLES = ["expenses", "user_categories"]


def get_schema_version(conn: sqlite3.Connection) -> int:
    """Highest recorded version; 0 for a database we never touched."""
    try:
        row = conn.execute("SELECT MAX(version) FROM schema_version").fetchone()
    except sqlite3.OperationalError:
        return 0
    if not row or row[0] is None:
        return 0
    return int(row[0])


def set_schema_version(conn: sqlite3.Connection, version: int) -> None:
    stamp = datetime.now(timezone.utc).isoformat()
    with conn:
        conn.execute(
            "INSERT OR REPLACE INTO schema_version (version, applied_at) VALUES (?, ?)",
            (version, stamp),
        )


def table_exists(conn: sqlite3.Connection, table_name: str) -> bool:
    row = conn.execute(
        "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = ?",
        (table_name,),
    ).fetchone()
    return row is not None


def _count_rows(conn: sqlite3.Connection, table: str) -> int:
    # table names only ever come from EXPECTED_TABLES
    return conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]


def create_all_tables(conn: sqlite3.Connection) -> List[str]:
    """Create whatever tables are missing and return their names."""
    missing = [name for name in ALL_TABLES if not table_exists(conn, name)]
    with conn:
        for name in missing:
            conn.execute(ALL_TABLES[name])
    return missing


def create_all_indexes(conn: sqlite3.Connection) -> None:
    with conn:
        for ddl in CREATE_INDEXES:
            conn.execute(ddl)


def initialize_fresh_db(conn: sqlite3.Connection) -> Dict[str, Any]:
    created = create_all_tables(conn)
    create_all_indexes(conn)
    set_schema_version(conn, SCHEMA_VERSION)
    return {
        "tables_created": len(created),
        "indexes_created": len(CREATE_INDEXES),
    }


def migrate_to_current(conn: sqlite3.Connection) -> Dict[str, Any]:
    """Bring an older database up to SCHEMA_VERSION. Existing rows are kept."""
    from_version = get_schema_version(conn)
    created = create_all_tables(conn)
    create_all_indexes(conn)
    set_schema_version(conn, SCHEMA_VERSION)
    return {
        "from_version": from_version,
        "to_version": SCHEMA_VERSION,
        "tables_created": created,
    }


def ensure_current_schema(conn: sqlite3.Connection) -> Dict[str, Any]:
    """
    Single entry point used by every front end before touching data.

    status is one of:
      "current"      nothing to do
      "initialized"  empty database, full schema created
      "migrated"     older schema upgraded in place
    """
    version = get_schema_version(conn)
    if version == SCHEMA_VERSION:
        return {"status": "current", "version": version}

    if version == 0 and not table_exists(conn, "expenses"):
        return {"status": "initialized", "version": SCHEMA_VERSION, **initialize_fresh_db(conn)}

    return {"status": "migrated", "version": SCHEMA_VERSION, **migrate_to_current(conn)}


def _escalate(report: Dict[str, Any], status: str) -> None:
    order = ("ok", "warning", "error")
    if order.index(status) > order.index(report["status"]):
        report["status"] = status


def check_integrity(conn: sqlite3.Connection) -> Dict[str, Any]:
    """
    Read-only health report. Never creates or migrates anything.

    status: "ok", "warning" (missing table, old schema) or
    "error" (sqlite's own integrity_check failed).
    """
    report: Dict[str, Any] = {
        "status": "ok",
        "version": get_schema_version(conn),
        "tables": {},
        "integrity_check": None,
        "issues": [],
    }

    verdict = conn.execute("PRAGMA integrity_check").fetchone()[0]
    report["integrity_check"] = verdict
    if verdict != "ok":
        _escalate(report, "error")
        report["issues"].append(f"Integrity check failed: {verdict}")

    for table in EXPECTED_TABLES:
        if not table_exists(conn, table):
            report["tables"][table] = {"exists": False, "rows": 0, "empty": True}
            report["issues"].append(f"Missing table: {table}")
            _escalate(report, "warning")
            continue
        rows = _count_rows(conn, table)
        report["tables"][table] = {"exists": True, "rows": rows, "empty": rows == 0}

    if 0 < report["version"] < SCHEMA_VERSION:
        _escalate(report, "warning")
        report["issues"].append(
            f"Schema version {report['version']} is behind {SCHEMA_VERSION} - run db --init"
        )

    return report


def get_table_stats(conn: sqlite3.Connection) -> Dict[str, int]:
    """Row count per expected table, -1 where the table is missing."""
    return {
        table: _count_rows(conn, table) if table_exists(conn, table) else -1
        for table in EXPECTED_TABLES
    }
