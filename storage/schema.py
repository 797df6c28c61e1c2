# storage/schema.py
"""
Database schema definitions for the expense tracker.

Schema version history:
  v1: expenses table
  v2: user_categories table for learned categories
"""
from __future__ import annotations

SCHEMA_VERSION = 2

# =============================================================================
# Core Tables
# =============================================================================

CREATE_EXPENSES = """
CREATE TABLE IF NOT EXISTS expenses (
    id TEXT PRIMARY KEY,
    amount REAL NOT NULL CHECK (amount > 0),
    category TEXT NOT NULL,
    note TEXT DEFAULT '',
    date TEXT NOT NULL,
    created_at TEXT DEFAULT CURRENT_TIMESTAMP
);
"""

# Learned categories only; the default seed is never stored here.
CREATE_USER_CATEGORIES = """
CREATE TABLE IF NOT EXISTS user_categories (
    position INTEGER PRIMARY KEY,
    name TEXT NOT NULL,
    name_key TEXT UNIQUE NOT NULL,
    created_at TEXT DEFAULT CURRENT_TIMESTAMP
);
"""

# Schema version tracking
CREATE_SCHEMA_VERSION = """
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY,
    applied_at TEXT DEFAULT CURRENT_TIMESTAMP
);
"""

# =============================================================================
# Indexes
# =============================================================================

CREATE_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_expenses_date ON expenses(date);",
    "CREATE INDEX IF NOT EXISTS idx_expenses_category ON expenses(category);",
]

# =============================================================================
# All DDL statements in order
# =============================================================================

ALL_TABLES = {
    "schema_version": CREATE_SCHEMA_VERSION,
    "expenses": CREATE_EXPENSES,
    "user_categories": CREATE_USER_CATEGORIES,
}
