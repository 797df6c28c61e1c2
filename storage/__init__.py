"""
Storage layer for the expense tracker.

Provides SQLite-based persistence for expenses and the category stores
behind the autocomplete vocabulary.
"""

from .sqlite_store import (
    SQLiteStore,
    open_conn,
    generate_expense_id,
    DEFAULT_DB_PATH,
)

from .migrations import (
    ensure_current_schema,
    check_integrity,
    get_table_stats,
    initialize_fresh_db,
)

from .schema import SCHEMA_VERSION

from .category_store import (
    CategoryStore,
    MemoryCategoryStore,
    JsonFileCategoryStore,
    SQLiteCategoryStore,
    StorageError,
    ParseError,
    WriteError,
    category_store_from_settings,
)

__all__ = [
    # Expense store
    "SQLiteStore",
    "open_conn",
    "generate_expense_id",
    "DEFAULT_DB_PATH",
    # Schema management
    "SCHEMA_VERSION",
    "ensure_current_schema",
    "check_integrity",
    "get_table_stats",
    "initialize_fresh_db",
    # Category stores
    "CategoryStore",
    "MemoryCategoryStore",
    "JsonFileCategoryStore",
    "SQLiteCategoryStore",
    "StorageError",
    "ParseError",
    "WriteError",
    "category_store_from_settings",
]
