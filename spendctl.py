# spendctl.py
# Command-line front end for the expense tracker.
# - Category autocomplete (categories list / suggest / commit)
# - Expense ledger (add, list, delete)
# - Chart data (chart categories, chart weekly)
# - Database management (db --init, --check, --stats)
#
# Examples:
#   python spendctl.py categories suggest foo
#   python spendctl.py categories commit "Groceries"
#   python spendctl.py add --amount 12.50 --category fod --note "Lunch"
#   python spendctl.py list --category Food --sort amount
#   python spendctl.py chart categories --range week --json
#   python spendctl.py db --check --db data/expenses.sqlite

from __future__ import annotations

import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Dict, Optional

import click

from categorizer.suggester import CategorySuggester
from config.loader import Settings, load_config, load_seed_categories, load_settings
from ext_utils.logging_setup import level_from_flags, setup_logging
from ledger.charts import RANGES
from ledger.service import ALL_CATEGORIES, ExpenseService, to_timestamp
from ledger.validation import InvalidAmountError, parse_amount
from storage.category_store import category_store_from_settings
from storage.migrations import (
    check_integrity,
    ensure_current_schema,
    get_table_stats,
)
from storage.schema import SCHEMA_VERSION
from storage.sqlite_store import SQLiteStore

log = logging.getLogger("spendctl")


class AppContext:
    """Everything a command needs, opened lazily."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self._store: Optional[SQLiteStore] = None
        self._suggester: Optional[CategorySuggester] = None

    @property
    def store(self) -> SQLiteStore:
        if self._store is None:
            db_path = self.settings.storage.db_path
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
            log.debug("Opening %s", db_path)
            self._store = SQLiteStore(db_path)
            self._store.ensure_schema()
        return self._store

    @property
    def suggester(self) -> CategorySuggester:
        if self._suggester is None:
            conn = None
            if self.settings.storage.category_backend == "sqlite":
                conn = self.store.conn
            cat_store = category_store_from_settings(self.settings.storage, conn)
            defaults = load_seed_categories(self.settings.suggester.seed_file)
            self._suggester = CategorySuggester.from_settings(
                cat_store, self.settings.suggester, defaults
            )
            self._suggester.initialize()
        return self._suggester

    @property
    def ledger(self) -> ExpenseService:
        return ExpenseService(
            self.store, default_category=self.settings.ledger.default_category
        )

    def close(self) -> None:
        if self._store is not None:
            self._store.close()


pass_app = click.make_pass_decorator(AppContext)


def _echo_json(payload) -> None:
    click.echo(json.dumps(payload, indent=2))


# ----------------------------- CLI -----------------------------
@click.group()
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Path to config.toml (default: repo root).",
)
@click.option("--db", "db_path", default=None, help="Path to SQLite database file.")
@click.option("--quiet", is_flag=True, help="Only warnings and errors.")
@click.option("--verbose", is_flag=True, help="Verbose logging.")
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: Optional[str],
    db_path: Optional[str],
    quiet: bool,
    verbose: bool,
) -> None:
    """Expense tracker CLI."""
    cfg: Dict = {}
    if config_path is not None:
        cfg = load_config(Path(config_path))
    else:
        try:
            cfg = load_config()
        except FileNotFoundError:
            cfg = {}
    settings = load_settings(cfg)
    if db_path:
        settings.storage.db_path = db_path

    level = level_from_flags(quiet, verbose)
    if not (quiet or verbose):
        level = settings.log_level
    setup_logging(level)

    app = AppContext(settings)
    ctx.obj = app
    ctx.call_on_close(app.close)


# ----------------------------- Categories -----------------------------
@cli.group("categories")
def categories_grp() -> None:
    """Inspect and extend the category vocabulary."""


@categories_grp.command("list")
@click.option("--learned", is_flag=True, help="Only categories the user added.")
@click.option("--json", "output_json", is_flag=True, help="Output results as JSON.")
@pass_app
def categories_list_cmd(app: AppContext, learned: bool, output_json: bool) -> None:
    """Print the vocabulary in its current order."""
    sug = app.suggester
    names = sug.learned() if learned else list(sug.vocabulary)
    if output_json:
        _echo_json({"categories": names})
        return
    for name in names:
        click.echo(name)


@categories_grp.command("suggest")
@click.argument("query", default="")
@click.option("--json", "output_json", is_flag=True, help="Output results as JSON.")
@pass_app
def categories_suggest_cmd(app: AppContext, query: str, output_json: bool) -> None:
    """Ranked suggestions for QUERY (empty QUERY lists the first few)."""
    suggestions = app.suggester.on_query_change(query)
    if output_json:
        _echo_json({"query": query, "suggestions": suggestions})
        return
    if not suggestions:
        click.echo("[none] no matching categories.")
        return
    for name in suggestions:
        click.echo(name)


@categories_grp.command("commit")
@click.argument("text")
@click.option("--json", "output_json", is_flag=True, help="Output results as JSON.")
@pass_app
def categories_commit_cmd(app: AppContext, text: str, output_json: bool) -> None:
    """Resolve TEXT to a category, learning it when nothing close exists."""
    sug = app.suggester
    before = len(sug.vocabulary)
    resolved = sug.commit(text)
    learned = resolved is not None and len(sug.vocabulary) > before

    if output_json:
        _echo_json({"input": text, "resolved": resolved, "learned": learned})
        return
    if resolved is None:
        click.echo("[skip] blank category, nothing committed.")
    elif learned:
        click.echo(f"[new] learned={resolved}")
    else:
        click.echo(f"[ok] resolved={resolved}")


# ----------------------------- Expenses -----------------------------
@cli.command("add")
@click.option("--amount", required=True, help="Amount, e.g. 12.50")
@click.option("--category", default="", help="Category; fuzzy-matched to known ones.")
@click.option("--note", default="", help="Free-text note.")
@click.option(
    "--date",
    "when",
    default=None,
    help="ISO date or timestamp (default: now).",
)
@click.option("--json", "output_json", is_flag=True, help="Output results as JSON.")
@pass_app
def add_cmd(
    app: AppContext,
    amount: str,
    category: str,
    note: str,
    when: Optional[str],
    output_json: bool,
) -> None:
    """Record an expense."""
    try:
        value = parse_amount(amount)
    except InvalidAmountError as e:
        raise click.BadParameter(str(e), param_hint="--amount")
    try:
        timestamp = to_timestamp(when)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--date")

    # the category is only learned once the rest of the input is valid
    resolved = app.suggester.commit(category)
    expense = app.ledger.add_expense(value, resolved, note=note, when=timestamp)

    if output_json:
        _echo_json(expense.to_dict())
        return
    click.echo(
        f"[ok] id={expense.id} amount={expense.amount:.2f} category={expense.category}"
    )


@cli.command("list")
@click.option(
    "--category",
    default=ALL_CATEGORIES,
    show_default=True,
    help="Only this category.",
)
@click.option(
    "--sort",
    "sort_by",
    type=click.Choice(["date", "amount"]),
    default="date",
    show_default=True,
)
@click.option("--json", "output_json", is_flag=True, help="Output results as JSON.")
@pass_app
def list_cmd(app: AppContext, category: str, sort_by: str, output_json: bool) -> None:
    """Expense history, newest or largest first."""
    expenses = app.ledger.list_expenses(category=category, sort_by=sort_by)
    if output_json:
        _echo_json([e.to_dict() for e in expenses])
        return
    if not expenses:
        click.echo("No expenses yet!")
        return
    for e in expenses:
        note = f"  {e.note}" if e.note else ""
        click.echo(f"{e.date}  ${e.amount:>9.2f}  [{e.category}]{note}  ({e.id[:8]})")


@cli.command("delete")
@click.argument("expense_id")
@pass_app
def delete_cmd(app: AppContext, expense_id: str) -> None:
    """Delete one expense by id."""
    if app.ledger.delete_expense(expense_id):
        click.echo(f"[ok] deleted {expense_id}")
        return
    click.echo(f"[error] no expense with id {expense_id}", err=True)
    raise SystemExit(1)


# ----------------------------- Charts -----------------------------
@cli.group("chart")
def chart_grp() -> None:
    """Aggregated spending for the charts."""


@chart_grp.command("categories")
@click.option(
    "--range",
    "range_name",
    type=click.Choice(list(RANGES)),
    default="month",
    show_default=True,
)
@click.option("--json", "output_json", is_flag=True, help="Output results as JSON.")
@pass_app
def chart_categories_cmd(app: AppContext, range_name: str, output_json: bool) -> None:
    """Spending per category for today / this week / this month."""
    totals = app.ledger.category_chart(range_name, categories=app.suggester.vocabulary)
    if output_json:
        _echo_json({"range": range_name, "data": [asdict(t) for t in totals]})
        return
    if not totals:
        click.echo("No expenses in this period.")
        return
    for t in totals:
        click.echo(f"{t.category:<16} {t.total:>10.2f}  ({t.count})")


@chart_grp.command("weekly")
@click.option("--json", "output_json", is_flag=True, help="Output results as JSON.")
@pass_app
def chart_weekly_cmd(app: AppContext, output_json: bool) -> None:
    """Daily totals per week of the current month."""
    trend = app.ledger.weekly_chart()
    if output_json:
        _echo_json(
            {"weeks": trend.week_labels, "rows": trend.rows, "has_data": trend.has_data}
        )
        return
    if not trend.has_data:
        click.echo("No expenses this month.")
        return
    click.echo("day  " + "  ".join(f"{w:>13}" for w in trend.week_labels))
    for row in trend.rows:
        vals = "  ".join(f"{row[w]:>13.2f}" for w in trend.week_labels)
        click.echo(f"{row['day']:<4} {vals}")


# ----------------------------- Database Management -----------------------------
@cli.command("db")
@click.option("--init", "do_init", is_flag=True, help="Create or migrate the schema.")
@click.option("--check", "do_check", is_flag=True, help="Run integrity checks.")
@click.option("--stats", "do_stats", is_flag=True, help="Show table row counts.")
@click.option("--json", "output_json", is_flag=True, help="Output results as JSON.")
@pass_app
def db_cmd(
    app: AppContext,
    do_init: bool,
    do_check: bool,
    do_stats: bool,
    output_json: bool,
) -> None:
    """
    Database management commands.

    Examples:

        spendctl db --init --db data/expenses.sqlite

        spendctl db --check --json
    """
    if not any([do_init, do_check, do_stats]):
        click.echo("No action specified. Use --init, --check, or --stats.")
        click.echo("Run 'spendctl db --help' for usage.")
        raise SystemExit(1)

    db_path = app.settings.storage.db_path
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    # no ensure_schema here: --check has to see the database as it is
    conn = SQLiteStore(db_path).conn
    results: Dict = {"db_path": db_path, "actions": []}

    try:
        if do_init:
            result = ensure_current_schema(conn)
            results["init"] = result
            results["actions"].append("init")
            if not output_json:
                click.echo(
                    f"[init] status={result['status']}, schema_version={SCHEMA_VERSION}"
                )
                if result.get("tables_created"):
                    created = result["tables_created"]
                    if isinstance(created, list):
                        created = ", ".join(created)
                    click.echo(f"  - Created tables: {created}")

        if do_check:
            result = check_integrity(conn)
            results["check"] = result
            results["actions"].append("check")
            if not output_json:
                status_icon = (
                    "[OK]"
                    if result["status"] == "ok"
                    else "[WARN]" if result["status"] == "warning" else "[ERR]"
                )
                click.echo(
                    f"[check] {status_icon} status={result['status']}, version={result['version']}"
                )
                click.echo(f"  - integrity_check: {result['integrity_check']}")
                click.echo("  - tables:")
                for table, info in result["tables"].items():
                    exists = "[+]" if info.get("exists", True) else "[-]"
                    empty = " (empty)" if info.get("empty") else ""
                    click.echo(f"      {exists} {table}: {info.get('rows', 0)} rows{empty}")
                if result["issues"]:
                    click.echo("  - issues:")
                    for issue in result["issues"]:
                        click.echo(f"      ! {issue}")

            if result["status"] == "error":
                results["exit_code"] = 3
            elif result["status"] == "warning":
                results["exit_code"] = 2

        if do_stats:
            stats = get_table_stats(conn)
            results["stats"] = stats
            results["actions"].append("stats")
            if not output_json:
                click.echo("[stats] Table row counts:")
                for table, count in stats.items():
                    if count >= 0:
                        click.echo(f"  - {table}: {count}")
                    else:
                        click.echo(f"  - {table}: (not found)")
    finally:
        conn.close()

    if output_json:
        _echo_json(results)

    exit_code = results.get("exit_code", 0)
    if exit_code != 0:
        raise SystemExit(exit_code)


if __name__ == "__main__":
    cli()
