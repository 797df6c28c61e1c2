"""
spendctl end to end, against a throwaway database.
"""
import json
import subprocess
import sys
from pathlib import Path

import pytest
from click.testing import CliRunner

from spendctl import cli

REPO = Path(__file__).resolve().parents[1]


@pytest.fixture
def run(db_path):
    runner = CliRunner()

    def _run(*args):
        return runner.invoke(cli, ["--quiet", "--db", db_path, *args])

    return _run


class TestCategories:
    def test_list_defaults(self, run):
        result = run("categories", "list")
        assert result.exit_code == 0
        assert result.output.split() == [
            "Food", "Travel", "Shopping", "Bills", "Entertainment", "Health", "Other",
        ]

    def test_suggest(self, run):
        result = run("categories", "suggest", "fod", "--json")
        assert result.exit_code == 0
        assert json.loads(result.output) == {"query": "fod", "suggestions": ["Food"]}

    def test_suggest_empty_query(self, run):
        result = run("categories", "suggest", "--json")
        assert json.loads(result.output)["suggestions"] == [
            "Food", "Travel", "Shopping", "Bills", "Entertainment",
        ]

    def test_suggest_no_match(self, run):
        result = run("categories", "suggest", "zzzz")
        assert "[none]" in result.output

    def test_commit_learns_and_persists(self, run):
        result = run("categories", "commit", "Groceries")
        assert result.exit_code == 0
        assert "[new] learned=Groceries" in result.output

        again = run("categories", "commit", "grocerie", "--json")
        assert json.loads(again.output) == {
            "input": "grocerie", "resolved": "Groceries", "learned": False,
        }

        learned = run("categories", "list", "--learned", "--json")
        assert json.loads(learned.output) == {"categories": ["Groceries"]}

    def test_commit_fuzzy(self, run):
        result = run("categories", "commit", "Fod")
        assert "[ok] resolved=Food" in result.output

    def test_commit_blank(self, run):
        result = run("categories", "commit", "   ")
        assert result.exit_code == 0
        assert "[skip]" in result.output
        assert json.loads(run("categories", "list", "--learned", "--json").output) == {
            "categories": []
        }

    def test_memory_backend_forgets(self, tmp_path, db_path):
        cfg = tmp_path / "config.toml"
        cfg.write_text('[storage]\ncategory_backend = "memory"\n', encoding="utf-8")
        runner = CliRunner()
        args = ["--quiet", "--config", str(cfg), "--db", db_path]
        runner.invoke(cli, args + ["categories", "commit", "Pets"])
        result = runner.invoke(cli, args + ["categories", "list", "--learned", "--json"])
        assert json.loads(result.output) == {"categories": []}


class TestExpenses:
    def test_add_resolves_category(self, run):
        result = run(
            "add", "--amount", "12.50", "--category", "fod", "--note", "Lunch",
            "--date", "2025-10-15", "--json",
        )
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["amount"] == 12.5
        assert data["category"] == "Food"
        assert data["date"] == "2025-10-15T00:00:00"

    def test_add_bad_amount_learns_nothing(self, run):
        result = run("add", "--amount", "abc", "--category", "Pets")
        assert result.exit_code == 2
        assert "Please enter a valid amount" in result.output
        learned = run("categories", "list", "--learned", "--json")
        assert json.loads(learned.output) == {"categories": []}

    def test_add_bad_date(self, run):
        result = run("add", "--amount", "5", "--date", "someday")
        assert result.exit_code == 2

    def test_list_and_delete(self, run):
        run("add", "--amount", "5", "--category", "Food", "--date", "2025-10-01")
        run("add", "--amount", "50", "--category", "Travel", "--date", "2025-10-02")

        rows = json.loads(run("list", "--sort", "amount", "--json").output)
        assert [r["amount"] for r in rows] == [50, 5]
        food = json.loads(run("list", "--category", "Food", "--json").output)
        assert len(food) == 1

        result = run("delete", food[0]["id"])
        assert result.exit_code == 0
        assert "[ok] deleted" in result.output

        missing = run("delete", food[0]["id"])
        assert missing.exit_code == 1

    def test_list_empty(self, run):
        assert "No expenses yet!" in run("list").output


class TestCharts:
    def test_categories_today(self, run):
        run("add", "--amount", "7", "--category", "Health")
        result = run("chart", "categories", "--range", "today", "--json")
        data = json.loads(result.output)
        assert data["range"] == "today"
        assert [(d["category"], d["total"]) for d in data["data"]] == [("Health", 7.0)]

    def test_categories_empty(self, run):
        assert "No expenses in this period." in run("chart", "categories").output

    def test_weekly_json(self, run):
        data = json.loads(run("chart", "weekly", "--json").output)
        assert len(data["rows"]) == 7
        assert 4 <= len(data["weeks"]) <= 6
        assert data["has_data"] is False


class TestDb:
    def test_no_action(self, run):
        assert run("db").exit_code == 1

    def test_init_then_check(self, run):
        result = run("db", "--init", "--json")
        assert json.loads(result.output)["init"]["status"] == "initialized"

        result = run("db", "--check", "--stats", "--json")
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["check"]["status"] == "ok"
        assert data["stats"] == {"expenses": 0, "user_categories": 0}


def test_check_exit_code_on_empty_db(tmp_path):
    # an untouched file has no tables, which is a warning (exit 2)
    cmd = [
        sys.executable,
        "spendctl.py",
        "--quiet",
        "--db",
        str(tmp_path / "empty.sqlite"),
        "db",
        "--check",
    ]
    proc = subprocess.run(cmd, capture_output=True, text=True, cwd=REPO)
    assert proc.returncode == 2, f"stderr was: {proc.stderr}"
