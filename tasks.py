# tasks.py
"""
Developer task runner using Invoke.
Run `inv --list` to see tasks.

Key tasks:
  inv test
  inv ui
  inv init-db [--db data/expenses.sqlite]
  inv clean
"""

from invoke import task
from pathlib import Path
import shutil
import sys


REPO = Path(__file__).parent
DATADIR = REPO / "data"


def _python():
    """Return the python executable inside the current venv."""
    return sys.executable or "python"


@task
def test(c):
    """Run unit tests with pytest."""
    c.run(f'"{_python()}" -m pytest -q', pty=False)


@task(help={"port": "Port for the Streamlit server (default: 8501)"})
def ui(c, port=8501):
    """Start the Streamlit front end."""
    c.run(
        f'"{_python()}" -m streamlit run "{REPO / "ui" / "app.py"}" --server.port {port}',
        pty=False,
    )


@task(help={"db": "SQLite path (default: from config.toml)"})
def init_db(c, db=None):
    """Create or migrate the expense database."""
    db_opt = f' --db "{db}"' if db else ""
    c.run(f'"{_python()}" spendctl.py{db_opt} db --init --stats', pty=False)


@task
def clean(c):
    """Delete local data (database, JSON category store)."""
    if DATADIR.exists():
        shutil.rmtree(DATADIR)
        print(f"Removed {DATADIR}")
    DATADIR.mkdir(parents=True, exist_ok=True)
