# config/loader.py
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from ext_utils.categories import DEFAULT_CATEGORIES, dedupe_categories

# Python 3.11 has tomllib; fall back to "tomli" on older versions if needed
try:
    import tomllib  # type: ignore[attr-defined]
except ModuleNotFoundError:  # pragma: no cover
    import tomli as tomllib  # type: ignore[no-redef]

REPO = Path(__file__).resolve().parents[1]
DB_PATH_ENV = "EXT_DB_PATH"


@dataclass
class SuggesterSettings:
    empty_query_limit: int = 5
    query_limit: int = 6
    max_edit_distance: int = 1
    autocorrect_on_commit: bool = True
    seed_file: Optional[str] = None


@dataclass
class StorageSettings:
    db_path: str = "data/expenses.sqlite"
    # sqlite | json | memory
    category_backend: str = "sqlite"
    category_file: str = "data/categories.json"
    storage_key: str = "userCategories"


@dataclass
class LedgerSettings:
    default_category: str = "Food"


@dataclass
class Settings:
    suggester: SuggesterSettings = field(default_factory=SuggesterSettings)
    storage: StorageSettings = field(default_factory=StorageSettings)
    ledger: LedgerSettings = field(default_factory=LedgerSettings)
    log_level: str = "INFO"


def load_config(config_path: Path | None = None) -> Dict[str, Any]:
    """
    Load config.toml from repo root by default.
    """
    if config_path is None:
        config_path = REPO / "config.toml"

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config not found: {config_path}")

    with config_path.open("rb") as f:
        return tomllib.load(f)


def _section(cfg: Dict[str, Any], name: str) -> Dict[str, Any]:
    sec = cfg.get(name) or {}
    if not isinstance(sec, dict):
        raise ValueError(f"[{name}] must be a table")
    return sec


def load_settings(cfg: Optional[Dict[str, Any]] = None) -> Settings:
    """
    Turn a config dict into Settings. Missing keys keep their defaults;
    EXT_DB_PATH in the environment overrides storage.db_path.
    """
    cfg = cfg or {}
    sug = _section(cfg, "suggester")
    sto = _section(cfg, "storage")
    led = _section(cfg, "ledger")
    logging_cfg = _section(cfg, "logging")

    suggester = SuggesterSettings(
        empty_query_limit=int(sug.get("empty_query_limit", 5)),
        query_limit=int(sug.get("query_limit", 6)),
        max_edit_distance=int(sug.get("max_edit_distance", 1)),
        autocorrect_on_commit=bool(sug.get("autocorrect_on_commit", True)),
        seed_file=sug.get("seed_file") or None,
    )
    storage = StorageSettings(
        db_path=str(sto.get("db_path", StorageSettings.db_path)),
        category_backend=str(sto.get("category_backend", "sqlite")),
        category_file=str(sto.get("category_file", StorageSettings.category_file)),
        storage_key=str(sto.get("storage_key", "userCategories")),
    )
    env_db = os.environ.get(DB_PATH_ENV)
    if env_db:
        storage.db_path = env_db

    ledger = LedgerSettings(
        default_category=str(led.get("default_category", "Food")),
    )
    return Settings(
        suggester=suggester,
        storage=storage,
        ledger=ledger,
        log_level=str(logging_cfg.get("level", "INFO")).upper(),
    )


def load_seed_categories(seed_file: str | Path | None = None) -> Tuple[str, ...]:
    """
    Default category seed. With no file this is DEFAULT_CATEGORIES.
    The YAML file is either a plain list or {"categories": [...]}.
    """
    if not seed_file:
        return DEFAULT_CATEGORIES

    p = Path(seed_file)
    if not p.is_absolute() and not p.exists():
        p = REPO / p
    if not p.exists():
        raise FileNotFoundError(f"Seed categories not found: {seed_file}")

    with open(p, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if isinstance(data, dict):
        data = data.get("categories")
    if not isinstance(data, list):
        raise ValueError(f"{p}: expected a list of categories")

    names: List[str] = dedupe_categories(data)
    if not names:
        raise ValueError(f"{p}: no usable categories")
    return tuple(names)
