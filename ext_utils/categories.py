# ext_utils/categories.py
# Default category seed plus helpers for keeping a category list
# unique and ordered the way the autocomplete expects.

from __future__ import annotations

from typing import Iterable, List, Optional

DEFAULT_CATEGORIES = (
    "Food",
    "Travel",
    "Shopping",
    "Bills",
    "Entertainment",
    "Health",
    "Other",
)


def category_key(name: str) -> str:
    return name.strip().casefold()


def clean_category(name) -> Optional[str]:
    """Return the trimmed label, or None for blanks and non-strings."""
    if not isinstance(name, str):
        return None
    name = name.strip()
    return name or None


def dedupe_categories(names: Iterable) -> List[str]:
    """Drop blanks and case-insensitive repeats; first spelling wins."""
    seen = set()
    out: List[str] = []
    for raw in names:
        name = clean_category(raw)
        if name is None:
            continue
        key = category_key(name)
        if key in seen:
            continue
        seen.add(key)
        out.append(name)
    return out


def sort_categories(names: Iterable[str]) -> List[str]:
    # casefold first, raw text breaks ties so the order is stable
    return sorted(names, key=lambda n: (category_key(n), n))


def find_category(names: Iterable[str], name: str) -> Optional[str]:
    """Stored spelling of `name`, compared case-insensitively."""
    key = category_key(name)
    for n in names:
        if category_key(n) == key:
            return n
    return None


def without_defaults(names: Iterable[str], defaults: Iterable[str]) -> List[str]:
    default_keys = {category_key(d) for d in defaults}
    return [n for n in names if category_key(n) not in default_keys]
