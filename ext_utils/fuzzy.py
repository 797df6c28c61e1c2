# ext_utils/fuzzy.py
# Purpose: string matching used by category autocomplete.

from __future__ import annotations

from rapidfuzz.distance import Levenshtein


def normalize_label(text: str) -> str:
    """Trim + lowercase; the form every comparison below works on."""
    if not isinstance(text, str):
        text = str(text or "")
    return text.strip().lower()


def levenshtein(a: str, b: str) -> int:
    """Edit distance between two strings (insert/delete/substitute cost 1)."""
    return int(Levenshtein.distance(a or "", b or ""))


def fuzzy_match(query: str, candidate: str, max_distance: int = 1) -> bool:
    """
    True if the query is "close enough" to the candidate:
      - equal after trim/lowercase
      - candidate starts with the query
      - edit distance <= max_distance
    """
    a = normalize_label(query)
    b = normalize_label(candidate)
    if a == b:
        return True
    if b.startswith(a):
        return True
    # score_cutoff stops counting once the distance is past the limit
    return Levenshtein.distance(a, b, score_cutoff=max_distance) <= max_distance


def contains_match(query: str, candidate: str) -> bool:
    return normalize_label(query) in (candidate or "").lower()
