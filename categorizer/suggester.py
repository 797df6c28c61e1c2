# categorizer/suggester.py
"""
Category autocomplete.

Owns the category vocabulary (default seed + categories the user has
learned), ranks suggestions for the text being typed, and resolves a
committed value either to an existing category (possibly fuzzy-corrected)
or to a new one that gets learned and persisted.

Flow per input: IDLE -> TYPING (on_query_change ...) -> select_suggestion
or commit -> IDLE.
"""
from __future__ import annotations

import logging
from typing import Callable, Iterable, List, Optional, Sequence

from ext_core.models import SuggesterState
from ext_utils.categories import (
    DEFAULT_CATEGORIES,
    dedupe_categories,
    find_category,
    sort_categories,
    without_defaults,
)
from ext_utils.fuzzy import contains_match, fuzzy_match
from storage.category_store import CategoryStore, ParseError, WriteError

log = logging.getLogger("categorizer.suggester")

EMPTY_QUERY_LIMIT = 5
QUERY_LIMIT = 6

ResolvedListener = Callable[[str], None]


def compute_suggestions(
    query: str,
    vocabulary: Sequence[str],
    *,
    empty_limit: int = EMPTY_QUERY_LIMIT,
    limit: int = QUERY_LIMIT,
    max_distance: int = 1,
) -> List[str]:
    """
    Ranked suggestions for `query`.

    Empty query: the first `empty_limit` entries, vocabulary order.
    Otherwise: entries that fuzzy-match or contain the query, sorted
    case-insensitively, at most `limit` of them.
    """
    q = (query or "").strip()
    if not q:
        return list(vocabulary[:empty_limit])

    hits = [
        cat
        for cat in vocabulary
        if fuzzy_match(q, cat, max_distance) or contains_match(q, cat)
    ]
    return sort_categories(hits)[:limit]


def merge_vocabulary(defaults: Iterable[str], learned) -> List[str]:
    """defaults ∪ learned, case-insensitively unique, defaults first."""
    if not isinstance(learned, (list, tuple)):
        learned = []
    return dedupe_categories([*defaults, *learned])


class CategorySuggester:
    """Autocomplete state for one category input."""

    def __init__(
        self,
        store: CategoryStore,
        defaults: Sequence[str] = DEFAULT_CATEGORIES,
        *,
        empty_limit: int = EMPTY_QUERY_LIMIT,
        limit: int = QUERY_LIMIT,
        max_distance: int = 1,
        autocorrect: bool = True,
    ):
        self.store = store
        self.defaults = tuple(dedupe_categories(defaults))
        self.empty_limit = empty_limit
        self.limit = limit
        self.max_distance = max_distance
        self.autocorrect = autocorrect

        self.vocabulary: List[str] = list(self.defaults)
        self.query = ""
        self.state = SuggesterState.IDLE
        self._suggestions: List[str] = []
        self._visible = False
        self._listeners: List[ResolvedListener] = []

    @classmethod
    def from_settings(cls, store: CategoryStore, settings, defaults=DEFAULT_CATEGORIES):
        """Build from a SuggesterSettings (see config.loader)."""
        return cls(
            store,
            defaults,
            empty_limit=settings.empty_query_limit,
            limit=settings.query_limit,
            max_distance=settings.max_edit_distance,
            autocorrect=settings.autocorrect_on_commit,
        )

    # ------------------------------------------------------------------
    # Output side
    # ------------------------------------------------------------------

    @property
    def suggestions(self) -> List[str]:
        return list(self._suggestions)

    @property
    def visible(self) -> bool:
        """Whether the host should render the dropdown right now."""
        return self._visible and bool(self._suggestions)

    def on_resolved(self, listener: ResolvedListener) -> ResolvedListener:
        """Register a callback for `category resolved` events."""
        self._listeners.append(listener)
        return listener

    def _emit(self, category: str) -> None:
        for listener in list(self._listeners):
            listener(category)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def initialize(self) -> List[str]:
        """
        (Re)load the vocabulary from the store. Never raises: unreadable or
        oddly shaped data leaves only the default seed.
        """
        try:
            learned = self.store.load()
        except ParseError as e:
            log.warning("Learned categories unreadable, using defaults: %s", e)
            learned = []

        if not isinstance(learned, (list, tuple)):
            log.warning(
                "Learned categories are a %s, not a list; using defaults",
                type(learned).__name__,
            )
            learned = []

        self.vocabulary = merge_vocabulary(self.defaults, learned)
        self._suggestions = self._compute(self.query)
        log.debug("Vocabulary loaded: %d categories", len(self.vocabulary))
        return list(self.vocabulary)

    def _compute(self, query: str) -> List[str]:
        return compute_suggestions(
            query,
            self.vocabulary,
            empty_limit=self.empty_limit,
            limit=self.limit,
            max_distance=self.max_distance,
        )

    def on_query_change(self, text: str) -> List[str]:
        self.query = text or ""
        self._suggestions = self._compute(self.query)
        self._visible = True
        self.state = SuggesterState.TYPING
        return self.suggestions

    def focus(self) -> List[str]:
        """Input gained focus (or the user asked for the list): show it."""
        self._suggestions = self._compute(self.query)
        self._visible = True
        return self.suggestions

    def set_value(self, text: str) -> None:
        """Replace the text without resolving anything, e.g. a form reset."""
        self.query = text or ""
        self._suggestions = self._compute(self.query)
        self._visible = False
        self.state = SuggesterState.IDLE

    def select_suggestion(self, category: str) -> str:
        """Pick an entry from the dropdown. The vocabulary is left alone."""
        self.query = category
        self._visible = False
        self.state = SuggesterState.IDLE
        self._emit(category)
        return category

    def _find_match(self, raw: str) -> Optional[str]:
        if not self.autocorrect:
            return find_category(self.vocabulary, raw)
        for cat in self.vocabulary:
            if fuzzy_match(raw, cat, self.max_distance):
                return cat
        return None

    def commit(self, raw_input: Optional[str] = None) -> Optional[str]:
        """
        Resolve the typed value (current query by default).

        Returns the resolved category, or None when the input is blank.
        A value with no close existing match is learned: appended, the
        vocabulary re-sorted, and the non-default part saved.
        """
        raw = self.query if raw_input is None else raw_input
        self._visible = False
        self.state = SuggesterState.IDLE

        if not (raw or "").strip():
            return None

        match = self._find_match(raw)
        resolved = (match if match is not None else raw).strip()
        if not resolved:
            return None

        existing = find_category(self.vocabulary, resolved)
        if existing is not None:
            resolved = existing
        else:
            self._learn(resolved)

        self.query = resolved
        self._suggestions = self._compute(self.query)
        self._emit(resolved)
        return resolved

    def _learn(self, category: str) -> None:
        self.vocabulary = sort_categories([*self.vocabulary, category])
        log.info("Learned new category %r", category)
        try:
            self.store.save(without_defaults(self.vocabulary, self.defaults))
        except WriteError as e:
            # the in-memory vocabulary keeps the entry for this session
            log.warning("Could not persist learned categories: %s", e)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def learned(self) -> List[str]:
        return without_defaults(self.vocabulary, self.defaults)
