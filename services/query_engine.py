"""Collection query engine: search, filter and sort an in-memory decision list.

Filters compose as AND and run before the sort. The input list is never
mutated. Odd filter values (an unknown tag, a non-numeric confidence) simply
match nothing.
"""

from datetime import datetime
from typing import Callable, Iterable, Optional

from models.schemas import FILTER_ALL, DecisionQuery, DecisionRecord
from models.vocabulary import DEFAULT_CONFIDENCE_LEVEL

SEARCH_FIELDS = ("title", "summary", "reasoning", "selected_option")


def matches_search(decision: DecisionRecord, search_term: Optional[str]) -> bool:
    """Case-insensitive substring match on title, summary, reasoning and selected option.

    A blank term matches everything. Note the term is trimmed only to decide
    whether it is blank; the match itself uses it as typed.
    """
    if not search_term or not search_term.strip():
        return True
    needle = search_term.lower()
    for field_name in SEARCH_FIELDS:
        value = getattr(decision, field_name, None)
        if value and needle in value.lower():
            return True
    return False


def matches_tag(decision: DecisionRecord, tag_filter: str) -> bool:
    if tag_filter == FILTER_ALL:
        return True
    return tag_filter in (decision.context_tags or [])


def matches_confidence(decision: DecisionRecord, confidence_filter: str) -> bool:
    if confidence_filter == FILTER_ALL:
        return True
    if decision.confidence_level is None:
        return False
    return str(decision.confidence_level) == str(confidence_filter).strip()


def _recent_key(decision: DecisionRecord) -> datetime:
    return decision.created_at


def _confidence_key(decision: DecisionRecord) -> int:
    if decision.confidence_level is None:
        return DEFAULT_CONFIDENCE_LEVEL
    return decision.confidence_level


def _impact_key(decision: DecisionRecord) -> float:
    return decision.estimated_impact_value or 0


SORT_KEYS: dict[str, Callable[[DecisionRecord], object]] = {
    "recent": _recent_key,
    "confidence": _confidence_key,
    "impact": _impact_key,
}


def sort_decisions(decisions: Iterable[DecisionRecord], sort_mode: str) -> list[DecisionRecord]:
    """Descending, stable sort. Unknown modes sort by recency."""
    key = SORT_KEYS.get(sort_mode, _recent_key)
    # sorted(reverse=True) keeps equal keys in input order
    return sorted(decisions, key=key, reverse=True)


def query_decisions(
    decisions: Iterable[DecisionRecord], query: Optional[DecisionQuery] = None
) -> list[DecisionRecord]:
    """Return the decisions that pass every filter in ``query``, in sort order."""
    query = query or DecisionQuery()
    filtered = [
        d
        for d in decisions
        if matches_search(d, query.search_term)
        and matches_tag(d, query.tag_filter)
        and matches_confidence(d, query.confidence_filter)
    ]
    return sort_decisions(filtered, query.sort_mode)
