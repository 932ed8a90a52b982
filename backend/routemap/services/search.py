"""
Route Map Backend: Search Ranking
==================================

What:  Local ranking for the camp and vendor search endpoints.
How:   The store narrows candidates with `ilike` filters; the rows are then
       scored here, deduplicated, ordered and truncated.

Scoring (per column, best column wins, case-insensitive):
    EXACT     3   value == query
    PREFIX    2   value starts with query
    SUBSTRING 1   query occurs inside value
    (none)    0   row dropped

Ties keep upstream order (Python's sort is stable).
"""

from typing import Any, Callable, Hashable, Iterable, List, Optional, Sequence, Tuple

from routemap.config import settings
from routemap.services.normalizer import lookup_key
from routemap.services.store_client import Row

EXACT = 3
PREFIX = 2
SUBSTRING = 1


def match_score(query: str, value: Any) -> int:
    q = lookup_key(query)
    v = lookup_key(value)
    if not q or not v:
        return 0
    if v == q:
        return EXACT
    if v.startswith(q):
        return PREFIX
    if q in v:
        return SUBSTRING
    return 0


def row_score(query: str, row: Row, columns: Sequence[str]) -> int:
    return max((match_score(query, row.get(column)) for column in columns), default=0)


def clamp_limit(limit: Optional[int]) -> int:
    """Caller limit bounded to 1..search_max_limit (default when missing)."""
    if limit is None:
        return settings.search_default_limit
    return max(1, min(int(limit), settings.search_max_limit))


def dedupe_key(row: Row, composite: Sequence[str]) -> Hashable:
    if row.get("id") is not None:
        return ("id", row["id"])
    return tuple(lookup_key(row.get(column)) for column in composite)


def rank_rows(
    rows: Iterable[Row],
    query: str,
    columns: Sequence[str],
    limit: int,
    composite_key: Sequence[str] = (),
    scorer: Optional[Callable[[str, Row], int]] = None,
) -> List[Row]:
    """
    Score, dedupe, sort and truncate candidate rows.

    Args:
        columns:       Columns matched against `query`
        composite_key: Dedupe key for rows without an id
        scorer:        Replaces the column scorer (vendors score business
                       numbers through their variants)
    """
    score = scorer or (lambda q, row: row_score(q, row, columns))
    seen = set()
    scored = []
    for row in rows:
        key = dedupe_key(row, composite_key or columns)
        if key in seen:
            continue
        seen.add(key)
        value = score(query, row)
        if value > 0:
            scored.append((value, row))

    scored.sort(key=lambda pair: pair[0], reverse=True)
    return [row for _, row in scored[:limit]]


def ilike_any(terms: Iterable[Tuple[str, str]]) -> str:
    """
    PostgREST `or=(col.ilike."*term*",...)` value.

    Args:
        terms: (column, search term) pairs; a row matching any pair is a
               candidate
    """
    conditions = []
    for column, term in terms:
        escaped = term.replace("\\", "\\\\").replace('"', '\\"')
        conditions.append(f'{column}.ilike."*{escaped}*"')
    return "(" + ",".join(conditions) + ")"
