"""Query parsing, pattern compilation and scoring.

A query is split on commas and whitespace into terms. Each term is compiled
as a case-insensitive regular expression, so plain words behave as substring
matches while ``^`` / ``$`` and other regex syntax still work.

Scoring adds, per pattern, 3 for a name hit and (when the richer fields are
searched) 1 for a description hit and 1 for a tag hit. Candidates scoring 0
are dropped; the rest are ordered by score descending then name ascending.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional, Pattern, Sequence, Tuple

from ..errors import InvalidPatternError, QueryTooShortError

MIN_QUERY_LENGTH = 3

NAME_WEIGHT = 3
DESCRIPTION_WEIGHT = 1
TAG_WEIGHT = 1

_SPLIT_RE = re.compile(r"[\s,]+")

CATEGORY_ORDER = {"agents": 0, "roles": 1, "contexts": 2, "tasks": 3}


@dataclass(frozen=True)
class Candidate:
    """The narrow view of an asset that matching needs."""

    name: str
    description: str = ""
    tags: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ScoredCandidate:
    candidate: Candidate
    score: int
    matched_terms: int

    @property
    def name(self) -> str:
        return self.candidate.name


@dataclass(frozen=True)
class SearchResult:
    """A registry index hit from a cross-category search."""

    category: str
    name: str
    entry: Any
    score: int
    tags: Tuple[str, ...] = field(default=())


def split_query(query: str) -> List[str]:
    return [p for p in _SPLIT_RE.split(query.strip()) if p]


def parse_search_patterns(query: str) -> List[str]:
    """Split ``query`` into unique terms, keeping the first spelling of each.

    Deduplication is case-insensitive but the case is kept so escapes such
    as ``\\S`` or ``\\W`` survive compilation.
    """
    seen = set()
    terms = []
    for part in split_query(query):
        key = part.lower()
        if key not in seen:
            seen.add(key)
            terms.append(part)
    return terms


def parse_search_terms(query: str) -> List[str]:
    """Like :func:`parse_search_patterns` but lowercased, for plain substring use."""
    return [t.lower() for t in parse_search_patterns(query)]


def validate_search_query(terms: Sequence[str], tags: Sequence[str] = (), query: Optional[str] = None) -> None:
    """Reject queries whose terms total fewer than ``MIN_QUERY_LENGTH`` characters.

    An empty query is allowed only when tags are given (tags-only search).
    """
    total = sum(len(t) for t in terms)
    if total >= MIN_QUERY_LENGTH or (total == 0 and tags):
        return
    raise QueryTooShortError(query if query is not None else " ".join(terms), MIN_QUERY_LENGTH)


def validate_query(query: str, tags: Sequence[str] = ()) -> List[str]:
    """Parse and validate ``query``; returns its terms."""
    terms = parse_search_patterns(query)
    validate_search_query(terms, tags, query=query)
    return terms


def compile_patterns(terms: Iterable[str]) -> List[Pattern[str]]:
    patterns = []
    for term in terms:
        try:
            patterns.append(re.compile(term, re.IGNORECASE))
        except re.error as exc:
            raise InvalidPatternError(term, exc) from exc
    return patterns


def score_candidate(candidate: Candidate, patterns: Sequence[Pattern[str]], name_only: bool = False) -> Tuple[int, int]:
    """Return ``(score, matched_terms)`` for one candidate."""
    score = 0
    matched = 0
    for pattern in patterns:
        term_score = 0
        if pattern.search(candidate.name):
            term_score += NAME_WEIGHT
        if not name_only:
            if candidate.description and pattern.search(candidate.description):
                term_score += DESCRIPTION_WEIGHT
            if any(pattern.search(tag) for tag in candidate.tags):
                term_score += TAG_WEIGHT
        if term_score:
            matched += 1
            score += term_score
    return score, matched


def sort_key(item: ScoredCandidate) -> Tuple[int, str]:
    return (-item.score, item.name)


def score_candidates(
    candidates: Iterable[Candidate],
    patterns: Sequence[Pattern[str]],
    name_only: bool = False,
    require_all: bool = False,
) -> List[ScoredCandidate]:
    """Score ``candidates`` against ``patterns``.

    With ``require_all`` a candidate must match every pattern (AND semantics);
    otherwise each pattern contributes independently.
    """
    results = []
    for candidate in candidates:
        score, matched = score_candidate(candidate, patterns, name_only=name_only)
        if score <= 0:
            continue
        if require_all and matched < len(patterns):
            continue
        results.append(ScoredCandidate(candidate=candidate, score=score, matched_terms=matched))
    results.sort(key=sort_key)
    return results


def matches_any_tag(entry_tags: Iterable[str], filter_tags: Iterable[str]) -> bool:
    wanted = {t.lower() for t in filter_tags}
    return any(t.lower() in wanted for t in entry_tags)


def category_order(category: str) -> int:
    return CATEGORY_ORDER.get(category, len(CATEGORY_ORDER))


def search_index(index, query: str, tags: Sequence[str] = (), categories: Optional[Sequence[str]] = None) -> List[SearchResult]:
    """Search every category of a registry index.

    All query terms must match (AND); when ``tags`` are given an entry must
    also carry at least one of them (OR). Tags alone select every tagged
    entry with score 1.
    """
    if index is None:
        return []
    terms = parse_search_patterns(query)
    if not terms and not tags:
        return []
    patterns = compile_patterns(terms)

    results: List[SearchResult] = []
    for category in categories or tuple(CATEGORY_ORDER):
        for name, entry in index.category(category).items():
            if tags and not matches_any_tag(entry.tags, tags):
                continue
            if patterns:
                candidate = Candidate(name=name, description=entry.description, tags=tuple(entry.tags))
                score, matched = score_candidate(candidate, patterns)
                if matched < len(patterns):
                    continue
            else:
                score = 1
            results.append(SearchResult(category=category, name=name, entry=entry, score=score, tags=tuple(entry.tags)))

    results.sort(key=lambda r: (-r.score, category_order(r.category), r.name))
    return results
