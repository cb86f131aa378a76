"""Read-only candidate views over installed config and the registry index."""

from __future__ import annotations

from typing import Dict, List, Optional, Pattern, Sequence

from ..assets.search import Candidate, score_candidates
from ..config import AssetConfig, InstalledConfig
from ..errors import AmbiguousShortNameError
from ..registry.index import IndexEntry, RegistryIndex
from .models import AssetMatch, Category


def short_name(name: str) -> str:
    """Trailing segment of a namespaced name: ``golang/review/code`` -> ``code``."""
    return name.rsplit("/", 1)[-1]


class InstalledSource:
    def __init__(self, config: InstalledConfig, category: Category) -> None:
        self.category = category
        self._entries: Dict[str, AssetConfig] = config.entries(category.value)

    def has(self, name: str) -> bool:
        return name in self._entries

    def candidates(self) -> List[Candidate]:
        return [
            Candidate(name=name, description=entry.description, tags=tuple(entry.tags))
            for name, entry in self._entries.items()
        ]

    def short_name_matches(self, query: str) -> List[str]:
        """Namespaced names whose trailing segment equals ``query``, sorted."""
        if "/" in query:
            return []
        return sorted(n for n in self._entries if "/" in n and short_name(n) == query)

    def match(self, name: str, score: int = 0) -> AssetMatch:
        entry = self._entries[name]
        return AssetMatch.installed(
            Candidate(name=name, description=entry.description, tags=tuple(entry.tags)),
            self.category,
            score,
        )

    def search(self, patterns: Sequence[Pattern[str]], name_only: bool = False) -> List[AssetMatch]:
        return [
            AssetMatch.installed(s.candidate, self.category, s.score)
            for s in score_candidates(self.candidates(), patterns, name_only=name_only, require_all=True)
        ]


class RegistrySource:
    def __init__(self, index: RegistryIndex, category: Category) -> None:
        self.category = category
        self._entries: Dict[str, IndexEntry] = index.category(category.value)

    def candidates(self) -> List[Candidate]:
        return [
            Candidate(name=name, description=entry.description, tags=tuple(entry.tags))
            for name, entry in self._entries.items()
        ]

    def exact(self, query: str) -> Optional[AssetMatch]:
        """Full-name match, else a unique short-name match.

        Several entries sharing the short name raise ``AmbiguousShortNameError``.
        """
        if query in self._entries:
            return AssetMatch.from_registry(query, self._entries[query], self.category)
        if "/" in query:
            return None
        hits = sorted(n for n in self._entries if short_name(n) == query)
        if len(hits) > 1:
            raise AmbiguousShortNameError(self.category.value, query, hits)
        if hits:
            return AssetMatch.from_registry(hits[0], self._entries[hits[0]], self.category)
        return None

    def search(self, patterns: Sequence[Pattern[str]], name_only: bool = False) -> List[AssetMatch]:
        return [
            AssetMatch.from_registry(s.name, self._entries[s.name], self.category, s.score)
            for s in score_candidates(self.candidates(), patterns, name_only=name_only, require_all=True)
        ]
