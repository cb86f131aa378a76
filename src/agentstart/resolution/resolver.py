"""Tiered name resolution across installed config and the asset registry.

Resolution of a query within one category runs three tiers:

1. exact installed name (or a unique installed short name) - never touches
   the registry;
2. exact registry name, full or short, installing the asset on a hit;
3. regex search over installed and registry candidates, merged with the
   installed entry winning any name collision.

A single match from tier 3 is used directly; several go to the prompter,
which either asks the user or raises ``AmbiguousError``. Registry matches
are installed into the configured scope before their name is returned.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, List, Optional, Protocol, Sequence

from ..assets.search import compile_patterns, parse_search_patterns, parse_search_terms, NAME_WEIGHT
from ..config import AgentConfig, InstalledConfig
from ..errors import InstallFailedError, NotFoundError, RegistryUnavailableError
from ..paths import Scope, is_file_path
from ..registry.index import IndexEntry, RegistryIndex
from .models import POLICIES, AssetMatch, AssetSource, Category, CategoryPolicy, MatchOrder, ResolutionContext
from .sources import InstalledSource, RegistrySource

logger = logging.getLogger(__name__)

#: Minimum merged score for a context search match to be included.
CONTEXT_SCORE_THRESHOLD = 2


class IndexFetcher(Protocol):
    def fetch_index(self) -> RegistryIndex:
        ...


class AssetInstaller(Protocol):
    def install(
        self,
        category: str,
        name: str,
        entry: IndexEntry,
        scope: Scope = Scope.GLOBAL,
        index: Optional[RegistryIndex] = None,
    ) -> object:
        ...


class _RegistryView:
    """Fetches the registry index at most once for one resolution call."""

    def __init__(self, fetcher: Optional[IndexFetcher], context: ResolutionContext) -> None:
        self._fetcher = fetcher
        self._context = context
        self._fetched = False
        self._index: Optional[RegistryIndex] = None

    def get(self) -> Optional[RegistryIndex]:
        if self._fetched:
            return self._index
        self._fetched = True
        if self._fetcher is None or not self._context.use_registry:
            logger.debug("Registry disabled, resolving from installed config only")
            return None
        self._context.say("Fetching registry index...")
        try:
            self._index = self._fetcher.fetch_index()
        except RegistryUnavailableError as exc:
            if self._context.registry_required:
                raise
            logger.warning("Registry unavailable, using installed config only: %s", exc)
            self._index = None
        return self._index


def merge_matches(
    installed: Sequence[AssetMatch],
    registry: Sequence[AssetMatch],
    order: MatchOrder = MatchOrder.SCORE,
) -> List[AssetMatch]:
    """Combine both sources; an installed name is never re-offered from the registry."""
    seen = {m.name for m in installed}
    merged = list(installed) + [m for m in registry if m.name not in seen]
    if order is MatchOrder.NAME:
        merged.sort(key=lambda m: m.name)
    else:
        merged.sort(key=lambda m: (-m.score, m.name))
    return merged


class Resolver:
    """Resolves user-supplied names to canonical config entry names.

    ``config`` is the snapshot candidates are read from. When an install
    happens the snapshot is stale: ``did_install`` is set for the caller and,
    if ``reload_config`` was supplied, the resolver reloads its own snapshot
    before reading installed candidates again.
    """

    def __init__(
        self,
        config: InstalledConfig,
        context: ResolutionContext,
        registry: Optional[IndexFetcher] = None,
        installer: Optional[AssetInstaller] = None,
        reload_config: Optional[Callable[[], InstalledConfig]] = None,
    ) -> None:
        self.config = config
        self.context = context
        self.registry = registry
        self.installer = installer
        self._reload_config = reload_config
        self.did_install = False
        self.installed: List[AssetMatch] = []
        self._stale = False

    # ------------------------------------------------------------------ #
    #   State
    # ------------------------------------------------------------------ #

    @property
    def config_stale(self) -> bool:
        """True once an install has happened; callers must reload their snapshot."""
        return self.did_install

    def reload(self) -> None:
        if self._reload_config is None:
            return
        self.config = self._reload_config()
        self._stale = False
        logger.debug("Reloaded configuration after install")

    def _refresh(self) -> None:
        if self._stale:
            self.reload()

    # ------------------------------------------------------------------ #
    #   Public API
    # ------------------------------------------------------------------ #

    def resolve(self, category: "str | Category", query: str) -> str:
        category = Category.parse(category)
        policy = POLICIES[category]
        if not query:
            return ""
        bypass = self._bypass(category, policy, query)
        if bypass is not None:
            return bypass
        return self._resolve_one(category, policy, query, _RegistryView(self.registry, self.context))

    def resolve_contexts(self, terms: Iterable[str]) -> List[str]:
        """Resolve context terms; each may select several contexts.

        File paths and the ``default`` tag pass through. A term that matches
        nothing is passed through unchanged so it can still act as a tag.
        """
        category = Category.CONTEXTS
        policy = POLICIES[category]
        view = _RegistryView(self.registry, self.context)
        resolved: List[str] = []

        def add(name: str) -> None:
            if name not in resolved:
                resolved.append(name)

        for term in terms:
            if not term:
                continue
            bypass = self._bypass(category, policy, term)
            if bypass is not None:
                add(bypass)
                continue

            self._refresh()
            local = self._exact_installed(category, term)
            if local:
                for name in local:
                    add(name)
                continue

            hit = self._exact_registry(category, term, view)
            if hit is not None:
                add(hit.name)
                continue

            patterns = compile_patterns(parse_search_patterns(term))
            matches = [
                m for m in self._search(category, policy, patterns, view.get())
                if m.score >= CONTEXT_SCORE_THRESHOLD
            ]
            logger.debug("Context %r: %d matches above threshold", term, len(matches))
            if not matches:
                add(term)
                continue
            for match in matches:
                if match.source is AssetSource.REGISTRY:
                    self._install(match, view.get())
                add(match.name)
        return resolved

    def find_matches(self, category: "str | Category", query: str, include_registry: bool = True) -> List[AssetMatch]:
        """Every entry ``query`` could mean, merged and ordered, without installing.

        An exact installed name yields just that entry.
        """
        category = Category.parse(category)
        policy = POLICIES[category]
        self._refresh()
        installed = InstalledSource(self.config, category)
        if installed.has(query):
            return [installed.match(query, NAME_WEIGHT)]
        patterns = compile_patterns(parse_search_patterns(query))
        if not patterns:
            return []
        index = None
        if include_registry:
            index = _RegistryView(self.registry, self.context).get()
        return self._search(category, policy, patterns, index)

    def resolve_model(self, query: str, agent: AgentConfig) -> str:
        """Map a model alias onto a key of ``agent.models``.

        Exact key first, then a unique key containing every term; anything
        else is passed through for the agent binary to interpret.
        """
        if not query:
            return ""
        if query in agent.models:
            return query
        terms = parse_search_terms(query)
        if not terms:
            return query
        hits = sorted(k for k in agent.models if all(t in k.lower() for t in terms))
        if len(hits) == 1:
            logger.debug("Model %r: matched %r", query, hits[0])
            return hits[0]
        if hits:
            logger.debug("Model %r: several matches %s, passing through", query, hits)
        return query

    # ------------------------------------------------------------------ #
    #   Tiers
    # ------------------------------------------------------------------ #

    def _bypass(self, category: Category, policy: CategoryPolicy, query: str) -> Optional[str]:
        if policy.path_bypass and is_file_path(query):
            logger.debug("%s %r: file path bypass", category.singular.title(), query)
            return query
        if policy.sentinel is not None and query == policy.sentinel:
            logger.debug("%s %r: sentinel passthrough", category.singular.title(), query)
            return query
        return None

    def _resolve_one(self, category: Category, policy: CategoryPolicy, query: str, view: _RegistryView) -> str:
        label = category.singular.title()
        self._refresh()

        # Tier 1: installed
        local = self._exact_installed(category, query)
        if len(local) == 1:
            logger.debug("%s %r: exact installed match %r", label, query, local[0])
            return local[0]
        if local:
            installed = InstalledSource(self.config, category)
            matches = [installed.match(name) for name in local]
            logger.debug("%s %r: %d installed short-name matches", label, query, len(matches))
            return self.context.prompter.select(matches, category, query).name

        # Tier 2: exact registry
        self.context.say(f"{label} {query!r} not found in configuration")
        hit = self._exact_registry(category, query, view)
        if hit is not None:
            return hit.name

        # Tier 3: search installed + registry
        patterns = compile_patterns(parse_search_patterns(query))
        matches = self._search(category, policy, patterns, view.get()) if patterns else []
        if not matches:
            raise NotFoundError(category.value, query)
        if len(matches) == 1:
            chosen = matches[0]
        else:
            chosen = self.context.prompter.select(matches, category, query)
        if chosen.source is AssetSource.REGISTRY:
            self._install(chosen, view.get())
        return chosen.name

    def _exact_installed(self, category: Category, query: str) -> List[str]:
        installed = InstalledSource(self.config, category)
        if installed.has(query):
            return [query]
        return installed.short_name_matches(query)

    def _exact_registry(self, category: Category, query: str, view: _RegistryView) -> Optional[AssetMatch]:
        index = view.get()
        if index is None:
            return None
        hit = RegistrySource(index, category).exact(query)
        if hit is None:
            return None
        logger.debug("%s %r: exact registry match %r", category.singular.title(), query, hit.name)
        self._install(hit, index)
        return hit

    def _search(self, category: Category, policy: CategoryPolicy, patterns, index: Optional[RegistryIndex]) -> List[AssetMatch]:
        installed = InstalledSource(self.config, category).search(patterns, name_only=policy.name_only)
        registry: List[AssetMatch] = []
        if index is not None:
            registry = RegistrySource(index, category).search(patterns, name_only=policy.name_only)
        merged = merge_matches(installed, registry, policy.order)
        logger.debug(
            "%s search: %d installed, %d registry, %d merged",
            category.singular.title(), len(installed), len(registry), len(merged),
        )
        return merged

    # ------------------------------------------------------------------ #
    #   Install-and-reload
    # ------------------------------------------------------------------ #

    def _install(self, match: AssetMatch, index: Optional[RegistryIndex]) -> None:
        if self.installer is None or match.entry is None:
            raise InstallFailedError(match.category.value, match.name, RuntimeError("no registry installer available"))
        scope = self.context.install_scope
        self.context.say(f"Installing {match.name} from registry...")
        self.installer.install(match.category.value, match.name, match.entry, scope, index)
        self.context.say(f"Installed {match.name} to {scope.value} config")
        self.did_install = True
        self._stale = True
        self.installed.append(match)
        self._refresh()


__all__: Sequence[str] = ["CONTEXT_SCORE_THRESHOLD", "Resolver", "merge_matches"]
