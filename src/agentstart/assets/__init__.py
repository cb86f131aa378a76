"""Asset search and installation."""

from .install import Installer
from .inventory import InstalledAsset, collect_installed, compare_versions, version_from_origin
from .search import (
    Candidate,
    MIN_QUERY_LENGTH,
    SearchResult,
    compile_patterns,
    parse_search_patterns,
    parse_search_terms,
    score_candidates,
    search_index,
    validate_query,
)

__all__ = [
    "Candidate",
    "InstalledAsset",
    "Installer",
    "MIN_QUERY_LENGTH",
    "SearchResult",
    "collect_installed",
    "compare_versions",
    "compile_patterns",
    "parse_search_patterns",
    "parse_search_terms",
    "score_candidates",
    "search_index",
    "validate_query",
    "version_from_origin",
]
