"""Name resolution: installed config first, then the registry, then search."""

from ..assets.search import Candidate
from .models import POLICIES, AssetMatch, AssetSource, Category, CategoryPolicy, MatchOrder, ResolutionContext
from .prompter import InteractivePrompter, NonInteractivePrompter, Prompter, make_prompter
from .resolver import CONTEXT_SCORE_THRESHOLD, Resolver, merge_matches

__all__ = [
    "AssetMatch",
    "AssetSource",
    "CONTEXT_SCORE_THRESHOLD",
    "Candidate",
    "Category",
    "CategoryPolicy",
    "InteractivePrompter",
    "MatchOrder",
    "NonInteractivePrompter",
    "POLICIES",
    "Prompter",
    "ResolutionContext",
    "Resolver",
    "make_prompter",
    "merge_matches",
]
