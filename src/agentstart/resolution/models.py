"""Types shared by the resolver, its candidate sources and the prompters."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Dict, Optional

from rich.console import Console

from ..assets.search import Candidate
from ..paths import Scope
from ..registry.index import IndexEntry

if TYPE_CHECKING:
    from .prompter import Prompter


class Category(str, Enum):
    AGENTS = "agents"
    ROLES = "roles"
    CONTEXTS = "contexts"
    TASKS = "tasks"

    @classmethod
    def parse(cls, value: "str | Category") -> "Category":
        """Accept ``agent``/``agents`` style names, case-insensitively."""
        if isinstance(value, Category):
            return value
        key = str(value).strip().lower()
        for member in cls:
            if key in (member.value, member.value[:-1]):
                return member
        raise ValueError(f"unknown category {value!r}")

    @property
    def singular(self) -> str:
        return self.value[:-1]


class AssetSource(str, Enum):
    INSTALLED = "installed"
    REGISTRY = "registry"


class MatchOrder(str, Enum):
    SCORE = "score"
    NAME = "name"


@dataclass(frozen=True)
class CategoryPolicy:
    """How one category is matched and which query shapes bypass resolution."""

    name_only: bool = False
    order: MatchOrder = MatchOrder.SCORE
    path_bypass: bool = False
    sentinel: Optional[str] = None


POLICIES: Dict[Category, CategoryPolicy] = {
    Category.AGENTS: CategoryPolicy(),
    Category.ROLES: CategoryPolicy(path_bypass=True),
    Category.CONTEXTS: CategoryPolicy(path_bypass=True, sentinel="default"),
    Category.TASKS: CategoryPolicy(name_only=True, order=MatchOrder.NAME, path_bypass=True),
}


@dataclass(frozen=True)
class AssetMatch:
    name: str
    category: Category
    source: AssetSource
    score: int = 0
    entry: Optional[IndexEntry] = None
    description: str = ""

    @classmethod
    def installed(cls, candidate: Candidate, category: Category, score: int = 0) -> "AssetMatch":
        return cls(
            name=candidate.name,
            category=category,
            source=AssetSource.INSTALLED,
            score=score,
            description=candidate.description,
        )

    @classmethod
    def from_registry(cls, name: str, entry: IndexEntry, category: Category, score: int = 0) -> "AssetMatch":
        return cls(
            name=name,
            category=category,
            source=AssetSource.REGISTRY,
            score=score,
            entry=entry,
            description=entry.description,
        )


@dataclass
class ResolutionContext:
    """Per-invocation capabilities handed to the resolver.

    ``prompter`` decides how ambiguity is handled (interactive menu or an
    ``AmbiguousError``); ``console`` receives progress messages.
    """

    prompter: "Prompter"
    console: Console = field(default_factory=lambda: Console(stderr=True))
    quiet: bool = False
    use_registry: bool = True
    registry_required: bool = True
    install_scope: Scope = Scope.GLOBAL

    def say(self, message: str) -> None:
        if not self.quiet:
            self.console.print(message, markup=False, highlight=False)
