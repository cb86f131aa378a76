"""Installed registry assets and their versions.

An entry installed from the registry carries ``origin: <module>@<version>``;
entries without an origin were added by hand and are not tracked here.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from ..config import CATEGORIES, InstalledConfig
from ..paths import Scope
from ..registry.index import IndexEntry
from .search import category_order

_SEMVER = re.compile(r"^v?(\d+)(?:\.(\d+))?(?:\.(\d+))?(?:-([0-9A-Za-z.-]+))?(?:\+[0-9A-Za-z.-]+)?$")


def version_from_origin(origin: str) -> str:
    """``github.com/x/role@v0.1.1`` -> ``v0.1.1``; empty without a version."""
    _, sep, version = origin.rpartition("@")
    return version if sep else ""


def module_from_origin(origin: str) -> str:
    module, sep, _ = origin.rpartition("@")
    return module if sep else origin


def _parse_version(version: str) -> Optional[Tuple[Tuple[int, int, int], Tuple]]:
    m = _SEMVER.match(version.strip())
    if m is None:
        return None
    core = tuple(int(g or 0) for g in m.group(1, 2, 3))
    pre = m.group(4)
    if pre is None:
        # a release sorts after every prerelease of the same core
        return core, (1,)
    idents = tuple((0, int(p), "") if p.isdecimal() else (1, 0, p) for p in pre.split("."))
    return core, (0,) + idents


def compare_versions(a: str, b: str) -> int:
    """Semantic version comparison: -1, 0 or 1.

    Invalid versions sort before valid ones and compare equal to each other.
    """
    pa, pb = _parse_version(a), _parse_version(b)
    if pa is None or pb is None:
        return (pa is not None) - (pb is not None)
    return (pa > pb) - (pa < pb)


@dataclass
class InstalledAsset:
    category: str
    name: str
    origin: str
    scope: Scope

    @property
    def version(self) -> str:
        return version_from_origin(self.origin)

    @property
    def module(self) -> str:
        return module_from_origin(self.origin)

    @property
    def label(self) -> str:
        return f"{self.category}/{self.name}"

    def update_available(self, entry: Optional[IndexEntry]) -> bool:
        if entry is None or not entry.version:
            return False
        if not self.version:
            return True
        return compare_versions(entry.version, self.version) > 0


def collect_installed(
    config: InstalledConfig,
    local: Optional[InstalledConfig] = None,
    categories: Iterable[str] = CATEGORIES,
) -> List[InstalledAsset]:
    """Entries of ``config`` that came from the registry, by category then name.

    ``local`` is the local scope on its own; entries it defines are reported
    as local, everything else as global.
    """
    found: List[InstalledAsset] = []
    for category in categories:
        for name, entry in config.entries(category).items():
            if not entry.origin:
                continue
            scope = Scope.LOCAL if local is not None and local.has(category, name) else Scope.GLOBAL
            found.append(InstalledAsset(category, name, entry.origin, scope))
    found.sort(key=lambda a: (category_order(a.category), a.name))
    return found


def find_installed(assets: Iterable[InstalledAsset], category: str, name: str) -> Optional[InstalledAsset]:
    for asset in assets:
        if asset.category == category and asset.name == name:
            return asset
    return None
