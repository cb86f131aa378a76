"""Install registry assets into the YAML config store."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional

from ..config import ConfigStore
from ..errors import AgentStartError, InstallFailedError
from ..paths import Scope
from ..registry.client import RegistryClient
from ..registry.index import IndexEntry, RegistryIndex

logger = logging.getLogger(__name__)

# Keys in an asset document that describe the package rather than the entry.
_PACKAGE_KEYS = {"name", "category", "role_module"}


def build_asset_content(data: Dict[str, Any], entry: IndexEntry) -> Dict[str, Any]:
    """Config fields for an installed asset, with registry provenance."""
    content = {k: v for k, v in data.items() if k not in _PACKAGE_KEYS}
    if not content.get("description") and entry.description:
        content["description"] = entry.description
    if not content.get("tags") and entry.tags:
        content["tags"] = list(entry.tags)
    if entry.bin and "bin" not in content:
        content["bin"] = entry.bin
    content["origin"] = entry.origin
    return content


class Installer:
    """Fetches an asset from the registry and writes it to a config scope."""

    def __init__(self, store: ConfigStore, client: RegistryClient) -> None:
        self.store = store
        self.client = client

    def install(
        self,
        category: str,
        name: str,
        entry: IndexEntry,
        scope: Scope = Scope.GLOBAL,
        index: Optional[RegistryIndex] = None,
    ) -> Path:
        try:
            data = self.client.fetch_asset(entry)
            content = build_asset_content(data, entry)
            role_module = data.get("role_module")
            if category == "tasks" and role_module and index is not None:
                role_name = self._install_role_dependency(str(role_module), scope, index)
                if role_name:
                    content["role"] = role_name
            path = self.store.write_asset(scope, category, name, content)
        except InstallFailedError:
            raise
        except AgentStartError as exc:
            raise InstallFailedError(category, name, exc) from exc
        except OSError as exc:
            raise InstallFailedError(category, name, exc) from exc
        logger.info("Installed %s %r from %s into %s", category, name, entry.origin, path)
        return path

    def _install_role_dependency(self, role_module: str, scope: Scope, index: RegistryIndex) -> Optional[str]:
        role_name = index.find_module("roles", role_module)
        if role_name is None:
            logger.warning("Role dependency %s is not in the registry index", role_module)
            return None
        if self.store.load(scope).has("roles", role_name):
            return role_name
        logger.debug("Installing role dependency %r", role_name)
        self.install("roles", role_name, index.roles[role_name], scope)
        return role_name
