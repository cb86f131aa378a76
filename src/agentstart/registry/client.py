"""HTTP client for the asset registry.

The registry is a static tree of YAML documents:

* ``<base_url>/index.yaml`` - the index, ``{category: {name: entry}}``
* ``<base_url>/<module>/<version>.yaml`` - one asset's fields

Every failure surfaces as ``RegistryUnavailableError``. The client neither
retries nor caches; callers fetch the index at most once per resolution.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx
import yaml

from ..errors import RegistryUnavailableError
from .index import IndexEntry, RegistryIndex

logger = logging.getLogger(__name__)

INDEX_PATH = "index.yaml"


class RegistryClient:
    def __init__(
        self,
        base_url: str,
        timeout: float = 5.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def _get_yaml(self, path: str) -> Any:
        url = f"{self.base_url}/{path.lstrip('/')}"
        logger.debug("GET %s", url)
        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport, follow_redirects=True) as client:
                resp = client.get(url)
                resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise RegistryUnavailableError(f"{url} returned HTTP {exc.response.status_code}", exc) from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise RegistryUnavailableError(f"{url}: {exc}", exc) from exc
        try:
            return yaml.safe_load(resp.text)
        except yaml.YAMLError as exc:
            raise RegistryUnavailableError(f"{url} is not valid YAML", exc) from exc

    def fetch_index(self) -> RegistryIndex:
        data = self._get_yaml(INDEX_PATH)
        try:
            index = RegistryIndex.from_dict(data)
        except ValueError as exc:
            raise RegistryUnavailableError(str(exc), exc) from exc
        logger.debug(
            "Registry index: %d agents, %d roles, %d contexts, %d tasks",
            len(index.agents), len(index.roles), len(index.contexts), len(index.tasks),
        )
        return index

    def asset_path(self, entry: IndexEntry) -> str:
        return f"{entry.module.strip('/')}/{entry.version or 'latest'}.yaml"

    def fetch_asset(self, entry: IndexEntry) -> Dict[str, Any]:
        data = self._get_yaml(self.asset_path(entry))
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise RegistryUnavailableError(f"asset {entry.module} is not a mapping")
        return data
