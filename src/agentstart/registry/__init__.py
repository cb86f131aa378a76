"""Remote asset registry: index models and HTTP client."""

from .client import RegistryClient
from .index import IndexEntry, RegistryIndex

__all__ = ["IndexEntry", "RegistryClient", "RegistryIndex"]
