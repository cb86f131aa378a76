from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from ..config import CATEGORIES


class IndexEntry(BaseModel):
    """One installable asset as listed in the registry index."""

    module: str
    description: str = ""
    tags: List[str] = Field(default_factory=list)
    version: Optional[str] = None
    bin: Optional[str] = None

    @field_validator("tags", mode="before")
    def validate_tags(cls, v):
        if v is None:
            return []
        if isinstance(v, str):
            return [v]
        return [str(t) for t in v]

    @field_validator("description", mode="before")
    def validate_description(cls, v):
        return "" if v is None else str(v)

    @property
    def origin(self) -> str:
        """``module@version`` recorded on installed entries."""
        return f"{self.module}@{self.version}" if self.version else self.module


class RegistryIndex(BaseModel):
    agents: Dict[str, IndexEntry] = Field(default_factory=dict)
    roles: Dict[str, IndexEntry] = Field(default_factory=dict)
    contexts: Dict[str, IndexEntry] = Field(default_factory=dict)
    tasks: Dict[str, IndexEntry] = Field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> "RegistryIndex":
        """Decode the index document; missing categories are empty.

        Raises ``ValueError`` when the document is not a mapping or an entry
        is malformed.
        """
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ValueError("registry index must be a mapping of categories")
        payload = {c: data.get(c) or {} for c in CATEGORIES}
        try:
            return cls(**payload)
        except ValidationError as exc:
            raise ValueError(f"malformed registry index: {exc}") from exc

    def category(self, category: str) -> Dict[str, IndexEntry]:
        return getattr(self, category, {}) if category in CATEGORIES else {}

    def find_module(self, category: str, module: str) -> Optional[str]:
        """Name of the entry in ``category`` whose module path is ``module``."""
        bare = module.split("@", 1)[0]
        for name, entry in self.category(category).items():
            if entry.module == bare:
                return name
        return None
