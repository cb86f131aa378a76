"""Layered YAML configuration store.

Each scope directory holds ``*.yaml`` files whose top-level keys are the
asset categories (``agents``, ``roles``, ``contexts``, ``tasks``) plus an
optional ``settings`` block. Global is loaded before local; a local entry that
redefines a global name replaces its value but keeps the global position.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Type

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import ConfigError
from .paths import ConfigPaths, Scope

logger = logging.getLogger(__name__)

CATEGORIES = ("agents", "roles", "contexts", "tasks")


class AssetConfig(BaseModel):
    """Fields shared by every installed asset; unknown keys are kept as-is."""

    model_config = ConfigDict(extra="allow")

    description: str = ""
    tags: List[str] = Field(default_factory=list)
    origin: Optional[str] = Field(default=None, description="Registry module@version this entry was installed from")

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


class AgentConfig(AssetConfig):
    bin: Optional[str] = None
    command: Optional[str] = None
    default_model: Optional[str] = None
    models: Dict[str, str] = Field(default_factory=dict)


class RoleConfig(AssetConfig):
    prompt: Optional[str] = None
    file: Optional[str] = None
    command: Optional[str] = None
    optional: bool = False


class ContextConfig(AssetConfig):
    prompt: Optional[str] = None
    file: Optional[str] = None
    command: Optional[str] = None
    required: bool = False
    default: bool = False


class TaskConfig(AssetConfig):
    prompt: Optional[str] = None
    file: Optional[str] = None
    command: Optional[str] = None
    role: Optional[str] = None
    agent: Optional[str] = None


CATEGORY_MODELS: Dict[str, Type[AssetConfig]] = {
    "agents": AgentConfig,
    "roles": RoleConfig,
    "contexts": ContextConfig,
    "tasks": TaskConfig,
}


class InstalledConfig:
    """An in-memory snapshot of the merged configuration."""

    def __init__(
        self,
        categories: Optional[Dict[str, Dict[str, AssetConfig]]] = None,
        settings: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.categories: Dict[str, Dict[str, AssetConfig]] = {c: {} for c in CATEGORIES}
        for category, entries in (categories or {}).items():
            self.categories[category] = dict(entries)
        self.settings: Dict[str, Any] = dict(settings or {})

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "InstalledConfig":
        """Build a snapshot from plain mappings (as they appear in YAML)."""
        cfg = cls(settings=data.get("settings") or {})
        for category in CATEGORIES:
            for name, raw in (data.get(category) or {}).items():
                cfg.categories[category][str(name)] = _build_entry(category, str(name), raw, "<memory>")
        return cfg

    def entries(self, category: str) -> Dict[str, AssetConfig]:
        return self.categories.get(category, {})

    def names(self, category: str) -> List[str]:
        return list(self.entries(category))

    def get(self, category: str, name: str) -> Optional[AssetConfig]:
        return self.entries(category).get(name)

    def has(self, category: str, name: str) -> bool:
        return name in self.entries(category)

    def __iter__(self) -> Iterator[str]:
        return iter(CATEGORIES)


def _build_entry(category: str, name: str, raw: Any, source: str) -> AssetConfig:
    model = CATEGORY_MODELS[category]
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError(f"{source}: {category}.{name} must be a mapping, got {type(raw).__name__}")
    try:
        return model(**raw)
    except ValidationError as exc:
        raise ConfigError(f"{source}: invalid {category}.{name}: {exc}") from exc


def _read_yaml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise ConfigError(f"{path}: {exc}") from exc
    except OSError as exc:
        raise ConfigError(f"{path}: {exc.strerror or exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: top level must be a mapping")
    return data


class ConfigStore:
    """Reads and writes the YAML files under the global and local scope directories."""

    def __init__(self, paths: ConfigPaths) -> None:
        self.paths = paths

    def load(self, scope: Scope = Scope.MERGED) -> InstalledConfig:
        cfg = InstalledConfig()
        for directory in self.paths.for_scope(scope):
            for path in sorted(directory.glob("*.yaml")):
                data = _read_yaml(path)
                logger.debug("Loaded config file %s", path)
                for category in CATEGORIES:
                    section = data.get(category)
                    if section is None:
                        continue
                    if not isinstance(section, dict):
                        raise ConfigError(f"{path}: {category} must be a mapping")
                    target = cfg.categories[category]
                    for name, raw in section.items():
                        # dict assignment keeps the position of an existing key
                        target[str(name)] = _build_entry(category, str(name), raw, str(path))
                if isinstance(data.get("settings"), dict):
                    cfg.settings.update(data["settings"])
        return cfg

    def category_file(self, scope: Scope, category: str) -> Path:
        return self.paths.dir_for(scope) / f"{category}.yaml"

    def defining_file(self, scope: Scope, category: str, name: str) -> Optional[Path]:
        """The file whose definition of ``name`` wins when the scope is loaded."""
        directory = self.paths.dir_for(scope)
        found = None
        for path in sorted(directory.glob("*.yaml")) if directory.is_dir() else []:
            section = _read_yaml(path).get(category)
            if isinstance(section, dict) and name in section:
                found = path
        return found

    def write_asset(self, scope: Scope, category: str, name: str, data: Dict[str, Any]) -> Path:
        """Insert or replace ``name`` in the scope.

        An existing definition is replaced in place; a new name goes to
        ``<category>.yaml``.
        """
        if category not in CATEGORIES:
            raise ConfigError(f"unknown category {category!r}")
        _build_entry(category, name, data, "<install>")
        path = self.defining_file(scope, category, name) or self.category_file(scope, category)
        doc = _read_yaml(path) if path.exists() else {}
        section = doc.get(category)
        if not isinstance(section, dict):
            section = {}
        section[name] = data
        doc[category] = section
        self._save(path, doc)
        logger.debug("Wrote %s %r to %s", category, name, path)
        return path

    def remove(self, scope: Scope, category: str, name: str) -> Path:
        """Delete ``name`` from whichever file in the scope directory defines it."""
        directory = self.paths.dir_for(scope)
        for path in sorted(directory.glob("*.yaml")) if directory.is_dir() else []:
            doc = _read_yaml(path)
            section = doc.get(category)
            if isinstance(section, dict) and name in section:
                del section[name]
                self._save(path, doc)
                logger.debug("Removed %s %r from %s", category, name, path)
                return path
        raise ConfigError(f"{category} entry {name!r} is not defined in {scope.value} config ({directory})")

    @staticmethod
    def _save(path: Path, doc: Dict[str, Any]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            yaml.safe_dump(doc, f, default_flow_style=False, sort_keys=False, indent=2, allow_unicode=True)
