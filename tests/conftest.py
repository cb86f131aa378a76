import io
import logging
from pathlib import Path

import pytest
import yaml
from rich.console import Console

from agentstart.config import InstalledConfig
from agentstart.paths import ConfigPaths, Scope
from agentstart.registry.index import RegistryIndex
from agentstart.resolution.models import ResolutionContext
from agentstart.resolution.prompter import InteractivePrompter, NonInteractivePrompter
from agentstart.resolution.resolver import Resolver


# ----------------------------------------------------------------------
# Registry / installer doubles
# ----------------------------------------------------------------------
class FakeRegistry:
    """Counts index fetches; optionally fails every fetch."""

    def __init__(self, index=None, error=None):
        self.index = index if index is not None else RegistryIndex()
        self.error = error
        self.calls = 0

    def fetch_index(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.index


class FakeInstaller:
    """Writes installed entries into a plain dict the resolver reloads from."""

    def __init__(self, data, error=None):
        self.data = data
        self.error = error
        self.calls = []

    def install(self, category, name, entry, scope=Scope.GLOBAL, index=None):
        self.calls.append((category, name, scope))
        if self.error is not None:
            raise self.error
        self.data.setdefault(category, {})[name] = {
            "description": entry.description,
            "tags": list(entry.tags),
            "origin": entry.origin,
        }


def make_index(**categories):
    """``make_index(agents={"claude": "Anthropic Claude"})`` style builder."""
    data = {}
    for category, entries in categories.items():
        data[category] = {}
        for name, fields in entries.items():
            if isinstance(fields, str):
                fields = {"description": fields}
            fields = dict(fields)
            fields.setdefault("module", f"github.com/agentstart/assets/{category}/{name}")
            data[category][name] = fields
    return RegistryIndex.from_dict(data)


# ----------------------------------------------------------------------
# Resolver factory
# ----------------------------------------------------------------------
@pytest.fixture
def console_buffer():
    return io.StringIO()


@pytest.fixture
def make_resolver(console_buffer):
    """Build a resolver over in-memory config.

    Returns ``(resolver, registry, installer)``; ``installed`` is a plain
    ``{category: {name: fields}}`` mapping that installs write back into.
    """

    def _make(installed=None, index=None, registry_error=None, answers=None,
              use_registry=True, registry_required=True, install_error=None):
        data = {c: dict(v) for c, v in (installed or {}).items()}
        registry = FakeRegistry(index=index, error=registry_error)
        installer = FakeInstaller(data, error=install_error)
        console = Console(file=console_buffer, width=120)
        if answers is None:
            prompter = NonInteractivePrompter()
        else:
            prompter = InteractivePrompter(console=console, stdin=io.StringIO(answers))
        context = ResolutionContext(
            prompter=prompter,
            console=console,
            use_registry=use_registry,
            registry_required=registry_required,
        )
        resolver = Resolver(
            InstalledConfig.from_dict(data),
            context,
            registry=registry,
            installer=installer,
            reload_config=lambda: InstalledConfig.from_dict(data),
        )
        return resolver, registry, installer

    return _make


# ----------------------------------------------------------------------
# Config directories
# ----------------------------------------------------------------------
@pytest.fixture
def config_paths(tmp_path, monkeypatch):
    """Isolated global and local config directories; cwd is the project dir."""
    global_dir = tmp_path / "global"
    work_dir = tmp_path / "work"
    global_dir.mkdir()
    work_dir.mkdir()
    monkeypatch.chdir(work_dir)
    monkeypatch.setenv("AGENTSTART_CONFIG_DIR", str(global_dir))
    monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
    return ConfigPaths.resolve(working_dir=work_dir, global_dir=global_dir)


def write_yaml(directory: Path, filename: str, data) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / filename
    path.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def _restore_root_logging():
    """The CLI replaces root handlers; put the originals back after each test."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
