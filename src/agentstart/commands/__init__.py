"""Click command groups and the per-invocation state they share."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

import click
from rich.console import Console

from ..assets.install import Installer
from ..config import ConfigStore, InstalledConfig
from ..errors import AgentStartError
from ..paths import ConfigPaths, Scope
from ..registry.client import RegistryClient
from ..resolution.models import Category, ResolutionContext
from ..resolution.prompter import Prompter
from ..resolution.resolver import Resolver
from ..settings import AppSettings


@dataclass
class AppState:
    """Everything a command needs, built once by the root group."""

    settings: AppSettings
    paths: ConfigPaths
    store: ConfigStore
    client: RegistryClient
    prompter: Prompter
    console: Console = field(default_factory=lambda: Console(stderr=True))
    quiet: bool = False
    local: bool = False
    use_registry: bool = True

    @property
    def read_scope(self) -> Scope:
        return Scope.LOCAL if self.local else Scope.MERGED

    @property
    def write_scope(self) -> Scope:
        return Scope.LOCAL if self.local else Scope.GLOBAL

    @property
    def installer(self) -> Installer:
        return Installer(self.store, self.client)

    def load_config(self, scope: Optional[Scope] = None) -> InstalledConfig:
        return self.store.load(scope or self.read_scope)

    def resolution_context(self) -> ResolutionContext:
        return ResolutionContext(
            prompter=self.prompter,
            console=self.console,
            quiet=self.quiet,
            use_registry=self.use_registry,
            registry_required=self.settings.registry_required,
            install_scope=Scope.GLOBAL,
        )

    def resolver(self) -> Resolver:
        """Resolver over the read scope; registry installs always land globally."""
        return Resolver(
            self.load_config(),
            self.resolution_context(),
            registry=self.client,
            installer=self.installer,
            reload_config=self.load_config,
        )

    def say(self, message: str) -> None:
        if not self.quiet:
            self.console.print(message, markup=False, highlight=False)


pass_state = click.make_pass_decorator(AppState)


class CategoryType(click.ParamType):
    """``agent``/``agents``/``role``/... as a :class:`Category`."""

    name = "category"

    def convert(self, value, param, ctx):
        if isinstance(value, Category):
            return value
        try:
            return Category.parse(value)
        except ValueError:
            choices = ", ".join(c.value for c in Category)
            self.fail(f"{value!r} is not a category (choose from {choices})", param, ctx)


CATEGORY = CategoryType()


def require_registry(state: AppState) -> None:
    if not state.use_registry:
        raise AgentStartError(
            "This command needs the asset registry, which --no-registry disabled.",
            "Run it again without --no-registry.",
        )


__all__ = ["AppState", "CATEGORY", "CategoryType", "pass_state", "require_registry"]
