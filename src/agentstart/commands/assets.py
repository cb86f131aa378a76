"""``agentstart assets`` - install, inspect and update registry assets."""

from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

import click
from rich.console import Console
from rich.table import Table
from rich.text import Text

from ..assets.inventory import InstalledAsset, collect_installed, find_installed
from ..assets.search import search_index, validate_query
from ..config import CATEGORIES
from ..errors import AgentStartError, NotFoundError
from ..paths import Scope
from ..registry.index import RegistryIndex
from ..resolution.models import AssetMatch, Category
from ..resolution.sources import RegistrySource
from . import CATEGORY, AppState, pass_state, require_registry


@click.group(name="assets")
def assets() -> None:
    """📦 Install and inspect registry assets."""


def _categories(category: Optional[Category]) -> List[Category]:
    return [category] if category else [Category(c) for c in CATEGORIES]


def _registry_matches(index: RegistryIndex, query: str, categories: Sequence[Category]) -> List[AssetMatch]:
    """Exact full or short names first; otherwise entries matching every term."""
    exact: List[AssetMatch] = []
    for cat in categories:
        hit = RegistrySource(index, cat).exact(query)
        if hit is not None:
            exact.append(hit)
    if exact:
        return exact
    return [
        AssetMatch.from_registry(r.name, r.entry, Category(r.category), r.score)
        for r in search_index(index, query, categories=[c.value for c in categories])
    ]


def _installed(state: AppState, category: Optional[Category] = None) -> List[InstalledAsset]:
    local = state.store.load(Scope.LOCAL)
    cats = [c.value for c in _categories(category)]
    return collect_installed(state.load_config(), local, cats)


def _fetch_index(state: AppState) -> RegistryIndex:
    require_registry(state)
    state.say("Fetching registry index...")
    return state.client.fetch_index()


# ---------------------------------------------------------------------- #
#   add
# ---------------------------------------------------------------------- #
@assets.command(name="add")
@click.argument("queries", nargs=-1, required=True)
@click.option("--category", "-c", type=CATEGORY, default=None, help="Only consider this category.")
@click.option("--local", "local_flag", is_flag=True, help="Install into ./.agentstart instead of the global config.")
@pass_state
def add(state: AppState, queries: Tuple[str, ...], category: Optional[Category], local_flag: bool) -> None:
    """Find each QUERY in the registry and install it.

    An exact full or short name wins; otherwise every registry entry matching
    all terms is offered, and several matches need a selection. Entries that
    are already installed from the registry are left alone; use
    ``assets update`` for those.
    """
    for query in queries:
        validate_query(query)
    scope = Scope.LOCAL if local_flag else state.write_scope
    index = _fetch_index(state)

    failures: List[AgentStartError] = []
    for query in queries:
        try:
            _add_one(state, index, query, category, scope)
        except AgentStartError as exc:
            if len(queries) == 1:
                raise
            state.console.print(Text(f"Error installing {query!r}: {exc}", style="red"))
            failures.append(exc)
    if failures:
        raise AgentStartError(
            f"{len(failures)} of {len(queries)} assets failed to install.",
            "Check the errors above and retry the failed queries.",
        )


def _add_one(
    state: AppState, index: RegistryIndex, query: str, category: Optional[Category], scope: Scope
) -> None:
    matches = _registry_matches(index, query, _categories(category))
    label = category.value if category else "assets"
    if not matches:
        raise NotFoundError(label, query)
    chosen = matches[0] if len(matches) == 1 else state.prompter.select(matches, category or label, query)
    cat = chosen.category.value

    config = state.load_config(scope)
    existing = config.get(cat, chosen.name)
    if existing is not None and existing.origin:
        asset = InstalledAsset(cat, chosen.name, existing.origin, scope)
        if asset.update_available(chosen.entry):
            state.say(f"Already installed: {asset.label} ({asset.version or 'unversioned'} -> {chosen.entry.version})")
        else:
            state.say(f"Already installed: {asset.label} ({asset.version or 'unversioned'} -> current)")
        return
    if existing is not None:
        state.console.print(
            Text(f"Replacing manually-added {cat[:-1]} {chosen.name} with the registry version", style="yellow")
        )

    state.say(f"Installing {chosen.name} from registry...")
    path = state.installer.install(cat, chosen.name, chosen.entry, scope, index)
    state.say(f"Installed {chosen.category.singular} {chosen.name} to {scope.value} config ({path})")


# ---------------------------------------------------------------------- #
#   list
# ---------------------------------------------------------------------- #
@assets.command(name="list")
@click.argument("category", type=CATEGORY, required=False)
@click.option("--updates", "-u", is_flag=True, help="Compare with the registry index and show available updates.")
@pass_state
def list_assets(state: AppState, category: Optional[Category], updates: bool) -> None:
    """List installed entries that came from the registry."""
    installed = _installed(state, category)
    if not installed:
        noun = category.value if category else "assets"
        state.say(f"No registry {noun} installed.")
        return
    index = _fetch_index(state) if updates else None

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Category")
    table.add_column("Name", style="green")
    table.add_column("Version")
    table.add_column("Scope", style="dim")
    if index is not None:
        table.add_column("Status")
    for asset in installed:
        row = [asset.category[:-1], Text(asset.name), asset.version or "-", asset.scope.value]
        if index is not None:
            entry = index.category(asset.category).get(asset.name)
            if entry is None:
                row.append(Text("not in registry", style="dim"))
            elif asset.update_available(entry):
                row.append(Text(f"update available: {entry.version}", style="yellow"))
            else:
                row.append(Text("latest", style="green"))
        table.add_row(*row)
    Console(soft_wrap=True).print(table)


# ---------------------------------------------------------------------- #
#   info
# ---------------------------------------------------------------------- #
@assets.command(name="info")
@click.argument("query", nargs=-1, required=True)
@pass_state
def info(state: AppState, query: Tuple[str, ...]) -> None:
    """Show registry details and installation status for QUERY.

    Several words are combined with AND. Without a terminal the first of
    several matches is shown.
    """
    text = " ".join(query)
    validate_query(text)
    index = _fetch_index(state)
    matches = _registry_matches(index, text, _categories(None))
    if not matches:
        raise NotFoundError("assets", text)
    if len(matches) == 1:
        chosen = matches[0]
    elif state.prompter.interactive:
        chosen = state.prompter.select(matches, "assets", text)
    else:
        chosen = matches[0]
        state.say(f"Showing first of {len(matches)} matches. Use 'agentstart search {text}' to see all.")

    entry = chosen.entry
    installed = find_installed(_installed(state), chosen.category.value, chosen.name)
    out = Console(soft_wrap=True)
    out.print(Text(f"{chosen.category.value}/{chosen.name}", style="bold"))
    out.rule(style="dim")
    out.print(Text.assemble(("Type: ", "dim"), chosen.category.value))
    out.print(Text.assemble(("Module: ", "dim"), entry.module))
    if entry.description:
        out.print(Text.assemble(("Description: ", "dim"), entry.description))
    if entry.tags:
        out.print(Text.assemble(("Tags: ", "dim"), ", ".join(entry.tags)))
    if entry.version:
        out.print(Text.assemble(("Version: ", "dim"), entry.version))
    out.print()
    if installed is None:
        out.print("  Not installed")
    else:
        status = f"✓ Installed ({installed.scope.value}, {installed.version or 'unversioned'})"
        if installed.update_available(entry):
            status += f", update available: {entry.version}"
        out.print(Text(status, style="green"))
    out.rule(style="dim")
    if installed is None:
        out.print(f"Use 'agentstart assets add {chosen.name}' to install.", markup=False, highlight=False)


# ---------------------------------------------------------------------- #
#   update
# ---------------------------------------------------------------------- #
@assets.command(name="update")
@click.argument("query", required=False)
@click.option("--dry-run", is_flag=True, help="Show what would change without installing.")
@click.option("--force", is_flag=True, help="Reinstall even when the installed version is current.")
@pass_state
def update(state: AppState, query: Optional[str], dry_run: bool, force: bool) -> None:
    """Reinstall installed assets whose registry version is newer.

    QUERY limits the update to assets whose name or category contains it.
    """
    installed = _installed(state)
    if query:
        needle = query.lower()
        installed = [a for a in installed if needle in a.name.lower() or needle in a.category]
    if not installed:
        state.say(f"No installed assets matching {query!r}." if query else "No registry assets installed.")
        return

    index = _fetch_index(state)
    if dry_run:
        click.echo("Dry run - no changes applied:")
    updated = current = failed = 0
    for asset in installed:
        entry = index.category(asset.category).get(asset.name)
        if entry is None or not (force or asset.update_available(entry)):
            click.echo(f"  Current {asset.label}")
            current += 1
            continue
        change = f"{asset.version or 'unversioned'} -> {entry.version or 'latest'}"
        if not dry_run:
            try:
                state.installer.install(asset.category, asset.name, entry, asset.scope, index)
            except AgentStartError as exc:
                click.echo(f"  Failed  {asset.label}: {exc}")
                failed += 1
                continue
        click.echo(f"  Updated {asset.label} {change}")
        updated += 1

    click.echo(f"{updated} updated, {current} current, {failed} failed")
    if failed:
        raise AgentStartError(f"{failed} of {len(installed)} assets failed to update.")
