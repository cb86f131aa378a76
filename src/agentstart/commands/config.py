"""``agentstart config`` - inspect and prune installed configuration."""

from __future__ import annotations

from typing import Dict, List, Optional, Tuple

import click
from rich.console import Console
from rich.table import Table
from rich.text import Text

from ..assets.search import compile_patterns, validate_query
from ..config import CATEGORIES
from ..errors import NotFoundError, SelectionError
from ..resolution.models import Category
from ..resolution.resolver import Resolver
from ..resolution.sources import InstalledSource
from . import CATEGORY, AppState, pass_state


@click.group(name="config")
def config() -> None:
    """🔧 Inspect and edit the installed configuration."""


@config.command(name="list")
@click.argument("category", type=CATEGORY, required=False)
@pass_state
def list_config(state: AppState, category: Optional[Category]) -> None:
    """List installed entries in definition order (global first, then local)."""
    cfg = state.load_config()
    console = Console(soft_wrap=True)
    shown = 0
    for cat in [category.value] if category else CATEGORIES:
        entries = cfg.entries(cat)
        if not entries:
            continue
        table = Table(title=cat.capitalize(), title_justify="left", show_header=True, header_style="bold cyan")
        table.add_column("Name", style="green")
        table.add_column("Description")
        for name, entry in entries.items():
            table.add_row(Text(name), Text(entry.description))
        console.print(table)
        shown += 1
    if not shown:
        state.say(f"No {category.value if category else 'entries'} configured.")


@config.command(name="search")
@click.argument("query")
@pass_state
def search_config(state: AppState, query: str) -> None:
    """Search installed entries of every category; all terms must match."""
    patterns = compile_patterns(validate_query(query))
    cfg = state.load_config()
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Category")
    table.add_column("Name", style="green")
    table.add_column("Description")
    rows = 0
    for cat in CATEGORIES:
        for match in InstalledSource(cfg, Category(cat)).search(patterns):
            table.add_row(cat[:-1], Text(match.name), Text(match.description))
            rows += 1
    if not rows:
        state.say(f"No installed entries match {query!r}.")
        return
    Console(soft_wrap=True).print(table)


@config.command(name="remove")
@click.argument("category", type=CATEGORY)
@click.argument("queries", nargs=-1, required=True)
@click.option("--yes", "-y", is_flag=True, help="Remove every match without asking.")
@pass_state
def remove(state: AppState, category: Category, queries: Tuple[str, ...], yes: bool) -> None:
    """Remove the entries QUERIES refer to from the write scope.

    An exact name removes just that entry. A query matching several entries
    offers a multi-select (numbers, ranges such as 1-3, or "all"); with --yes
    every match is removed. Several ambiguous queries at once need --yes.
    """
    for query in queries:
        validate_query(query)

    scope = state.write_scope
    resolver = Resolver(state.load_config(scope), state.resolution_context())
    found: Dict[str, List[str]] = {}
    for query in queries:
        names = [m.name for m in resolver.find_matches(category, query, include_registry=False)]
        if not names:
            raise NotFoundError(category.value, query)
        found[query] = names

    ambiguous = [q for q, names in found.items() if len(names) > 1]
    if len(ambiguous) > 1 and not yes:
        raise SelectionError(
            f"--yes flag required to remove matches of several ambiguous queries: {', '.join(ambiguous)}"
        )

    selected: List[str] = []
    for query, names in found.items():
        if len(names) > 1 and not yes:
            names = state.prompter.select_many(names, category, query)
            if not names:
                return
        for name in names:
            if name not in selected:
                selected.append(name)

    if not yes:
        if len(selected) == 1:
            message = f"Remove {category.singular} {selected[0]!r} from {scope.value} config?"
        else:
            message = f"Remove {len(selected)} {category.value} ({', '.join(selected)}) from {scope.value} config?"
        if not state.prompter.confirm(message):
            state.say("Cancelled.")
            return

    for name in selected:
        state.store.remove(scope, category.value, name)
        state.say(f"Removed {category.singular} {name!r}")
