"""``agentstart search`` - browse the registry index."""

from __future__ import annotations

from typing import Tuple

import click
from rich.console import Console
from rich.table import Table
from rich.text import Text

from ..assets.search import search_index, validate_query
from . import AppState, pass_state, require_registry


@click.command(name="search")
@click.argument("query", nargs=-1)
@click.option("--tag", "-t", "tags", multiple=True, help="Only entries carrying this tag (repeatable).")
@pass_state
def search(state: AppState, query: Tuple[str, ...], tags: Tuple[str, ...]) -> None:
    """Search every registry category for QUERY.

    All terms must match an entry's name, description or tags. With --tag an
    entry must also carry at least one of the given tags; tags alone list
    every tagged entry.
    """
    text = " ".join(query)
    validate_query(text, tags)
    require_registry(state)

    state.say("Fetching registry index...")
    index = state.client.fetch_index()
    results = search_index(index, text, tags)
    if not results:
        state.say(f"No registry assets match {text or ', '.join(tags)!r}.")
        return

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Category")
    table.add_column("Name", style="green")
    table.add_column("Description")
    table.add_column("Tags", style="dim")
    for r in results:
        table.add_row(r.category[:-1], Text(r.name), Text(r.entry.description), ", ".join(r.tags))
    Console(soft_wrap=True).print(table)
