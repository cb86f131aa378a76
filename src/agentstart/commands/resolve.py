"""``agentstart resolve`` - print the canonical name a query refers to."""

from __future__ import annotations

import click

from ..assets.search import split_query, validate_query
from ..resolution.models import Category
from . import CATEGORY, AppState, pass_state


@click.command(name="resolve")
@click.argument("category", type=CATEGORY)
@click.argument("query")
@pass_state
def resolve(state: AppState, category: Category, query: str) -> None:
    """Resolve QUERY to an entry name in CATEGORY.

    Installed config is searched first; the registry is consulted only when
    nothing installed matches, and a registry match is installed before its
    name is printed. For contexts, QUERY may hold several comma or space
    separated terms and every resolved name is printed on its own line.
    """
    validate_query(query)
    resolver = state.resolver()
    if category is Category.CONTEXTS:
        for name in resolver.resolve_contexts(split_query(query)):
            click.echo(name)
    else:
        click.echo(resolver.resolve(category, query))
    if resolver.did_install:
        state.say(f"Configuration updated ({len(resolver.installed)} installed)")
