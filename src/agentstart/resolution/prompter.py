"""Disambiguation prompts.

The prompter is chosen once, at the command boundary, from whether stdin is a
terminal. The resolver never checks the terminal itself: it hands ambiguous
match lists to whichever prompter it was given.
"""

from __future__ import annotations

import sys
from typing import List, Optional, Protocol, Sequence, TextIO, Union

from rich.console import Console
from rich.prompt import Confirm, Prompt
from rich.prompt import Confirm, Prompt
from rich.table import Table
from rich.text import Text

from ..errors import AmbiguousError, SelectionError, format_name_list
from .models import AssetMatch, Category

DEFAULT_MAX_DISPLAY = 20

CategoryLike = Union[Category, str]


def _plural(category: CategoryLike) -> str:
    return category.value if isinstance(category, Category) else str(category)


class Prompter(Protocol):
    interactive: bool

    def select(self, matches: Sequence[AssetMatch], category: CategoryLike, query: str) -> AssetMatch:
        ...

    def select_many(self, names: Sequence[str], category: CategoryLike, query: str) -> List[str]:
        ...

    def confirm(self, message: str) -> bool:
        ...


def parse_selection(raw: str, displayed: Sequence[AssetMatch]) -> AssetMatch:
    """Turn one line of input into a displayed match.

    Accepts a 1-based index, an exact case-insensitive name, or a substring
    that identifies exactly one displayed entry.
    """
    text = raw.strip()
    if not text:
        raise SelectionError("no selection made")
    count = len(displayed)
    if text.isdecimal():
        choice = int(text)
        if 1 <= choice <= count:
            return displayed[choice - 1]
        raise SelectionError(f"invalid selection: {text} (choose 1-{count})")

    lowered = text.lower()
    for match in displayed:
        if match.name.lower() == lowered:
            return match

    partial = [m for m in displayed if lowered in m.name.lower()]
    if len(partial) == 1:
        return partial[0]
    if partial:
        raise SelectionError(
            f"invalid selection: {text!r} matches {format_name_list([m.name for m in partial])}"
        )
    raise SelectionError(f"invalid selection: {text}")


def parse_multi_selection(raw: str, names: Sequence[str]) -> List[str]:
    """Parse ``1,3``, ``2-4`` or ``all`` into names, in list order of entry."""
    text = raw.strip().lower()
    if not text:
        return []
    if text == "all":
        return list(names)
    count = len(names)
    seen = set()
    selected: List[str] = []
    for part in text.split(","):
        part = part.strip()
        if not part:
            continue
        if "-" in part[1:]:
            start_s, _, end_s = part.partition("-")
            try:
                start, end = int(start_s), int(end_s)
            except ValueError:
                raise SelectionError(f"invalid range {part!r}: enter numbers between 1 and {count}") from None
            if start < 1 or end > count or start > end:
                raise SelectionError(f"invalid range {part!r}: enter numbers between 1 and {count}")
            indices = range(start, end + 1)
        else:
            if not part.isdecimal() or not 1 <= int(part) <= count:
                raise SelectionError(f"invalid selection {part!r}: enter a number between 1 and {count}")
            indices = [int(part)]
        for i in indices:
            if i not in seen:
                seen.add(i)
                selected.append(names[i - 1])
    return selected


class NonInteractivePrompter:
    """Never reads input; ambiguity becomes an error listing every match."""

    interactive = False

    def select(self, matches: Sequence[AssetMatch], category: CategoryLike, query: str) -> AssetMatch:
        raise AmbiguousError(_plural(category), query, [m.name for m in matches])

    def select_many(self, names: Sequence[str], category: CategoryLike, query: str) -> List[str]:
        raise SelectionError(
            f"--yes flag required in non-interactive mode for ambiguous {_plural(category)[:-1]} {query!r}"
        )

    def confirm(self, message: str) -> bool:
        raise SelectionError("--yes flag required in non-interactive mode")


class InteractivePrompter:
    """Numbered menu on the console, one line of input from ``stdin``."""

    interactive = True

    def __init__(
        self,
        console: Optional[Console] = None,
        stdin: Optional[TextIO] = None,
        max_display: int = DEFAULT_MAX_DISPLAY,
    ) -> None:
        self.console = console or Console(stderr=True)
        self.stdin = stdin or sys.stdin
        self.max_display = max_display

    def _ask(self, prompt: str) -> str:
        answer = Prompt.ask(prompt, console=self.console, stream=self.stdin, default=None, show_default=False)
        if answer is None:
            raise SelectionError("no selection made: input closed")
        return answer

    def _render(self, rows: Sequence[AssetMatch], total: int, category: CategoryLike, query: str) -> None:
        plural = _plural(category)
        noun = plural if total != 1 else plural[:-1]
        self.console.print(Text(f"Found {total} {noun} matching {query!r}:"))
        self.console.print()
        mixed = len({m.category for m in rows}) > 1
        table = Table(box=None, show_header=False, padding=(0, 2, 0, 2))
        table.add_column(justify="right", style="cyan")
        table.add_column()
        table.add_column(style="dim")
        for i, match in enumerate(rows, start=1):
            source = match.source.value
            if mixed:
                source = f"{match.category.singular}, {source}"
            table.add_row(f"{i}.", Text(match.name), source)
        self.console.print(table)
        if len(rows) < total:
            self.console.print()
            self.console.print(
                f"Showing {len(rows)} of {total} matches. Refine search for more specific results.",
                style="yellow",
            )
        self.console.print()

    def select(self, matches: Sequence[AssetMatch], category: CategoryLike, query: str) -> AssetMatch:
        displayed = list(matches[: self.max_display])
        self._render(displayed, len(matches), category, query)
        line = self._ask(f"Select (1-{len(displayed)})")
        return parse_selection(line, displayed)

    def select_many(self, names: Sequence[str], category: CategoryLike, query: str) -> List[str]:
        self.console.print(Text(f"Found {len(names)} {_plural(category)} matching {query!r}:"))
        self.console.print()
        for i, name in enumerate(names, start=1):
            self.console.print(Text(f"  {i:2d}. {name}"))
        self.console.print()
        line = self._ask(f"Select (1-{len(names)}) or all")
        selected = parse_multi_selection(line, names)
        if not selected:
            self.console.print("Cancelled.")
        return selected

    def confirm(self, message: str) -> bool:
        return Confirm.ask(Text(message), console=self.console, stream=self.stdin, default=False)


def make_prompter(
    stdin: Optional[TextIO] = None,
    console: Optional[Console] = None,
    no_input: bool = False,
    max_display: int = DEFAULT_MAX_DISPLAY,
) -> Prompter:
    stream = stdin or sys.stdin
    isatty = getattr(stream, "isatty", None)
    if no_input or not (callable(isatty) and isatty()):
        return NonInteractivePrompter()
    return InteractivePrompter(console=console, stdin=stream, max_display=max_display)
