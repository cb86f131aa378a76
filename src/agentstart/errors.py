"""Error hierarchy for AgentStart with friendly, actionable messages.

Every error the resolver can produce is a ``click.ClickException`` so command
handlers simply let them propagate; click prints them and exits non-zero.
"""

from __future__ import annotations

from typing import Optional, Sequence

import click

#: Maximum number of names listed in an ambiguity message.
MAX_LISTED_NAMES = 20


def format_name_list(names: Sequence[str], cap: int = MAX_LISTED_NAMES) -> str:
    """Join names for an error message, truncating past ``cap`` with a count."""
    shown = list(names[:cap])
    text = ", ".join(shown)
    if len(names) > cap:
        text += f" (showing {len(shown)} of {len(names)})"
    return text


class AgentStartError(click.ClickException):
    """Base class for all CLI-visible errors with enhanced formatting."""

    #: Emoji shown at the beginning of every error line
    emoji: str = "❌"

    #: Short, actionable suggestion shown after the main message.
    hint: Optional[str] = None

    def __init__(self, message: str, hint: Optional[str] = None) -> None:
        super().__init__(message)
        if hint is not None:
            self.hint = hint

    def __str__(self) -> str:
        return self.message

    @property
    def formatted_message(self) -> str:
        """
        Returns the final string that Click writes to stderr.
        Includes:
        * emoji + main message (bold)
        * optional hint on a new line (dim colour)
        """
        lines = [f"{self.emoji}  {click.style(self.message, fg='red', bold=True)}"]
        if self.hint:
            lines.append(click.style(f"💡 {self.hint}", fg="yellow"))
        return "\n".join(lines)

    # Click calls show to emit the message.
    def show(self, file=None) -> None:
        click.echo(self.formatted_message, err=True, file=file)


class ConfigError(AgentStartError):
    """Raised when a configuration file cannot be read or validated."""
    emoji = "🔧"

    def __init__(self, details: str):
        super().__init__(f"Configuration problem: {details}", "Fix the file or remove the offending entry.")


class QueryTooShortError(AgentStartError):
    """Raised by the command layer for queries under the minimum length."""
    emoji = "✏️"

    def __init__(self, query: str, minimum: int):
        super().__init__(
            f"Query {query!r} is too short: search terms must total at least {minimum} characters.",
            "Use a longer name, or the exact name of the entry.",
        )
        self.query = query
        self.minimum = minimum


class InvalidPatternError(AgentStartError):
    """A search term failed to compile as a regular expression."""
    emoji = "🚫"

    def __init__(self, term: str, cause: Exception):
        super().__init__(
            f"Invalid search pattern {term!r}: {cause}",
            "Escape regex metacharacters such as ( [ * + ? with a backslash.",
        )
        self.term = term
        self.cause = cause


class NotFoundError(AgentStartError):
    """Nothing matched the query in any resolution tier."""
    emoji = "🔍"

    def __init__(self, category: str, query: str):
        hint = f"Run {click.style(f'agentstart config list {category}', fg='cyan')} or {click.style('agentstart search', fg='cyan')} to see what exists."
        super().__init__(f"{_singular(category)} {query!r} not found", hint)
        self.category = category
        self.query = query


class AmbiguousError(AgentStartError):
    """Several entries matched and no interactive selection was possible."""
    emoji = "🔀"

    def __init__(self, category: str, query: str, names: Sequence[str]):
        super().__init__(
            f"ambiguous {_singular(category)} {query!r} matches: {format_name_list(names)}",
            "Specify the exact name or run interactively.",
        )
        self.category = category
        self.query = query
        self.names = list(names)


class AmbiguousShortNameError(AmbiguousError):
    """A short name is shared by several registry entries."""

    def __init__(self, category: str, query: str, names: Sequence[str]):
        super().__init__(category, query, sorted(names))
        self.message = (
            f"ambiguous {_singular(category)} {query!r}: short name matches "
            f"{format_name_list(self.names)} in the registry"
        )
        self.hint = "Use the full name, e.g. " + self.names[0]


class SelectionError(AgentStartError):
    """Interactive input could not be turned into a single choice."""
    emoji = "⚠️"

    def __init__(self, details: str):
        super().__init__(details)


class RegistryUnavailableError(AgentStartError):
    """The registry index or an asset could not be fetched."""
    emoji = "🌐"

    def __init__(self, details: str, cause: Optional[BaseException] = None):
        hint = (
            "• Verify you are online\n"
            "• If behind a proxy, set the environment variable "
            f"{click.style('HTTPS_PROXY', fg='cyan')}\n"
            f"• Pass {click.style('--no-registry', fg='cyan')} to resolve from installed config only"
        )
        super().__init__(f"Registry unavailable: {details}", hint)
        self.cause = cause


class InstallFailedError(AgentStartError):
    """Installing a registry asset into the config store failed."""
    emoji = "💥"

    def __init__(self, category: str, name: str, cause: BaseException):
        super().__init__(f"Installing {_singular(category)} {name!r} failed: {cause}")
        self.category = category
        self.name = name
        self.cause = cause


def _singular(category: str) -> str:
    return category[:-1] if category.endswith("s") else category
