"""CLI entry point for AgentStart."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import click
from pydantic import ValidationError
from rich.console import Console

from agentstart import __version__
from agentstart.commands import AppState
from agentstart.commands.assets import assets as assets_group
from agentstart.commands.config import config as config_group
from agentstart.commands.resolve import resolve as resolve_cmd
from agentstart.commands.search import search as search_cmd
from agentstart.config import ConfigStore
from agentstart.errors import ConfigError
from agentstart.logging_config import configure_logging
from agentstart.paths import ConfigPaths
from agentstart.registry.client import RegistryClient
from agentstart.resolution.prompter import make_prompter
from agentstart.settings import AppSettings

logger = logging.getLogger(__name__)


def _load_settings() -> AppSettings:
    try:
        return AppSettings()
    except ValidationError as exc:
        raise ConfigError(f"invalid AGENTSTART_* setting: {exc}") from exc


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__, prog_name="agentstart")
@click.option("--log-level", default=None, help="Log level (override env)")
@click.option("--log-format", default=None, type=click.Choice(["json", "text"]))
@click.option("--config-dir", default=None, type=click.Path(file_okay=False), help="Global config directory")
@click.option("--local", is_flag=True, help="Read and write ./.agentstart only")
@click.option("--quiet", "-q", is_flag=True, help="Suppress progress messages")
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--no-registry", is_flag=True, help="Resolve from installed config only")
@click.option("--no-input", is_flag=True, help="Never prompt; ambiguous queries become errors")
@click.pass_context
def main(
    ctx: click.Context,
    log_level: Optional[str],
    log_format: Optional[str],
    config_dir: Optional[str],
    local: bool,
    quiet: bool,
    debug: bool,
    no_registry: bool,
    no_input: bool,
) -> None:
    """AgentStart - resolve, search and install agents, roles, contexts and tasks."""
    overrides = ctx.obj if isinstance(ctx.obj, dict) else {}
    settings = _load_settings()

    level = "DEBUG" if debug else (log_level or settings.log_level)
    configure_logging(level, log_format or settings.log_format)

    global_dir = config_dir or settings.config_dir
    paths = ConfigPaths.resolve(global_dir=Path(global_dir).expanduser() if global_dir else None)
    console = Console(stderr=True)
    prompter = overrides.get("prompter") or make_prompter(
        stdin=click.get_text_stream("stdin"),
        console=console,
        no_input=no_input,
        max_display=settings.max_display,
    )
    logger.debug("Config paths: global=%s local=%s", paths.global_dir, paths.local_dir)

    ctx.obj = AppState(
        settings=settings,
        paths=paths,
        store=ConfigStore(paths),
        client=RegistryClient(
            settings.registry_url,
            timeout=settings.registry_timeout,
            transport=overrides.get("transport"),
        ),
        prompter=prompter,
        console=console,
        quiet=quiet,
        local=local,
        use_registry=not no_registry,
    )


main.add_command(resolve_cmd)
main.add_command(search_cmd)
main.add_command(assets_group)
main.add_command(config_group)


if __name__ == "__main__":
    main()
