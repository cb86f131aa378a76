"""Configuration directory discovery for AgentStart.

Two scopes are recognised:
- global: $XDG_CONFIG_HOME/agentstart (default ~/.config/agentstart)
- local:  ./.agentstart under the working directory

The merged view loads global first and local second.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Optional

LOCAL_DIR_NAME = ".agentstart"


class Scope(str, Enum):
    MERGED = "merged"
    GLOBAL = "global"
    LOCAL = "local"


def global_config_dir() -> Path:
    override = os.getenv("AGENTSTART_CONFIG_DIR")
    if override:
        return Path(os.path.expanduser(override))
    xdg = os.getenv("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "agentstart"
    return Path(os.path.expanduser("~/.config/agentstart"))


@dataclass(frozen=True)
class ConfigPaths:
    global_dir: Path
    local_dir: Path

    @classmethod
    def resolve(cls, working_dir: Optional[Path] = None, global_dir: Optional[Path] = None) -> "ConfigPaths":
        base = Path(working_dir) if working_dir else Path.cwd()
        return cls(
            global_dir=Path(global_dir) if global_dir else global_config_dir(),
            local_dir=base / LOCAL_DIR_NAME,
        )

    def dir_for(self, scope: Scope) -> Path:
        """Directory that writes for ``scope`` land in (merged writes go global)."""
        return self.local_dir if scope is Scope.LOCAL else self.global_dir

    def for_scope(self, scope: Scope) -> List[Path]:
        """Existing directories to load for ``scope``, lowest priority first."""
        if scope is Scope.GLOBAL:
            candidates = [self.global_dir]
        elif scope is Scope.LOCAL:
            candidates = [self.local_dir]
        else:
            candidates = [self.global_dir, self.local_dir]
        return [d for d in candidates if d.is_dir()]


def is_file_path(value: str) -> bool:
    """True for ``./x``, ``/x`` and ``~/x`` style values, which are used verbatim."""
    return bool(value) and (value.startswith("./") or value.startswith("/") or value.startswith("~"))
