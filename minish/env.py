"""Environment variables and the state a shell session carries between lines."""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass, field
from itertools import takewhile
from typing import Iterable, Iterator


def env_key(entry: str) -> str:
    """Return the variable name of an ``NAME=value`` or ``NAME+=value`` entry."""
    eq = entry.find("=")
    if eq == -1:
        return entry
    plus = entry.find("+")
    trim = 1 if plus != -1 and entry[plus + 1:plus + 2] == "=" else 0
    return entry[:max(eq - trim, 0)]


class Environment:
    """An ordered list of ``NAME=value`` entries, as handed to programs."""

    def __init__(self, entries: Iterable[str] = ()) -> None:
        self.entries: list[str] = list(entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def __repr__(self) -> str:
        return f"Environment({self.entries!r})"

    def index_of(self, var: str) -> int | None:
        """Return the index of the entry whose name matches that of ``var``."""
        key = env_key(var)
        if not key:
            return None
        for index, entry in enumerate(self.entries):
            if env_key(entry) == key:
                return index
        return None

    def value(self, name: str) -> str:
        """Return the value of ``name``, or an empty string when it has none.

        The search stops at the first empty entry.
        """
        prefix = name + "="
        for entry in takewhile(bool, self.entries):
            if entry.startswith(prefix):
                return entry.split("=", 1)[1]
        return ""

    def replace(self, entry: str, index: int) -> None:
        """Overwrite the entry at ``index``; entries without a value are ignored."""
        if "=" not in entry:
            return
        if 0 <= index < len(self.entries):
            self.entries[index] = entry

    def append(self, entry: str) -> None:
        """Add a new entry, turning ``NAME+=value`` into ``NAME=value``."""
        if "+" in entry and "=" in entry:
            value = entry.split("=", 1)[1]
            if value:
                self.entries.append(f"{env_key(entry)}={value}")
            else:
                self.entries.append(entry[:entry.index("+")])
        else:
            self.entries.append(entry)

    def update_directory(self, variable: str, path: str | None) -> None:
        """Set ``variable`` to ``path``, adding it if it does not exist yet."""
        if path is None:
            return
        entry = f"{variable}={path}"
        index = self.index_of(entry)
        if index is None:
            self.append(entry)
        else:
            self.replace(entry, index)

    def as_dict(self) -> dict[str, str]:
        """Return the entries that carry a value as a mapping."""
        result: dict[str, str] = {}
        for entry in self.entries:
            name, sep, value = entry.partition("=")
            if sep:
                result[name] = value
        return result


def _default_heredoc_path() -> str:
    return os.path.join(tempfile.gettempdir(), f".minish_heredoc_{os.getpid()}_")


@dataclass
class ShellState:
    """Everything a running shell keeps from one command line to the next."""

    env: Environment = field(default_factory=Environment)
    exit_status: int = 0
    pid: int = field(default_factory=os.getpid)
    prog_name: str = "minishell"
    hd_path: str = field(default_factory=_default_heredoc_path)
    nb_heredoc: int = 0
    head: object | None = None