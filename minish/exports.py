"""The export and unset built-ins."""

from __future__ import annotations

import sys
from itertools import takewhile
from typing import Iterable, Sequence

from minish.env import ShellState, env_key


def _is_name_start(c: str) -> bool:
    return c == "_" or (c.isascii() and c.isalpha())


def _is_name_char(c: str) -> bool:
    return c == "_" or (c.isascii() and c.isalnum())


def is_valid_identifier(arg: str) -> bool:
    """Return True if ``arg`` is a usable ``NAME``, ``NAME=value`` or ``NAME+=value``."""
    if not arg or arg[0] in "=+" or not _is_name_start(arg[0]):
        return False
    if "=" not in arg and "+" in arg:
        return False
    name = arg.split("=", 1)[0]
    for index, c in enumerate(name):
        if c == "+":
            if arg[index + 1:index + 2] != "=":
                return False
        elif not _is_name_char(c):
            return False
    return True


def plus_mode(arg: str) -> bool:
    """Return True if ``arg`` appends to a variable (``NAME+=value``)."""
    eq = arg.find("=")
    return eq > 0 and arg[eq - 1] == "+"


def sorted_env(entries: Iterable[str]) -> list[str]:
    """Return the entries in the order ``export`` lists them.

    The first entry is compared only with the second; the rest are sorted.
    """
    items = list(entries)
    if len(items) >= 2 and items[0] > items[1]:
        items[0], items[1] = items[1], items[0]
    return items[:1] + sorted(items[1:])


def _listed_value(entry: str, entries: list[str]) -> str | None:
    if "=" not in entry:
        return None
    for candidate in takewhile(bool, entries):
        if candidate.startswith(entry) and "=" in candidate:
            return candidate.split("=", 1)[1]
    return ""


def export_no_args(shell: ShellState) -> None:
    """List every variable as ``declare -x NAME="value"``."""
    order = sorted_env(shell.env)
    for entry in order:
        value = _listed_value(entry, order)
        line = f"declare -x {env_key(entry)}"
        if value is not None:
            line += f'="{value}"'
        print(line, flush=True)


def _append_value(shell: ShellState, arg: str, index: int) -> None:
    addition = arg.split("=", 1)[1] if "=" in arg else ""
    current = shell.env.entries[index]
    if "=" in current:
        shell.env.entries[index] = current + addition
    else:
        shell.env.entries[index] = f"{current}={addition}"


def export(args: Sequence[str], shell: ShellState) -> int:
    """Set, append to or declare variables; list them all without arguments."""
    shell.exit_status = 0
    if not args:
        export_no_args(shell)
        return shell.exit_status
    for arg in args:
        if not is_valid_identifier(arg):
            print(
                f"{shell.prog_name}: export: `{arg}': not a valid identifier",
                file=sys.stderr,
                flush=True,
            )
            shell.exit_status = 1
            continue
        index = shell.env.index_of(arg)
        if index is not None and plus_mode(arg):
            _append_value(shell, arg, index)
        elif index is not None:
            shell.env.replace(arg, index)
        else:
            shell.env.append(arg)
        shell.exit_status = 0
    return shell.exit_status


def unset(args: Sequence[str], shell: ShellState) -> int:
    """Remove the named variables from the environment."""
    if not args:
        return shell.exit_status
    for arg in args:
        index = shell.env.index_of(arg)
        if index is not None:
            del shell.env.entries[index]
    shell.exit_status = 0
    return shell.exit_status