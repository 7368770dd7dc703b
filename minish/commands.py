"""Built-in commands that act on the shell itself: echo, cd, pwd, env and exit."""

from __future__ import annotations

import os
import re
import sys
from typing import Sequence

from minish.env import ShellState

_N_FLAG = re.compile(r"-n+")
_OVERFLOW = "9223372036854775808"


class ShellExit(Exception):
    """Raised when the shell is asked to terminate with ``status``."""

    def __init__(self, status: int) -> None:
        super().__init__(status)
        self.status = status


def _err(message: str) -> None:
    print(message, file=sys.stderr, flush=True)


def _getcwd() -> str | None:
    try:
        return os.getcwd()
    except OSError:
        return None


def echo(args: Sequence[str], shell: ShellState) -> int:
    """Print ``args`` separated by spaces; leading ``-n`` flags drop the newline.

    The trailing newline is left out only when the first argument is exactly
    ``-n``.
    """
    shell.exit_status = 0
    if not args:
        print(flush=True)
        return shell.exit_status
    skip = 0
    for arg in args:
        if not _N_FLAG.fullmatch(arg):
            break
        skip += 1
    text = " ".join(args[skip:])
    end = "" if args[0] == "-n" else "\n"
    print(text, end=end, flush=True)
    return shell.exit_status


def _safe_chdir(path: str | None, shell: ShellState, home_missing: bool = False) -> None:
    try:
        if path is None:
            raise FileNotFoundError(path)
        os.chdir(path)
    except OSError:
        if home_missing or path is None:
            _err("cd : HOME not set")
        else:
            _err(f"cd : {path}: No such file or directory")
        shell.exit_status = 1
        return
    shell.exit_status = 0
    shell.env.update_directory("PWD", _getcwd())


def _change_home(args: Sequence[str], shell: ShellState) -> None:
    if not args or args[0] == "--":
        old_home = _getcwd()
        shell.env.update_directory("OLDPWD", old_home)
        home = shell.env.value("HOME")
        _safe_chdir(home, shell, home_missing=not home)
        shell.env.update_directory("PWD", home)
    elif args[0] == "~":
        home = os.environ.get("HOME")
        _safe_chdir(home, shell)
        shell.env.update_directory("PWD", home)


def _previous_directory(shell: ShellState) -> None:
    previous_dir = shell.env.value("OLDPWD")
    if previous_dir:
        print(previous_dir, flush=True)
        _safe_chdir(previous_dir, shell)
    else:
        print(f"{shell.prog_name}: cd: OLDPWD not set", flush=True)


def cd(args: Sequence[str], shell: ShellState) -> int:
    """Change the working directory and keep PWD and OLDPWD up to date."""
    if args:
        if not args[0]:
            return shell.exit_status
        if len(args) > 1:
            _err("cd : too many arguments")
            shell.exit_status = 1
            return shell.exit_status
    previous = _getcwd()
    if not args or args[0] == "~" or args[0].startswith("--"):
        _change_home(args, shell)
    elif args[0] == "-":
        _previous_directory(shell)
    else:
        _safe_chdir(args[0], shell)
    shell.env.update_directory("OLDPWD", previous)
    return shell.exit_status


def pwd(shell: ShellState) -> int:
    """Print the current working directory."""
    current = _getcwd()
    if current is None:
        shell.exit_status = 1
        return shell.exit_status
    print(current, flush=True)
    shell.exit_status = 0
    return shell.exit_status


def env(shell: ShellState) -> int:
    """Print every environment entry that carries a value."""
    for entry in shell.env:
        if "=" in entry:
            print(entry, flush=True)
    return shell.exit_status


def _exit_code_problem(args: Sequence[str], shell: ShellState) -> int:
    if len(args) > 1:
        return 1
    arg = args[0]
    start = 1 if arg[:1] in ("-", "+") else 0
    digits = arg[start:]
    numeric_error = f"{shell.prog_name} : exit : {arg}: numeric argument required"
    if not digits or arg == _OVERFLOW:
        _err(numeric_error)
        return 2
    if arg != "--" and not all("0" <= c <= "9" for c in digits):
        _err(numeric_error)
        return 2
    return 0


def _exit_value(text: str) -> int:
    stripped = text.lstrip(" \t\n\v\f\r")
    sign = 1
    if stripped[:1] in ("-", "+"):
        sign = -1 if stripped[0] == "-" else 1
        stripped = stripped[1:]
    match = re.match(r"[0-9]*", stripped)
    digits = match.group(0) if match else ""
    return (sign * int(digits or "0")) & 0xFF


def exit_builtin(args: Sequence[str], shell: ShellState, in_pipe: bool = False) -> int:
    """Leave the shell by raising ShellExit with the requested status.

    With more than one argument nothing is left: an error is reported and
    the exit status becomes 1.
    """
    if args and not in_pipe:
        print("exit", flush=True)
    if not args:
        shell.exit_status = 0
        raise ShellExit(shell.exit_status)
    problem = _exit_code_problem(args, shell)
    if problem == 0:
        shell.exit_status = _exit_value(args[0])
    elif problem == 1:
        _err(f"{shell.prog_name} : exit : too many arguments")
        shell.exit_status = 1
        return shell.exit_status
    else:
        shell.exit_status = problem
    raise ShellExit(shell.exit_status)