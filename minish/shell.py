"""The interactive loop: read a line, parse it, collect here-docs and run it."""

from __future__ import annotations

import os
import sys
from typing import Callable, Sequence

from minish.commands import ShellExit
from minish.env import Environment, ShellState
from minish.executor import run_tree
from minish.expand import tokenize
from minish.heredoc import clean_heredoc_files, create_heredoc_files, run_heredocs
from minish.parser import ExecNode, build_tree

PROMPT = "minishell$ "

InputFunc = Callable[[str], "str | None"]


def _has_work(tree: object) -> bool:
    if tree is None:
        return False
    if isinstance(tree, ExecNode):
        return tree.command is not None
    return tree.left is not None


def run_line(line: str, shell: ShellState, input_func: InputFunc = input) -> int:
    """Parse and run one command line; return the resulting exit status.

    Here-document bodies are read through ``input_func``. A command made of
    redirections alone is not run. ShellExit propagates when ``exit`` asks
    the shell to stop.
    """
    if not line:
        return shell.exit_status
    tokens = tokenize(line, shell)
    tree = build_tree(tokens)
    shell.head = tree
    try:
        create_heredoc_files(tokens, shell)
        run_heredocs(tokens, shell, input_func)
        if shell.head is not None and _has_work(shell.head):
            run_tree(shell.head, shell)
    finally:
        clean_heredoc_files(tokens)
        shell.nb_heredoc = 0
        shell.head = None
    return shell.exit_status


def _read_line(input_func: InputFunc, shell: ShellState) -> str | None:
    while True:
        try:
            return input_func(PROMPT)
        except EOFError:
            return None
        except KeyboardInterrupt:
            print(flush=True)
            shell.exit_status = 130


def main(argv: Sequence[str] | None = None) -> int:
    """Run the shell until ``exit`` or end of input; return the exit status."""
    args = list(sys.argv if argv is None else argv)
    shell = ShellState(env=Environment(f"{k}={v}" for k, v in os.environ.items()))
    if args:
        shell.prog_name = os.path.basename(args[0]) or shell.prog_name
    shell.prog_name = "minishell"
    while True:
        line = _read_line(input, shell)
        if line is None:
            print("exit", flush=True)
            return shell.exit_status
        try:
            run_line(line, shell)
        except ShellExit as exc:
            return exc.status
        except KeyboardInterrupt:
            print(flush=True)
            shell.exit_status = 130


if __name__ == "__main__":
    sys.exit(main())