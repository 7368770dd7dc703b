"""Here-document collection into temporary files."""

from __future__ import annotations

import os
import signal
from typing import Callable, Iterable

from minish.env import ShellState
from minish.tokens import Token, TokenType

MAX_LENGTH = 4001
PROMPT = "> "

InputFunc = Callable[[str], "str | None"]


def create_heredoc_files(tokens: Iterable[Token], shell: ShellState) -> list[str]:
    """Number every here-doc token, give it a file path and create the file."""
    shell.nb_heredoc = 0
    created: list[str] = []
    for token in tokens:
        if token.type is not TokenType.HERE_DOC:
            continue
        shell.nb_heredoc += 1
        token.hd_id = shell.nb_heredoc
        token.file = f"{shell.hd_path}{shell.nb_heredoc}"
        with open(token.file, "a", encoding="utf-8"):
            pass
        shell.exit_status = 0
        created.append(token.file)
    return created


def _next_line(input_func: InputFunc) -> str | None:
    try:
        return input_func(PROMPT)
    except EOFError:
        return None


def read_heredoc(delimiter: str, path: str, input_func: InputFunc = input) -> None:
    """Append lines from ``input_func`` to ``path`` until ``delimiter`` is read.

    End of input ends the document with a warning.
    """
    while True:
        line = _next_line(input_func)
        if line is None:
            print(
                "minishell: warning: here-document delimited "
                f"by end-of-file (wanted `{delimiter}')",
                flush=True,
            )
            return
        if line == delimiter:
            return
        with open(path, "a", encoding="utf-8") as handle:
            handle.write(line + "\n")


def _too_long(tokens: list[Token]) -> bool:
    for token in tokens:
        if token.file and len(token.file) > MAX_LENGTH:
            print("Please, do not try run program inside a big file paths.", flush=True)
            return True
        if token.content and len(token.content) > MAX_LENGTH:
            print(
                "\nSerious, you're trying more than 4000 char's as a delimiter?!?!",
                flush=True,
            )
            return True
    return False


def run_heredocs(
    tokens: Iterable[Token], shell: ShellState, input_func: InputFunc = input
) -> bool:
    """Read the body of every here-doc; return False if any was not read.

    An interrupt stops the reading, clears the command tree and sets the
    exit status as a shell killed by SIGINT would.
    """
    tokens = list(tokens)
    if shell.nb_heredoc < 1:
        return True
    if _too_long(tokens):
        return False
    for token in tokens:
        if not token.file:
            continue
        try:
            read_heredoc(token.content, token.file, input_func)
        except KeyboardInterrupt:
            print(flush=True)
            shell.head = None
            shell.exit_status = 128 + int(signal.SIGINT)
            return False
    return True


def clean_heredoc_files(tokens: Iterable[Token]) -> None:
    """Remove the files created for here-docs."""
    for token in tokens:
        if token.file:
            try:
                os.unlink(token.file)
            except FileNotFoundError:
                pass