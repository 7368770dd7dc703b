"""Variable expansion and word splitting over the token sequence."""

from __future__ import annotations

from dataclasses import replace

from minish.env import ShellState
from minish.tokens import (
    SPACES,
    QuoteStatus,
    Token,
    TokenType,
    add_exec_nodes,
    convert_empty_strings,
    create_tokens,
    delete_spaces,
    join_heredoc_to_words,
    join_tokens,
)

_TO_SPACE = str.maketrans({c: " " for c in SPACES})


def _is_name_char(c: str) -> bool:
    return c == "_" or (c.isascii() and c.isalnum())


def expand_variable(name: str, shell: ShellState) -> str:
    """Return the value of the variable ``name`` in ``shell``'s environment."""
    if not name:
        return name
    if name.startswith("$"):
        return str(shell.pid)
    prefix = name + "="
    if shell.env.index_of(prefix) is None:
        return ""
    if any(entry.startswith(prefix) for entry in shell.env):
        return shell.env.value(name)
    return ""


def _expansion_at(text: str, pos: int, shell: ShellState) -> tuple[int, str]:
    """Expand the reference whose name starts at ``pos``; return (length, value)."""
    c = text[pos]
    if c == "?":
        return 1, str(shell.exit_status)
    if c == "$":
        return 1, str(shell.pid)
    if c == "0":
        return 1, shell.prog_name
    if c.isascii() and c.isdigit():
        return 1, ""
    if _is_name_char(c):
        end = pos
        while end < len(text) and _is_name_char(text[end]):
            end += 1
        return end - pos, expand_variable(text[pos:end], shell)
    return 1, "$" + c


def expand_text(text: str, shell: ShellState) -> str:
    """Replace every ``$`` reference in ``text``; expanded text is not rescanned."""
    i = 0
    while i + 1 < len(text):
        if text[i] == "$":
            start = i + 1
            consumed, value = _expansion_at(text, start, shell)
            text = text[:i] + value + text[start + consumed:]
            i += len(value)
        else:
            i += 1
    return text


def make_expansions(tokens: list[Token], shell: ShellState) -> list[Token]:
    """Expand words and redirection targets that are not single-quoted."""
    result: list[Token] = []
    for token in tokens:
        if (
            (token.type is TokenType.WORD or token.type.is_file_redirection)
            and token.status is not QuoteStatus.SINGLE
        ):
            content = expand_text(token.content, shell)
            token = replace(
                token,
                content=content,
                maybe_to_delete=token.maybe_to_delete or not content,
            )
        result.append(token)
    return result


def split_on_whitespace(tokens: list[Token]) -> list[Token]:
    """Split unquoted words that contain whitespace into separate words."""
    result: list[Token] = []
    for token in tokens:
        if (
            token.type is not TokenType.WORD
            or token.status is not QuoteStatus.NORMAL
            or len(token.content) <= 1
            or not any(c in SPACES for c in token.content)
        ):
            result.append(token)
            continue
        normalized = token.content.translate(_TO_SPACE)
        parts = [part for part in normalized.split(" ") if part]
        if not parts:
            result.append(replace(token, content=normalized))
            continue
        for position, part in enumerate(parts):
            if position:
                result.append(Token(TokenType.WHITE_SPACE, " "))
            result.append(Token(TokenType.WORD, part))
    return result


def delete_null_expansions(tokens: list[Token]) -> list[Token]:
    """Drop words that expanded to nothing where they would stand alone."""
    result: list[Token] = []
    followers = tokens[1:] + [None]
    for token, following in zip(tokens, followers):
        if token.maybe_to_delete:
            if following is not None:
                if following.type is not TokenType.WORD:
                    continue
            elif result and result[-1].type is TokenType.EXEC:
                continue
        result.append(token)
    return result


def tokenize(line: str, shell: ShellState) -> list[Token]:
    """Run the full lexing and expansion pipeline over one command line."""
    tokens = create_tokens(line)
    tokens = join_heredoc_to_words(tokens)
    tokens = make_expansions(tokens, shell)
    tokens = split_on_whitespace(tokens)
    tokens = delete_null_expansions(tokens)
    tokens = add_exec_nodes(tokens)
    tokens = convert_empty_strings(tokens)
    tokens = join_tokens(tokens)
    return delete_spaces(tokens)