"""Lexical analysis of a command line into a flat token sequence.

The tokenizer works in small passes, each taking a list of tokens and
returning a new one, so the pipeline can interleave them with expansion.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum, IntEnum

SPACES = " \t\n\v\f\r"
EXEC_CONTENT = "ND_EXEC "
EMPTY_QUOTES = "\x02"
_NON_WORD = frozenset("|<>\"'") | frozenset(SPACES)


class TokenType(IntEnum):
    """Kinds of token; every kind from HERE_DOC upwards is a redirection."""

    WORD = 0
    WHITE_SPACE = 1
    PIPE = 2
    EXEC = 3
    HERE_DOC = 4
    REDIR_IN = 5
    REDIR_OUT = 6
    APPEND = 7

    @property
    def is_redirection(self) -> bool:
        return self >= TokenType.HERE_DOC

    @property
    def is_file_redirection(self) -> bool:
        """Redirections that name a file directly (everything but here-docs)."""
        return self > TokenType.HERE_DOC

    @property
    def is_output(self) -> bool:
        return self >= TokenType.REDIR_OUT


class QuoteStatus(Enum):
    """Quoting context a word was read in."""

    NORMAL = "normal"
    SINGLE = "single"
    DOUBLE = "double"


@dataclass
class Token:
    """One lexical unit of a command line."""

    type: TokenType
    content: str
    status: QuoteStatus = QuoteStatus.NORMAL
    file: str | None = None
    hd_id: int = -1
    maybe_to_delete: bool = False


def is_word(c: str) -> bool:
    """Return True if ``c`` can be part of an unquoted word."""
    return bool(c) and c not in _NON_WORD


def count_spaces(text: str) -> int:
    """Return the number of whitespace characters at the start of ``text``."""
    return len(text) - len(text.lstrip(SPACES))


def _word_end(line: str, start: int) -> int:
    end = start
    while end < len(line) and is_word(line[end]):
        end += 1
    return end


def _quote_status(c: str) -> QuoteStatus:
    if c == "'":
        return QuoteStatus.SINGLE
    if c == '"':
        return QuoteStatus.DOUBLE
    return QuoteStatus.NORMAL


def _append_redirection(tokens: list[Token], line: str, start: int) -> int:
    op = line[start]
    doubled = line[start + 1:start + 2] == op
    if op == "<":
        kind = TokenType.HERE_DOC if doubled else TokenType.REDIR_IN
    else:
        kind = TokenType.APPEND if doubled else TokenType.REDIR_OUT
    pos = start + (2 if doubled else 1)
    pos += count_spaces(line[pos:])
    end = _word_end(line, pos)
    tokens.append(Token(kind, line[pos:end]))
    return end


def create_tokens(line: str) -> list[Token]:
    """Split ``line`` into raw tokens, starting with an EXEC marker."""
    tokens = [Token(TokenType.EXEC, EXEC_CONTENT)]
    i = 0
    length = len(line)
    while i < length:
        if is_word(line[i]):
            end = _word_end(line, i)
            tokens.append(Token(TokenType.WORD, line[i:end]))
            i = end
            if i >= length:
                break
        c = line[i]
        status = _quote_status(c)
        if status is not QuoteStatus.NORMAL:
            close = line.find(c, i + 1)
            if close == -1:
                close = length
            inner = line[i + 1:close]
            tokens.append(Token(TokenType.WORD, inner or EMPTY_QUOTES, status))
            i = close + 1
        elif c in SPACES:
            i += count_spaces(line[i:])
            tokens.append(Token(TokenType.WHITE_SPACE, " "))
        elif c == "|":
            tokens.append(Token(TokenType.PIPE, "|"))
            i += 1
        else:
            i = _append_redirection(tokens, line, i)
    return tokens


def _absorb_words(tokens: list[Token], absorbs) -> list[Token]:
    result: list[Token] = []
    for token in tokens:
        if token.type is TokenType.WORD and result and absorbs(result[-1].type):
            last = result[-1]
            result[-1] = replace(last, content=last.content + token.content)
        else:
            result.append(token)
    return result


def join_heredoc_to_words(tokens: list[Token]) -> list[Token]:
    """Merge the words that directly follow a here-doc into its delimiter."""
    return _absorb_words(tokens, lambda kind: kind is TokenType.HERE_DOC)


def join_tokens(tokens: list[Token]) -> list[Token]:
    """Merge adjacent words, and words that follow a file redirection."""
    return _absorb_words(
        tokens,
        lambda kind: kind is TokenType.WORD or kind.is_file_redirection,
    )


def add_exec_nodes(tokens: list[Token]) -> list[Token]:
    """Insert an EXEC marker after every pipe that is followed by a token."""
    result: list[Token] = []
    last = len(tokens) - 1
    for index, token in enumerate(tokens):
        result.append(token)
        if index > 0 and token.type is TokenType.PIPE and index < last:
            result.append(Token(TokenType.EXEC, EXEC_CONTENT))
    return result


def convert_empty_strings(tokens: list[Token]) -> list[Token]:
    """Turn empty-quote markers into empty words, except in command position."""
    result: list[Token] = []
    for token in tokens:
        if (
            token.type is TokenType.WORD
            and token.content.startswith(EMPTY_QUOTES)
            and result
            and result[-1].type is not TokenType.EXEC
        ):
            token = replace(token, content="")
        result.append(token)
    return result


def delete_spaces(tokens: list[Token]) -> list[Token]:
    """Drop all whitespace tokens."""
    return [t for t in tokens if t.type is not TokenType.WHITE_SPACE]