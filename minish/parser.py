"""Build the execution tree from a token sequence."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union

from minish.tokens import Token, TokenType


@dataclass
class ExecNode:
    """One simple command: its words and the redirections that apply to it."""

    args: list[str] = field(default_factory=list)
    redirections: list[Token] = field(default_factory=list)

    @property
    def command(self) -> str | None:
        """The command name, or None when the node holds only redirections."""
        return self.args[0] if self.args else None


@dataclass
class PipeNode:
    """A pipe whose left side is a command and right side the rest of the chain."""

    left: ExecNode
    right: Union[ExecNode, "PipeNode", None] = None


Node = Union[ExecNode, PipeNode]


def build_tree(tokens: list[Token]) -> Node | None:
    """Turn tokens that start with an EXEC marker into a command tree.

    Words become arguments and every other non-marker token a redirection,
    up to the first pipe; what follows a pipe becomes its right subtree.
    Returns None when nothing follows the leading marker.
    """
    if len(tokens) < 2:
        return None
    node = ExecNode()
    for index, token in enumerate(tokens[1:], start=1):
        if token.type is TokenType.PIPE:
            return PipeNode(node, build_tree(tokens[index + 1:]))
        if token.type is TokenType.WORD:
            node.args.append(token.content)
        elif token.type is not TokenType.EXEC:
            node.redirections.append(token)
    return node