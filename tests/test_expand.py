import pytest

from minish.env import Environment, ShellState
from minish.expand import (
    delete_null_expansions,
    expand_text,
    expand_variable,
    make_expansions,
    split_on_whitespace,
    tokenize,
)
from minish.tokens import EMPTY_QUOTES, EXEC_CONTENT, QuoteStatus, Token, TokenType


@pytest.fixture
def shell():
    return ShellState(
        env=Environment(
            ["HOME=/home/user", "USER=tester", "SPACED=a  b", "EMPTY=", "NOVAL"]
        ),
        pid=4321,
        prog_name="minishell",
    )


def test_expand_variable(shell):
    assert expand_variable("HOME", shell) == "/home/user"
    assert expand_variable("UNDEF", shell) == ""
    assert expand_variable("NOVAL", shell) == ""
    assert expand_variable("", shell) == ""
    assert expand_variable("$", shell) == "4321"


@pytest.mark.parametrize(
    "text, expected",
    [
        ("$HOME", "/home/user"),
        ("x$USER.y", "xtester.y"),
        ("$UNDEF", ""),
        ("a$", "a$"),
        ("$-x", "$-x"),
        ("$1abc", "abc"),
        ("$0", "minishell"),
        ("$$", "4321"),
        ("$UNDEF$USER", "tester"),
        ("plain", "plain"),
    ],
)
def test_expand_text(shell, text, expected):
    assert expand_text(text, shell) == expected


def test_expand_exit_status(shell):
    shell.exit_status = 127
    assert expand_text("$?", shell) == "127"


def test_expanded_text_is_not_rescanned(shell):
    shell.env.append("LOOP=$HOME")
    assert expand_text("$LOOP", shell) == "$HOME"


def test_make_expansions_respects_quotes_and_heredocs(shell):
    tokens = [
        Token(TokenType.EXEC, EXEC_CONTENT),
        Token(TokenType.WORD, "$HOME", QuoteStatus.SINGLE),
        Token(TokenType.WORD, "$HOME", QuoteStatus.DOUBLE),
        Token(TokenType.HERE_DOC, "$HOME"),
        Token(TokenType.REDIR_OUT, "$USER"),
    ]
    result = make_expansions(tokens, shell)
    assert [t.content for t in result] == [
        EXEC_CONTENT,
        "$HOME",
        "/home/user",
        "$HOME",
        "tester",
    ]


def test_make_expansions_marks_empty_results(shell):
    result = make_expansions([Token(TokenType.WORD, "$EMPTY")], shell)
    assert result[0].content == ""
    assert result[0].maybe_to_delete is True


def test_split_on_whitespace():
    result = split_on_whitespace([Token(TokenType.WORD, "a \tb")])
    assert [(t.type, t.content) for t in result] == [
        (TokenType.WORD, "a"),
        (TokenType.WHITE_SPACE, " "),
        (TokenType.WORD, "b"),
    ]


def test_split_leaves_quoted_words():
    token = Token(TokenType.WORD, "a b", QuoteStatus.DOUBLE)
    assert split_on_whitespace([token]) == [token]


def test_split_only_whitespace_is_normalized():
    result = split_on_whitespace([Token(TokenType.WORD, "\t\t")])
    assert [t.content for t in result] == ["  "]


def test_delete_null_expansion_before_non_word():
    tokens = [
        Token(TokenType.EXEC, EXEC_CONTENT),
        Token(TokenType.WORD, "", maybe_to_delete=True),
        Token(TokenType.WHITE_SPACE, " "),
        Token(TokenType.WORD, "ls"),
    ]
    result = delete_null_expansions(tokens)
    assert [t.type for t in result] == [
        TokenType.EXEC,
        TokenType.WHITE_SPACE,
        TokenType.WORD,
    ]


def test_delete_null_expansion_alone_after_exec():
    tokens = [
        Token(TokenType.EXEC, EXEC_CONTENT),
        Token(TokenType.WORD, "", maybe_to_delete=True),
    ]
    assert delete_null_expansions(tokens) == tokens[:1]


def test_null_expansion_kept_before_word():
    tokens = [
        Token(TokenType.EXEC, EXEC_CONTENT),
        Token(TokenType.WORD, "", maybe_to_delete=True),
        Token(TokenType.WORD, "x"),
    ]
    assert delete_null_expansions(tokens) == tokens


def test_tokenize_splits_unquoted_expansion(shell):
    result = tokenize("echo $SPACED", shell)
    assert [t.content for t in result] == [EXEC_CONTENT, "echo", "a", "b"]


def test_tokenize_keeps_quoted_expansion(shell):
    result = tokenize('echo "$SPACED"', shell)
    assert [t.content for t in result] == [EXEC_CONTENT, "echo", "a  b"]


def test_tokenize_does_not_expand_heredoc(shell):
    result = tokenize("cat <<$HOME", shell)
    assert result[-1].type is TokenType.HERE_DOC
    assert result[-1].content == "$HOME"


def test_tokenize_drops_empty_command_before_pipe(shell):
    result = tokenize("$EMPTY | ls", shell)
    assert [t.type for t in result] == [
        TokenType.EXEC,
        TokenType.PIPE,
        TokenType.EXEC,
        TokenType.WORD,
    ]


def test_tokenize_empty_quotes(shell):
    assert [t.content for t in tokenize("echo ''", shell)] == [
        EXEC_CONTENT,
        "echo",
        "",
    ]
    assert tokenize("''", shell)[1].content == EMPTY_QUOTES


def test_tokenize_redirection_target_expanded(shell):
    result = tokenize("ls > $USER", shell)
    assert [(t.type, t.content) for t in result][-1] == (
        TokenType.REDIR_OUT,
        "tester",
    )