import os

import pytest

from minish.env import Environment, ShellState, env_key


@pytest.mark.parametrize(
    "entry, key",
    [
        ("HOME=/x", "HOME"),
        ("A+=b", "A"),
        ("NAME", "NAME"),
        ("A+b=c", "A+b"),
        ("K=v=w", "K"),
    ],
)
def test_env_key(entry, key):
    assert env_key(entry) == key


@pytest.fixture
def env():
    return Environment(["A=1", "B", "C=3"])


def test_index_of_finds_by_name(env):
    assert env.index_of("B") == 1
    assert env.index_of("C=9") == 2
    assert env.index_of("A+=x") == 0


def test_index_of_missing(env):
    assert env.index_of("Z") is None
    assert env.index_of("") is None
    assert env.index_of("=x") is None


def test_value(env):
    assert env.value("A") == "1"
    assert env.value("B") == ""
    assert env.value("Z") == ""


def test_value_keeps_later_equals():
    assert Environment(["K=v=w"]).value("K") == "v=w"


def test_value_stops_at_empty_entry():
    environment = Environment(["A=1", "", "C=3"])
    assert environment.value("C") == ""
    assert environment.value("A") == "1"


def test_replace(env):
    env.replace("A=2", 0)
    assert env.entries[0] == "A=2"
    env.replace("A", 0)
    assert env.entries[0] == "A=2"
    env.replace("A=5", 10)
    assert len(env) == 3


def test_append_plain_and_plus(env):
    env.append("D=4")
    env.append("E+=5")
    env.append("F+=")
    assert env.entries[-3:] == ["D=4", "E=5", "F"]


def test_update_directory_replaces_existing():
    environment = Environment(["PWD=/old", "X=1"])
    environment.update_directory("PWD", "/new")
    assert environment.value("PWD") == "/new"
    assert len(environment) == 2


def test_update_directory_appends_missing():
    environment = Environment(["PWD=/old"])
    environment.update_directory("OLDPWD", "/old")
    assert environment.entries == ["PWD=/old", "OLDPWD=/old"]


def test_update_directory_ignores_none():
    environment = Environment(["PWD=/old"])
    environment.update_directory("PWD", None)
    assert environment.entries == ["PWD=/old"]


def test_as_dict_skips_valueless(env):
    assert env.as_dict() == {"A": "1", "C": "3"}


def test_iteration_round_trip(env):
    assert list(Environment(list(env))) == env.entries


def test_shell_state_defaults():
    state = ShellState()
    assert state.exit_status == 0
    assert state.nb_heredoc == 0
    assert state.pid == os.getpid()
    assert len(state.env) == 0