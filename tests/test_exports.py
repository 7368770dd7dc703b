import pytest

from minish.env import Environment, ShellState
from minish.exports import (
    export,
    export_no_args,
    is_valid_identifier,
    plus_mode,
    sorted_env,
    unset,
)


def make_shell(*entries):
    return ShellState(env=Environment(entries))


@pytest.mark.parametrize("arg", ["A", "_x=1", "A+=1", "A1=b", "NAME=a b"])
def test_valid_identifiers(arg):
    assert is_valid_identifier(arg) is True


@pytest.mark.parametrize("arg", ["", "1A", "=a", "+a", "A+B", "A-B=1", "A+"])
def test_invalid_identifiers(arg):
    assert is_valid_identifier(arg) is False


@pytest.mark.parametrize(
    "arg, expected",
    [("A+=1", True), ("A=1+=", False), ("A", False), ("A=1", False)],
)
def test_plus_mode(arg, expected):
    assert plus_mode(arg) is expected


def test_sorted_env_orders_entries():
    assert sorted_env(["b", "a", "c"]) == ["a", "b", "c"]


def test_sorted_env_compares_first_entry_only_with_second():
    assert sorted_env(["b", "c", "a"]) == ["b", "a", "c"]


def test_sorted_env_keeps_all_entries():
    entries = ["Z=1", "A=2", "M", "B=3"]
    result = sorted_env(entries)
    assert sorted(result) == sorted(entries)
    assert result[1:] == sorted(result[1:])


def test_export_adds_new_variable():
    shell = make_shell("A=1")
    assert export(["B=2"], shell) == 0
    assert shell.env.value("B") == "2"
    assert list(shell.env) == ["A=1", "B=2"]


def test_export_overwrites_existing():
    shell = make_shell("A=1")
    export(["A=new"], shell)
    assert list(shell.env) == ["A=new"]


def test_export_name_only_keeps_value():
    shell = make_shell("A=1")
    export(["A"], shell)
    assert list(shell.env) == ["A=1"]


def test_export_plus_appends():
    shell = make_shell("A=x")
    export(["A+=y"], shell)
    assert shell.env.value("A") == "xy"


def test_export_plus_on_declared_name():
    shell = make_shell("A")
    export(["A+=y"], shell)
    assert list(shell.env) == ["A=y"]


def test_export_plus_creates_variable():
    shell = make_shell()
    export(["A+=y", "B+="], shell)
    assert list(shell.env) == ["A=y", "B"]


def test_export_invalid_identifier(capsys):
    shell = make_shell()
    assert export(["1A=2"], shell) == 1
    assert "1A=2" in capsys.readouterr().err
    assert list(shell.env) == []


def test_export_valid_after_invalid_resets_status():
    shell = make_shell()
    assert export(["1A", "B=1"], shell) == 0
    assert list(shell.env) == ["B=1"]


def test_export_without_arguments_lists(capsys):
    shell = make_shell("B", "A=1")
    assert export([], shell) == 0
    assert capsys.readouterr().out == 'declare -x A="1"\ndeclare -x B\n'


def test_export_no_args_empty_value(capsys):
    export_no_args(make_shell("A="))
    assert capsys.readouterr().out == 'declare -x A=""\n'


def test_export_then_list_round_trip(capsys):
    shell = make_shell()
    export(["K=v"], shell)
    export_no_args(shell)
    assert capsys.readouterr().out == 'declare -x K="v"\n'


def test_unset_removes_variables():
    shell = make_shell("A=1", "B=2", "C=3")
    assert unset(["B", "Z"], shell) == 0
    assert list(shell.env) == ["A=1", "C=3"]


def test_unset_without_arguments_keeps_status():
    shell = make_shell("A=1")
    shell.exit_status = 4
    assert unset([], shell) == 4
    assert list(shell.env) == ["A=1"]


def test_export_unset_round_trip():
    shell = make_shell("A=1")
    export(["B=2"], shell)
    unset(["B"], shell)
    assert list(shell.env) == ["A=1"]