"""Running command trees: redirections, built-ins, external programs and pipes."""

from __future__ import annotations

import io
import os
import signal
import stat
import subprocess
import sys
import tempfile
from contextlib import contextmanager, redirect_stdout
from dataclasses import dataclass, replace
from typing import BinaryIO, Callable, Iterator, Sequence, Union

from minish.commands import ShellExit, cd, echo, env, exit_builtin, pwd
from minish.env import Environment, ShellState
from minish.exports import export, unset
from minish.parser import ExecNode, Node, PipeNode
from minish.tokens import Token, TokenType

BUILTINS = frozenset({"echo", "cd", "pwd", "export", "unset", "env", "exit"})

NOT_FOUND = 127
IS_DIRECTORY = 128
NO_PERMISSION = 126

_OPEN_FLAGS = {
    TokenType.HERE_DOC: os.O_RDONLY,
    TokenType.REDIR_IN: os.O_RDONLY,
    TokenType.REDIR_OUT: os.O_RDWR | os.O_CREAT | os.O_TRUNC,
    TokenType.APPEND: os.O_RDWR | os.O_CREAT | os.O_APPEND,
}

_SIGQUIT = getattr(signal, "SIGQUIT", 3)

_Started = Union["subprocess.Popen[bytes]", int]

_BUILTIN_TABLE: dict[str, Callable[[list[str], ShellState, bool], int]] = {
    "echo": lambda args, shell, in_pipe: echo(args, shell),
    "cd": lambda args, shell, in_pipe: cd(args, shell),
    "pwd": lambda args, shell, in_pipe: pwd(shell),
    "env": lambda args, shell, in_pipe: env(shell),
    "export": lambda args, shell, in_pipe: export(args, shell),
    "unset": lambda args, shell, in_pipe: unset(args, shell),
    "exit": lambda args, shell, in_pipe: exit_builtin(args, shell, in_pipe),
}


def _err(message: str) -> None:
    print(message, file=sys.stderr, flush=True)


def is_builtin(name: str | None) -> bool:
    """Return True if ``name`` is run by the shell itself."""
    return name in BUILTINS


def check_file_access(path: str, redir: TokenType, shell: ShellState) -> bool:
    """Report why a redirection target cannot be used; return False if it cannot."""
    try:
        os.stat(path)
    except (OSError, ValueError):
        _err(f"{shell.prog_name}: {path}: No such file or directory")
        return False
    if redir in (TokenType.REDIR_IN, TokenType.HERE_DOC):
        if not os.access(path, os.R_OK):
            _err(f"{shell.prog_name}: {path}: Permission denied")
            return False
    elif redir.is_output:
        if os.access(path, os.F_OK) and not os.access(path, os.W_OK):
            _err(f"{shell.prog_name}: {path}: Permission denied")
            return False
    return True


def execve_error_message(error: int, name: str) -> tuple[str, int] | None:
    """Return the message and exit status for a failed command lookup."""
    explicit = name.startswith("./") or name.startswith("/")
    not_found = (f"{name} : command not found", NOT_FOUND)
    if error == NOT_FOUND:
        if explicit:
            return f"{name} : No such file or directory", NOT_FOUND
        return not_found
    if error == IS_DIRECTORY:
        if "/" not in name:
            return not_found
        return f"{name} : Is a directory", NO_PERMISSION
    if error == NO_PERMISSION:
        if explicit:
            return f"{name} : Permission denied", NO_PERMISSION
        return not_found
    return None


def _binary_error(path: str | None) -> int:
    if path is None:
        return NOT_FOUND
    try:
        info = os.stat(path)
    except (OSError, ValueError):
        return NOT_FOUND
    if stat.S_ISDIR(info.st_mode):
        return IS_DIRECTORY
    if stat.S_ISREG(info.st_mode) and not os.access(path, os.X_OK):
        return NO_PERMISSION
    if not os.access(path, os.R_OK):
        return NOT_FOUND
    return 0


def _search_path(name: str, shell: ShellState) -> str | None:
    for directory in filter(None, shell.env.value("PATH").split(":")):
        candidate = f"{directory}/{name}"
        if os.access(candidate, os.X_OK):
            return candidate
    return None


def find_command(name: str, shell: ShellState) -> tuple[str | None, int]:
    """Locate the program to run for ``name``; return (path, error code).

    PATH is searched first; when that fails, or the name looks like a
    relative path, the name itself is tried.
    """
    found = _search_path(name, shell)
    error = _binary_error(found)
    if not error and name[:1] != "." and name[1:2] != "/":
        return found, 0
    error = _binary_error(name)
    return (None if error else name), error


def run_builtin(args: Sequence[str], shell: ShellState, in_pipe: bool = False) -> int:
    """Run the built-in named by ``args[0]`` and return its exit status."""
    handler = _BUILTIN_TABLE.get(args[0]) if args else None
    if handler is None:
        return shell.exit_status
    return handler(list(args[1:]), shell, in_pipe)


@dataclass
class _Streams:
    stdin: BinaryIO | None = None
    stdout: BinaryIO | None = None


def _redirection_path(token: Token) -> str:
    path = token.file if token.type is TokenType.HERE_DOC else token.content
    return path or ""


def _open_redirection(token: Token) -> BinaryIO:
    fd = os.open(_redirection_path(token), _OPEN_FLAGS[token.type], 0o644)
    return os.fdopen(fd, "r+b" if token.type.is_output else "rb")


@contextmanager
def _redirections(tokens: Sequence[Token], shell: ShellState) -> Iterator[_Streams | None]:
    """Open the redirection targets in order; yield None if one fails."""
    streams = _Streams()
    opened: list[BinaryIO] = []
    try:
        failed = False
        for token in tokens:
            if not token.type.is_redirection:
                continue
            try:
                handle = _open_redirection(token)
            except (OSError, ValueError):
                check_file_access(_redirection_path(token), token.type, shell)
                failed = True
                break
            opened.append(handle)
            if token.type.is_output:
                streams.stdout = handle
            else:
                streams.stdin = handle
        if failed:
            shell.exit_status = 1
        elif opened:
            shell.exit_status = 0
        yield None if failed else streams
    finally:
        for handle in opened:
            handle.close()


def _spawn(args: Sequence[str], shell: ShellState, stdin, stdout) -> _Started:
    name = args[0]
    path, error = find_command(name, shell)
    if error:
        failure = execve_error_message(error, name)
        if failure is None:
            return shell.exit_status
        message, status = failure
        _err(message)
        shell.exit_status = status
        return status
    sys.stdout.flush()
    try:
        return subprocess.Popen(
            list(args),
            executable=path,
            stdin=stdin,
            stdout=stdout,
            env=shell.env.as_dict(),
        )
    except OSError as exc:
        _err(f"{name} : {exc.strerror}")
        shell.exit_status = NO_PERMISSION
        return NO_PERMISSION


def _wait(process: "subprocess.Popen[bytes]") -> int:
    while True:
        try:
            return process.wait()
        except KeyboardInterrupt:
            continue


def _status(code: int) -> int:
    return 128 - code if code < 0 else code


def _report_signals(codes: Sequence[int | None]) -> None:
    if not codes:
        return
    if all(code == -int(signal.SIGINT) for code in codes):
        print(flush=True)
    elif all(code == -int(_SIGQUIT) for code in codes):
        print("Quit (core dumped)", flush=True)


def _run_builtin_node(
    node: ExecNode,
    shell: ShellState,
    in_pipe: bool,
    default_stdout: BinaryIO | None = None,
) -> int:
    with _redirections(node.redirections, shell) as streams:
        if streams is None:
            return shell.exit_status
        target = streams.stdout or default_stdout
        if target is None:
            return run_builtin(node.args, shell, in_pipe)
        captured = io.StringIO()
        try:
            with redirect_stdout(captured):
                return run_builtin(node.args, shell, in_pipe)
        finally:
            target.write(captured.getvalue().encode())
            target.flush()


def _child_state(shell: ShellState) -> ShellState:
    return replace(shell, env=Environment(shell.env))


def _run_in_process(
    stage: ExecNode | None, shell: ShellState, sink: BinaryIO | None
) -> int:
    state = _child_state(shell)
    if stage is None:
        return state.exit_status
    try:
        if stage.command is None:
            with _redirections(stage.redirections, state):
                return state.exit_status
        return _run_builtin_node(stage, state, True, sink)
    except ShellExit as exc:
        return exc.status


def _stages(node: Node) -> Iterator[ExecNode | None]:
    current: Node | None = node
    while isinstance(current, PipeNode):
        yield current.left
        current = current.right
    yield current


def _run_single(stage: ExecNode, shell: ShellState) -> int:
    if is_builtin(stage.command):
        return _run_builtin_node(stage, shell, in_pipe=False)
    with _redirections(stage.redirections, shell) as streams:
        if streams is None or stage.command is None:
            return shell.exit_status
        started = _spawn(stage.args, shell, streams.stdin, streams.stdout)
    if isinstance(started, int):
        return started
    code = _wait(started)
    _report_signals([code])
    return _status(code)


def _run_pipeline(stages: list[ExecNode | None], shell: ShellState) -> int:
    previous: BinaryIO | None = None
    running: list[_Started] = []
    last = len(stages) - 1
    for index, stage in enumerate(stages):
        final = index == last
        if stage is None or stage.command is None or is_builtin(stage.command):
            if previous is not None:
                previous.close()
                previous = None
            sink = None if final else tempfile.TemporaryFile()
            running.append(_run_in_process(stage, shell, sink))
            if sink is not None:
                sink.seek(0)
                previous = sink
            continue
        state = _child_state(shell)
        with _redirections(stage.redirections, state) as streams:
            if streams is None:
                started: _Started = state.exit_status
            else:
                stdout = streams.stdout or (None if final else subprocess.PIPE)
                started = _spawn(stage.args, state, streams.stdin or previous, stdout)
        if previous is not None:
            previous.close()
            previous = None
        running.append(started)
        if not final:
            if isinstance(started, subprocess.Popen) and started.stdout is not None:
                previous = started.stdout
            else:
                previous = open(os.devnull, "rb")
    if previous is not None:
        previous.close()
    codes = [
        _wait(item) if isinstance(item, subprocess.Popen) else None for item in running
    ]
    _report_signals(codes)
    last_code = codes[-1]
    if last_code is not None:
        return _status(last_code)
    last_item = running[-1]
    return last_item if isinstance(last_item, int) else 0


def run_tree(node: Node | None, shell: ShellState) -> int:
    """Run a command tree and return (and record) its exit status.

    A lone built-in runs in the shell itself and may raise ShellExit; stages
    of a pipeline run apart from the shell's state.
    """
    if node is None:
        return shell.exit_status
    stages = list(_stages(node))
    first = stages[0]
    if len(stages) == 1 and first is not None:
        status = _run_single(first, shell)
    else:
        status = _run_pipeline(stages, shell)
    shell.exit_status = status
    return status