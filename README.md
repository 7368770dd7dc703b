# minish

A small interactive command shell. It reads a line, splits it into tokens,
expands variables, builds a pipeline, collects any here-documents and runs it.

## Features

- Simple commands looked up on `PATH`, or given by a path such as `./script`
- Pipelines with `|`
- Redirections: `<`, `>`, `>>`, and here-documents with `<<`
- Single and double quotes; `$NAME`, `$?`, `$$` and `$0` expansion
  (`$0` gives `minishell`)
- Builtins: `echo` (with `-n`), `cd` (with `-`, `~` and `--`), `pwd`,
  `export` (including `NAME+=value`), `unset`, `env` and `exit`

External programs are started with the shell's own environment. Builtins that
are part of a pipeline run on a copy of the shell's state, so `export`,
`unset` or `cd` inside a pipeline do not change the shell itself.

## Installation

```
pip install .
```

## Usage

Start the shell:

```
minish
```

The prompt is `minishell$ `; here-document lines are read at a `> ` prompt.
Type commands at the prompt:

```
echo "hello $USER" | tr a-z A-Z > greeting.txt
cat << END
first line
END
export GREETING=hi
env
exit 0
```

The exit status of the last command can be read with `$?`. Running `exit`
with a numeric argument leaves the shell with that status (taken modulo 256);
end of input prints `exit` and leaves with the last status.

## Using it from Python

The stages of the shell can also be used on their own:

- `minish.tokens.create_tokens` splits a line into tokens
- `minish.expand.tokenize` runs the whole tokenizing and expansion pass
- `minish.parser.build_tree` turns the tokens into `ExecNode` and `PipeNode` objects
- `minish.executor.run_tree` runs that tree
- `minish.shell.run_line` does all of the above for one line, reading
  here-document bodies through the `input_func` it is given

```python
from minish.env import Environment, ShellState
from minish.shell import run_line

shell = ShellState(env=Environment(["PATH=/usr/bin:/bin", "HOME=/tmp"]))
run_line("export NAME=world", shell)
run_line("echo hello $NAME", shell)
print(shell.exit_status)
```

`exit` raises `minish.commands.ShellExit`, whose `status` holds the requested
exit status.

## What it does not do

- It does not check a line's syntax before running it: an unclosed quote runs
  to the end of the line, and malformed input such as a pipe with nothing
  after it or a redirection without a target is taken as best it can.
- Lines are read with Python's `input`; there is no line editing or history of
  its own.
- There are no variable assignments outside `export`, no globbing, no `&&`,
  `||`, `;`, background jobs or job control.

## Running the tests

```
pip install .[test]
pytest
```