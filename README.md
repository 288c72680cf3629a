# rustdrill

rustdrill works through a directory of small Rust exercises. It compiles each
exercise with `rustc`. Some exercises ask for `cargo clippy` or `cargo test`
instead, and rustdrill uses those for them. It then runs the result and tells
you which exercise to fix next.

## Requirements

- Python 3.11 or later
- A Rust toolchain. `rustc` must be on your `PATH`. Clippy and build-script
  exercises also need `cargo`.

## Installation

```
pip install .
```

Install the test dependencies with `pip install .[test]`.

## Getting started

Run every command from the exercise directory, the one that holds `info.toml`.
That file lists the exercises in order as `[[exercises]]` tables. Each table
has these fields:

- `name`
- `path`
- `mode`: one of `compile`, `test`, `clippy` or `buildscript`
- `hint`

An exercise counts as pending while its source still holds a line that matches
`// I AM NOT DONE`. The match ignores extra whitespace and also accepts `///`.
Delete that line once the exercise compiles and passes. rustdrill then treats
the exercise as done.

## Commands

```
rustdrill                    # show the welcome text and an introduction
rustdrill --version          # print the version
rustdrill watch              # verify in order, re-check when a file changes
rustdrill watch --success-hints
rustdrill verify             # verify every exercise in order, stop at the first failure
rustdrill run <name>         # compile and run, or test, one exercise
rustdrill run next           # the first exercise that is not yet done
rustdrill hint <name>        # print an exercise's hint
rustdrill reset <name>       # run `git stash -- <path>` for the exercise
rustdrill list               # table of names, paths and Done/Pending status
rustdrill list --paths --unsolved
rustdrill list --filter vecs,strings
rustdrill lsp                # write rust-project.json for rust-analyzer
rustdrill cicvverify         # grade all exercises, write a JSON report
```

Put `--nocapture` before a subcommand to show the output of test harnesses,
for example `rustdrill --nocapture run testSuccess`.

`list` takes these options:

- `-p/--paths`: print only paths
- `-n/--names`: print only names
- `-f/--filter`: comma-separated patterns. The patterns are lower-cased, then
  matched against names and paths.
- `-u/--unsolved`
- `-s/--solved`

The listing always ends with a progress line.

`lsp` finds the standard library sources. It uses `RUST_SRC_PATH` if that is
set, and otherwise asks `rustc --print sysroot`. It adds a crate for every
`.rs` file under `./exercises` and writes `./rust-project.json`.

`cicvverify` runs every exercise on a pool of threads, with test output shown.
It prints a line as each exercise passes or fails. It then writes a JSON report
to `.github/result/check_result.json` holding:

- the result of each exercise
- the success and failure counts
- the total time in seconds

The `.github/result` directory must already exist.

### Watch mode

`watch` verifies the exercises in order. It then watches `./exercises` for
created or modified `.rs` files. After each change it re-checks the changed
exercise first, followed by the other unfinished ones. While it runs you can
type these commands:

- `hint`: print the hint for the exercise that last failed
- `clear`: clear the screen
- `quit`: leave watch mode
- `!<cmd>`: run a command, such as `!rustc --explain E0381`
- `help`: list these commands

Set `NO_EMOJI` in the environment to print plain-text symbols in place of
emoji.

## Exit status

These commands exit with status 1:

- `verify`, when an exercise fails to compile, run or pass, or is still marked
  as not done
- `run`, when the exercise fails
- `run`, `reset` and `hint`, when the exercise name is unknown, or `next` finds
  nothing left to do
- `reset`, when `git` cannot be started. The exit status of `git stash` itself
  is not checked.
- any command, when it is started outside a directory that holds `info.toml`,
  or when `rustc --version` does not succeed
- any command called with a missing positional argument

## Using it from Python

The command is `rustdrill.cli:main(argv=None)`, which returns the exit code.
The pieces behind it can be used directly:

- `rustdrill.exercise.load_exercises(path)` reads `info.toml`.
- `Exercise.state()` returns the lines around the pending marker.
  `Exercise.looks_done()` says whether the marker is gone.
- `Exercise.compile()` returns a `CompiledExercise`. Use it as a context
  manager so the built binary is removed afterwards.
- `rustdrill.verify.verify(exercises, (done, total))` raises
  `VerificationError` naming the first exercise that is not finished.
- `rustdrill.run.run(exercise)` raises `RunFailed` when the exercise fails.

## What it does not do

rustdrill ships no exercises and no `info.toml`; it only drives an exercise
directory you already have. It never compiles anything itself. Every build and
test goes through `rustc` or `cargo`.