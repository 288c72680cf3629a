"""Command-line entry point: listing, running, verifying and grading exercises."""

from __future__ import annotations

import argparse
import dataclasses
import json
import os
import subprocess
import sys
import threading
import time
from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path

from .exercise import Exercise, load_exercises
from .project import RustAnalyzerProject
from .run import RunFailed, reset, run
from .ui import emoji_enabled
from .verify import VerificationError, verify
from .watch import WatchStatus, watch

VERSION = "5.5.1"
INFO_FILE = "info.toml"
CHECK_RESULT_PATH = ".github/result/check_result.json"


@dataclass
class ExerciseResult:
    """Whether one exercise passed grading."""

    name: str
    result: bool


@dataclass
class ExerciseStatistics:
    """Totals of a grading run."""

    total_exercations: int = 0
    total_succeeds: int = 0
    total_failures: int = 0
    total_time: int = 0


@dataclass
class ExerciseCheckList:
    """The report written after grading every exercise."""

    exercises: list[ExerciseResult] = field(default_factory=list)
    user_name: str | None = None
    statistics: ExerciseStatistics = field(default_factory=ExerciseStatistics)

    def to_json(self) -> str:
        return json.dumps(dataclasses.asdict(self), indent=2, ensure_ascii=False)


def find_exercise(name: str, exercises: Sequence[Exercise]) -> Exercise:
    """Return the named exercise, or the first unfinished one for "next"."""
    if name == "next":
        found = next((e for e in exercises if not e.looks_done()), None)
        if found is None:
            raise LookupError(
                "🎉 Congratulations! You have done all the exercises!\n"
                "🔚 There are no more exercises to do next!"
            )
        return found
    found = next((e for e in exercises if e.name == name), None)
    if found is None:
        raise LookupError(f"No exercise found for '{name}'!")
    return found


def list_exercises(
    exercises: Sequence[Exercise],
    paths: bool = False,
    names: bool = False,
    pattern: str | None = None,
    unsolved: bool = False,
    solved: bool = False,
) -> list[str]:
    """Return the lines of the exercise listing, ending with the progress summary."""
    lines: list[str] = []
    if not paths and not names:
        lines.append(f"{'Name':<17}\t{'Path':<46}\t{'Status':<7}")
    filters = [f for f in (pattern or "").lower().split(",") if f.strip()]
    done_count = 0
    for exercise in exercises:
        fname = str(exercise.path)
        matches = any(f in exercise.name or f in fname for f in filters)
        done = exercise.looks_done()
        if done:
            done_count += 1
        status = "Done" if done else "Pending"
        wanted = (done and solved) or (not done and unsolved) or (not solved and not unsolved)
        if wanted and (matches or pattern is None):
            if paths:
                lines.append(fname)
            elif names:
                lines.append(exercise.name)
            else:
                lines.append(f"{exercise.name:<17}\t{fname:<46}\t{status:<7}")
    total = len(exercises)
    percentage = f"{done_count / total * 100.0:.1f}" if total else "NaN"
    lines.append(
        f"Progress: You completed {done_count} / {total} exercises ({percentage} %)."
    )
    return lines


def cicv_verify(
    exercises: Iterable[Exercise],
    verbose: bool = True,
    output_path: str | os.PathLike = CHECK_RESULT_PATH,
) -> ExerciseCheckList:
    """Run every exercise concurrently, write the JSON report and return it."""
    exercises = list(exercises)
    started = int(time.time())
    total = len(exercises)
    check_list = ExerciseCheckList(statistics=ExerciseStatistics(total_exercations=total))
    lock = threading.Lock()

    def grade(exercise: Exercise) -> None:
        begun = int(time.time())
        try:
            run(exercise, verbose)
        except RunFailed:
            passed = False
        else:
            passed = True
        with lock:
            stats = check_list.statistics
            if passed:
                stats.total_succeeds += 1
                print(f"{exercise.name}执行成功")
            else:
                stats.total_failures += 1
                print(f"{exercise.name}执行失败")
            print(f"总的题目数: {total}")
            print(f"当前做正确的题目数: {stats.total_succeeds}")
            print(f"当前修改试卷耗时: {int(time.time()) - begun} s")
            check_list.exercises.append(ExerciseResult(name=exercise.name, result=passed))

    with ThreadPoolExecutor(max_workers=os.cpu_count() or 1) as pool:
        for future in [pool.submit(grade, exercise) for exercise in exercises]:
            future.result()

    total_time = int(time.time()) - started
    print(
        "===============================试卷批改完成,总耗时: "
        f"{total_time} s; =================================="
    )
    check_list.statistics.total_time = total_time
    Path(output_path).write_text(check_list.to_json(), encoding="utf-8")
    return check_list


def rustc_exists() -> bool:
    """Whether `rustc --version` runs successfully."""
    try:
        result = subprocess.run(
            ["rustc", "--version"], stdout=subprocess.DEVNULL, check=False
        )
    except OSError:
        return False
    return result.returncode == 0


class _Parser(argparse.ArgumentParser):
    def error(self, message: str) -> None:
        prefix = "the following arguments are required: "
        if message.startswith(prefix):
            missing = message[len(prefix):].replace(", ", "\n    ")
            message = f"Required positional arguments not provided:\n    {missing}"
        self.print_usage(sys.stderr)
        self.exit(1, f"{message}\n")


def _build_parser() -> argparse.ArgumentParser:
    parser = _Parser(
        prog="rustdrill",
        description="A collection of small exercises to get you used to "
        "writing and reading Rust code",
    )
    parser.add_argument("--nocapture", action="store_true",
                        help="show outputs from the test exercises")
    parser.add_argument("-v", "--version", action="store_true",
                        help="show the executable version")
    commands = parser.add_subparsers(dest="command")
    commands.add_parser("verify", help="verifies all exercises in the recommended order")
    watch_parser = commands.add_parser("watch", help="reruns `verify` when files were edited")
    watch_parser.add_argument("--success-hints", action="store_true",
                              help="show hints on success")
    for name, text in (
        ("run", "runs/tests a single exercise"),
        ("reset", 'resets a single exercise using "git stash -- <filename>"'),
        ("hint", "returns a hint for the given exercise"),
    ):
        sub = commands.add_parser(name, help=text)
        sub.add_argument("name", help="the name of the exercise")
    list_parser = commands.add_parser("list", help="lists the available exercises")
    list_parser.add_argument("-p", "--paths", action="store_true",
                             help="show only the paths of the exercises")
    list_parser.add_argument("-n", "--names", action="store_true",
                             help="show only the names of the exercises")
    list_parser.add_argument("-f", "--filter", default=None,
                             help="comma separated patterns to match exercise names")
    list_parser.add_argument("-u", "--unsolved", action="store_true",
                             help="display only exercises not yet solved")
    list_parser.add_argument("-s", "--solved", action="store_true",
                             help="display only exercises that have been solved")
    commands.add_parser("lsp", help="enable rust-analyzer for exercises")
    commands.add_parser("cicvverify", help="grade every exercise and write a report")
    return parser


def _print_lines(lines: Iterable[str]) -> int:
    try:
        for line in lines:
            sys.stdout.write(line + "\n")
        sys.stdout.flush()
    except BrokenPipeError:
        return 0
    except OSError:
        return 1
    return 0


def _lsp() -> int:
    project = RustAnalyzerProject()
    try:
        project.get_sysroot_src()
    except OSError:
        print("Couldn't find toolchain path, do you have `rustc` installed?")
        return 1
    project.exercises_to_json()
    if not project.crates:
        print("Failed find any exercises, make sure you're in the exercise directory")
        return 0
    try:
        project.write_to_disk()
    except OSError:
        print("Failed to write rust-project.json to disk for rust-analyzer")
        return 0
    print("Successfully generated rust-project.json")
    print("rust-analyzer will now parse exercises, restart your language server or editor")
    return 0


def _watch(exercises: list[Exercise], verbose: bool, success_hints: bool) -> int:
    try:
        status = watch(exercises, verbose, success_hints)
    except OSError as exc:
        print(f"Error: Could not watch your progress. Error message was {exc!r}.")
        print("Most likely you've run out of disk space or your 'inotify limit' "
              "has been reached.")
        return 1
    if status is WatchStatus.FINISHED:
        emoji = "🎉" if emoji_enabled() else "★"
        print(f"{emoji} All exercises completed! {emoji}")
        print(f"\n{FINISH_LINE}\n")
    else:
        print("We hope you're enjoying learning about Rust!")
        print("If you want to continue working on the exercises at a later point, "
              "you can simply run `rustdrill watch` again")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Parse the command line, carry out the command and return the exit code."""
    args = _build_parser().parse_args(argv)

    if args.version:
        print(f"v{VERSION}")
        return 0
    if args.command is None:
        print(f"\n{WELCOME}\n")
    if not Path(INFO_FILE).exists():
        print(f"{sys.argv[0]} must be run from the exercise directory")
        print("Try `cd` into the directory that holds info.toml!")
        return 1
    if not rustc_exists():
        print("We cannot find `rustc`.")
        print("Try running `rustc --version` to diagnose your problem.")
        print("For instructions on how to install Rust, check the README.")
        return 1

    exercises = load_exercises(INFO_FILE)
    verbose = args.nocapture

    match args.command:
        case None:
            print(f"{DEFAULT_OUT}\n")
            return 0
        case "list":
            return _print_lines(
                list_exercises(exercises, args.paths, args.names, args.filter,
                               args.unsolved, args.solved)
            )
        case "run" | "reset" | "hint":
            try:
                exercise = find_exercise(args.name, exercises)
            except LookupError as exc:
                print(exc)
                return 1
            if args.command == "hint":
                print(exercise.hint)
                return 0
            try:
                if args.command == "run":
                    run(exercise, verbose)
                else:
                    reset(exercise).wait()
            except RunFailed:
                return 1
            return 0
        case "verify":
            try:
                verify(exercises, (0, len(exercises)), verbose, False)
            except VerificationError:
                return 1
            return 0
        case "cicvverify":
            cicv_verify(exercises, True)
            return 0
        case "lsp":
            return _lsp()
        case "watch":
            return _watch(exercises, verbose, args.success_hints)
    return 1


DEFAULT_OUT = """Thanks for installing rustdrill!

Is this your first time? Don't worry, rustdrill was made for beginners! We are
going to teach you a lot of things about Rust, but before we can get
started, here's a couple of notes about how rustdrill operates:

1. The central concept behind rustdrill is that you solve exercises. These
   exercises usually have some sort of syntax error in them, which will cause
   them to fail compilation or testing. Sometimes there's a logic error instead
   of a syntax error. No matter what error, it's your job to find it and fix it!
   You'll know when you fixed it because then, the exercise will compile and
   rustdrill will be able to move on to the next exercise.
2. If you run rustdrill in watch mode (which we recommend), it'll automatically
   start with the first exercise. Don't get confused by an error message popping
   up as soon as you run rustdrill! This is part of the exercise that you're
   supposed to solve, so open the exercise file in an editor and start your
   detective work!
3. If you're stuck on an exercise, there is a helpful hint you can view by typing
   'hint' (in watch mode), or running `rustdrill hint exercise_name`.
4. If an exercise doesn't make sense to you, feel free to open an issue on the
   project's tracker. We look at every issue, and sometimes, other learners do
   too so you can help each other out!
5. If you want to use `rust-analyzer` with exercises, which provides features like
   autocompletion, run the command `rustdrill lsp`.

Got all that? Great! To get started, run `rustdrill watch` in order to get the first
exercise. Make sure to have your editor open!"""

FINISH_LINE = r"""+----------------------------------------------------+
|          You made it to the Fe-nish line!          |
+--------------------------  ------------------------+
                          \\/
     ▒▒          ▒▒▒▒▒▒▒▒      ▒▒▒▒▒▒▒▒          ▒▒
   ▒▒▒▒  ▒▒    ▒▒        ▒▒  ▒▒        ▒▒    ▒▒  ▒▒▒▒
   ▒▒▒▒  ▒▒  ▒▒            ▒▒            ▒▒  ▒▒  ▒▒▒▒
 ░░▒▒▒▒░░▒▒  ▒▒            ▒▒            ▒▒  ▒▒░░▒▒▒▒
   ▓▓▓▓▓▓▓▓  ▓▓      ▓▓██  ▓▓  ▓▓██      ▓▓  ▓▓▓▓▓▓▓▓
     ▒▒▒▒    ▒▒      ████  ▒▒  ████      ▒▒░░  ▒▒▒▒
       ▒▒  ▒▒▒▒▒▒        ▒▒▒▒▒▒        ▒▒▒▒▒▒  ▒▒
         ▒▒▒▒▒▒▒▒▒▒▓▓▓▓▓▓▒▒▒▒▒▒▒▒▓▓▒▒▓▓▒▒▒▒▒▒▒▒
           ▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒
             ▒▒▒▒▒▒▒▒▒▒██▒▒▒▒▒▒██▒▒▒▒▒▒▒▒▒▒
           ▒▒  ▒▒▒▒▒▒▒▒▒▒██████▒▒▒▒▒▒▒▒▒▒  ▒▒
         ▒▒    ▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒    ▒▒
       ▒▒    ▒▒    ▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒    ▒▒    ▒▒
       ▒▒  ▒▒    ▒▒                  ▒▒    ▒▒  ▒▒
           ▒▒  ▒▒                      ▒▒  ▒▒

We hope you enjoyed learning about the various aspects of Rust!
If you noticed any issues, please don't hesitate to report them.
You can also contribute your own exercises to help the greater community!"""

WELCOME = r"""       welcome to...
  ____________________________________
 |                                    |
 |   r u s t d r i l l                |
 |____________________________________|"""


if __name__ == "__main__":
    raise SystemExit(main())