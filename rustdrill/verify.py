"""Checking exercises in order and reporting the first one that fails."""

from __future__ import annotations

import enum
import sys
from collections.abc import Iterable

from .exercise import CompiledExercise, Exercise, ExerciseFailed, Mode
from .ui import emoji_enabled, success, warn

_BAR_WIDTH = 60


class VerificationError(Exception):
    """An exercise failed to compile, run, test, or is still marked as not done."""

    def __init__(self, exercise: Exercise) -> None:
        super().__init__(f"{exercise} is not finished")
        self.exercise = exercise


class _RunMode(enum.Enum):
    INTERACTIVE = enum.auto()
    NON_INTERACTIVE = enum.auto()


class _Failed(Exception):
    """Internal signal that a check has already reported its failure."""


def _paint(text: str, *codes: str) -> str:
    stream = sys.stdout
    if stream is None or not stream.isatty() or not codes:
        return text
    return f"\x1b[{';'.join(codes)}m{text}\x1b[0m"


def _status(message: str) -> None:
    stream = sys.stderr
    if stream is not None and stream.isatty():
        stream.write(f"\r\x1b[2K{message}")
        stream.flush()


def _clear_status() -> None:
    stream = sys.stderr
    if stream is not None and stream.isatty():
        stream.write("\r\x1b[2K")
        stream.flush()


class _ProgressBar:
    """A progress line drawn on a terminal's standard error, hidden otherwise."""

    def __init__(self, position: int, total: int) -> None:
        self.position = position
        self.total = total
        self.message = ""

    def render(self) -> str:
        ratio = self.position / self.total if self.total else 0.0
        filled = min(_BAR_WIDTH, int(ratio * _BAR_WIDTH))
        if filled >= _BAR_WIDTH:
            bar = "#" * _BAR_WIDTH
        else:
            bar = "#" * filled + ">" + "-" * (_BAR_WIDTH - filled - 1)
        return f"Progress: [{bar}] {self.position}/{self.total} {self.message}"

    def draw(self) -> None:
        _status(self.render())

    def finish(self) -> None:
        stream = sys.stderr
        if stream is not None and stream.isatty():
            stream.write("\n")
            stream.flush()


def _separator() -> str:
    return _paint("====================", "1")


def _compile(exercise: Exercise) -> CompiledExercise:
    try:
        return exercise.compile()
    except ExerciseFailed as exc:
        _clear_status()
        warn(f"Compiling of {exercise} failed! Please try again. Here's the output:")
        print(exc.output.stderr)
        raise _Failed from exc


def _prompt_for_completion(
    exercise: Exercise, prompt_output: str | None, success_hints: bool
) -> bool:
    state = exercise.state()
    if state.is_done():
        return True

    match exercise.mode:
        case Mode.COMPILE:
            success(f"Successfully ran {exercise}!")
        case Mode.TEST:
            success(f"Successfully tested {exercise}!")
        case Mode.CLIPPY | Mode.BUILD_SCRIPT:
            success(f"Successfully compiled {exercise}!")

    no_emoji = not emoji_enabled()
    clippy_message = (
        "The code is compiling, and Clippy is happy!"
        if no_emoji
        else "The code is compiling, and 📎 Clippy 📎 is happy!"
    )
    success_message = {
        Mode.COMPILE: "The code is compiling!",
        Mode.TEST: "The code is compiling, and the tests pass!",
        Mode.CLIPPY: clippy_message,
        Mode.BUILD_SCRIPT: "Build script works!",
    }[exercise.mode]

    print()
    if no_emoji:
        print(f"~*~ {success_message} ~*~")
    else:
        print(f"🎉 🎉  {success_message} 🎉 🎉")
    print()

    if prompt_output is not None:
        print("Output:")
        print(_separator())
        print(prompt_output)
        print(_separator())
        print()
    if success_hints:
        print("Hints:")
        print(_separator())
        print(exercise.hint)
        print(_separator())
        print()

    print("You can keep working on this exercise,")
    print(
        "or jump into the next one by removing the "
        f"{_paint('`I AM NOT DONE`', '1')} comment:"
    )
    print()
    for context_line in state.context:
        line = _paint(context_line.line, "1") if context_line.important else context_line.line
        number = _paint(f"{context_line.number:>2}", "34", "1")
        print(f"{number} {_paint('|', '34')}  {line}")
    return False


def _compile_only(exercise: Exercise, success_hints: bool) -> bool:
    _status(f"Compiling {exercise}...")
    with _compile(exercise):
        _clear_status()
    return _prompt_for_completion(exercise, None, success_hints)


def _compile_and_run_interactively(exercise: Exercise, success_hints: bool) -> bool:
    _status(f"Compiling {exercise}...")
    with _compile(exercise) as compiled:
        _status(f"Running {exercise}...")
        try:
            output = compiled.run()
        except ExerciseFailed as exc:
            _clear_status()
            warn(f"Ran {exercise} with errors")
            print(exc.output.stdout)
            print(exc.output.stderr)
            raise _Failed from exc
        _clear_status()
    return _prompt_for_completion(exercise, output.stdout, success_hints)


def _compile_and_test(
    exercise: Exercise, run_mode: _RunMode, verbose: bool, success_hints: bool
) -> bool:
    _status(f"Testing {exercise}...")
    with _compile(exercise) as compiled:
        try:
            output = compiled.run()
        except ExerciseFailed as exc:
            _clear_status()
            warn(f"Testing of {exercise} failed! Please try again. Here's the output:")
            print(exc.output.stdout)
            raise _Failed from exc
        _clear_status()
    if verbose:
        print(output.stdout)
    if run_mode is _RunMode.INTERACTIVE:
        return _prompt_for_completion(exercise, None, success_hints)
    return True


def _check(exercise: Exercise, verbose: bool, success_hints: bool) -> bool:
    try:
        match exercise.mode:
            case Mode.TEST | Mode.BUILD_SCRIPT:
                return _compile_and_test(exercise, _RunMode.INTERACTIVE, verbose, success_hints)
            case Mode.COMPILE:
                return _compile_and_run_interactively(exercise, success_hints)
            case Mode.CLIPPY:
                return _compile_only(exercise, success_hints)
    except _Failed:
        return False
    return False


def verify(
    exercises: Iterable[Exercise],
    progress: tuple[int, int],
    verbose: bool = False,
    success_hints: bool = False,
) -> None:
    """Check exercises in order; raise VerificationError naming the first unfinished one."""
    num_done, total = progress
    bar = _ProgressBar(num_done, total)
    percentage = num_done / total * 100.0 if total else 0.0
    bar.message = f"({percentage:.1f} %)"
    bar.draw()

    for exercise in exercises:
        if not _check(exercise, verbose, success_hints):
            raise VerificationError(exercise)
        percentage += 100.0 / total if total else 0.0
        bar.position += 1
        bar.message = f"({percentage:.1f} %)"
        bar.draw()
    bar.finish()


def test(exercise: Exercise, verbose: bool = False) -> None:
    """Compile and run an exercise's test harness; raise VerificationError on failure."""
    try:
        _compile_and_test(exercise, _RunMode.NON_INTERACTIVE, verbose, False)
    except _Failed as exc:
        raise VerificationError(exercise) from exc