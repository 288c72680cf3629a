"""Running a single exercise and resetting it."""

from __future__ import annotations

import subprocess
import sys

from .exercise import Exercise, ExerciseFailed, Mode
from .ui import success, warn
from .verify import VerificationError, test


class RunFailed(Exception):
    """Running or resetting an exercise failed."""

    def __init__(self, exercise: Exercise) -> None:
        super().__init__(f"running {exercise} failed")
        self.exercise = exercise


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


def _compile_and_run(exercise: Exercise) -> None:
    _status(f"Compiling {exercise}...")
    try:
        compiled = exercise.compile()
    except ExerciseFailed as exc:
        _clear_status()
        warn(f"Compilation of {exercise} failed!, Compiler error message:\n")
        print(exc.output.stderr)
        raise RunFailed(exercise) from exc

    with compiled:
        _status(f"Running {exercise}...")
        try:
            output = compiled.run()
        except ExerciseFailed as exc:
            _clear_status()
            print(exc.output.stdout)
            print(exc.output.stderr)
            warn(f"Ran {exercise} with errors")
            raise RunFailed(exercise) from exc
        _clear_status()

    print(output.stdout)
    success(f"Successfully ran {exercise}")


def run(exercise: Exercise, verbose: bool = False) -> None:
    """Compile and run one exercise; raise RunFailed when it does not succeed."""
    match exercise.mode:
        case Mode.TEST | Mode.BUILD_SCRIPT:
            try:
                test(exercise, verbose)
            except VerificationError as exc:
                raise RunFailed(exercise) from exc
        case Mode.COMPILE | Mode.CLIPPY:
            _compile_and_run(exercise)


def reset(exercise: Exercise) -> subprocess.Popen:
    """Start `git stash -- <path>` for the exercise and return the process."""
    try:
        return subprocess.Popen(["git", "stash", "--", str(exercise.path)])
    except OSError as exc:
        raise RunFailed(exercise) from exc