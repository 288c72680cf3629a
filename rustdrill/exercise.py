"""Exercises: their description, completion state, compilation and running."""

from __future__ import annotations

import contextlib
import enum
import os
import re
import subprocess
import threading
import tomllib
from dataclasses import dataclass
from pathlib import Path

from .ui import emoji_enabled

RUSTC_COLOR_ARGS = ("--color", "always")
RUSTC_EDITION_ARGS = ("--edition", "2021")
I_AM_DONE_REGEX = re.compile(r"^\s*///?\s*I\s+AM\s+NOT\s+DONE", re.MULTILINE)
CONTEXT = 2
CLIPPY_CARGO_TOML_PATH = "./exercises/clippy/Cargo.toml"
BUILD_SCRIPT_CARGO_TOML_PATH = "./exercises/tests/Cargo.toml"


def temp_file_path() -> Path:
    """Return a binary path unique to this process and thread."""
    return Path(f"temp_{os.getpid()}_ThreadId{threading.get_ident()}")


def _clean() -> None:
    with contextlib.suppress(OSError):
        temp_file_path().unlink()


def _decode(data: bytes | None) -> str:
    return (data or b"").decode("utf-8", errors="replace")


def _lines(source: str) -> list[str]:
    parts = source.split("\n")
    if parts and parts[-1] == "":
        parts.pop()
    return [part.removesuffix("\r") for part in parts]


class Mode(enum.Enum):
    """How an exercise is checked."""

    COMPILE = "compile"
    TEST = "test"
    CLIPPY = "clippy"
    BUILD_SCRIPT = "buildscript"


@dataclass(frozen=True)
class ContextLine:
    """A source line shown around the pending marker."""

    line: str
    number: int
    important: bool


@dataclass(frozen=True)
class State:
    """Completion state; an empty context means the exercise is done."""

    context: tuple[ContextLine, ...] = ()

    def is_done(self) -> bool:
        return not self.context


@dataclass(frozen=True)
class ExerciseOutput:
    """Captured output of a compiler or exercise binary."""

    stdout: str
    stderr: str


class ExerciseFailed(Exception):
    """Compiling or running an exercise failed."""

    def __init__(self, output: ExerciseOutput) -> None:
        super().__init__(output.stderr or output.stdout)
        self.output = output


def _output_of(result: subprocess.CompletedProcess) -> ExerciseOutput:
    return ExerciseOutput(stdout=_decode(result.stdout), stderr=_decode(result.stderr))


@dataclass
class Exercise:
    """One exercise as listed in info.toml."""

    name: str
    path: Path
    mode: Mode
    hint: str

    def __str__(self) -> str:
        return str(self.path)

    def _write_manifest(self, manifest: str) -> None:
        content = (
            "[package]\n"
            f'name = "{self.name}"\n'
            'version = "0.0.1"\n'
            'edition = "2021"\n'
            "[[bin]]\n"
            f'name = "{self.name}"\n'
            f'path = "{self.name}.rs"'
        )
        message = (
            "Failed to write 📎 Clippy 📎 Cargo.toml file."
            if emoji_enabled()
            else "Failed to write Clippy Cargo.toml file."
        )
        try:
            Path(manifest).write_text(content, encoding="utf-8")
        except OSError as exc:
            raise OSError(message) from exc

    def compile(self) -> CompiledExercise:
        """Build the exercise; raise ExerciseFailed with the compiler output on failure."""
        target = str(temp_file_path())
        source = str(self.path)
        rustc = ["rustc", source, "-o", target, *RUSTC_COLOR_ARGS, *RUSTC_EDITION_ARGS]
        match self.mode:
            case Mode.COMPILE:
                command = rustc
            case Mode.TEST:
                command = ["rustc", "--test", *rustc[1:]]
            case Mode.CLIPPY:
                self._write_manifest(CLIPPY_CARGO_TOML_PATH)
                # A binary is built too so the exercise can be run afterwards;
                # clippy reports any compile failure itself.
                subprocess.run(rustc, capture_output=True, check=False)
                subprocess.run(
                    ["cargo", "clean", "--manifest-path", CLIPPY_CARGO_TOML_PATH,
                     *RUSTC_COLOR_ARGS],
                    capture_output=True,
                    check=False,
                )
                command = [
                    "cargo", "clippy", "--manifest-path", CLIPPY_CARGO_TOML_PATH,
                    *RUSTC_COLOR_ARGS, "--", "-D", "warnings", "-D", "clippy::float_cmp",
                ]
            case Mode.BUILD_SCRIPT:
                self._write_manifest(BUILD_SCRIPT_CARGO_TOML_PATH)
                command = ["cargo", "test", "--manifest-path", BUILD_SCRIPT_CARGO_TOML_PATH]
        result = subprocess.run(command, capture_output=True, check=False)
        if result.returncode == 0:
            return CompiledExercise(self, Path(target))
        _clean()
        raise ExerciseFailed(_output_of(result))

    def state(self) -> State:
        """Return Done, or Pending with the lines around the first marker."""
        source = self.path.read_text(encoding="utf-8")
        if not I_AM_DONE_REGEX.search(source):
            return State()
        lines = _lines(source)
        matched = next(
            (index for index, line in enumerate(lines) if I_AM_DONE_REGEX.search(line)),
            None,
        )
        if matched is None:
            raise ValueError(f"marker in {self.path} spans several lines")
        first = max(0, matched - CONTEXT)
        return State(
            tuple(
                ContextLine(line=line, number=index + 1, important=index == matched)
                for index, line in enumerate(lines[first:matched + CONTEXT + 1], start=first)
            )
        )

    def looks_done(self) -> bool:
        """Whether the pending marker has been removed."""
        return self.state().is_done()


class CompiledExercise:
    """A built exercise; closing it removes the binary."""

    def __init__(self, exercise: Exercise, binary: Path) -> None:
        self.exercise = exercise
        self.binary = binary

    def run(self) -> ExerciseOutput:
        """Run the binary; raise ExerciseFailed when it exits unsuccessfully."""
        mode = self.exercise.mode
        if mode is Mode.BUILD_SCRIPT:
            return ExerciseOutput(stdout="", stderr="")
        arg = "--show-output" if mode is Mode.TEST else ""
        result = subprocess.run(
            [os.path.abspath(self.binary), arg], capture_output=True, check=False
        )
        output = _output_of(result)
        if result.returncode != 0:
            raise ExerciseFailed(output)
        return output

    def close(self) -> None:
        with contextlib.suppress(OSError):
            self.binary.unlink()

    def __enter__(self) -> CompiledExercise:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def load_exercises(path: str | os.PathLike = "info.toml") -> list[Exercise]:
    """Read the exercise list from a TOML file."""
    with open(path, "rb") as handle:
        data = tomllib.load(handle)
    try:
        return [
            Exercise(
                name=entry["name"],
                path=Path(entry["path"]),
                mode=Mode(entry["mode"]),
                hint=entry["hint"],
            )
            for entry in data["exercises"]
        ]
    except (KeyError, TypeError) as exc:
        raise ValueError(f"invalid exercise list: {exc}") from exc