"""Watch mode: re-verify exercises whenever their files change."""

from __future__ import annotations

import enum
import itertools
import os
import queue
import subprocess
import sys
import threading
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import TextIO

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .exercise import Exercise
from .verify import VerificationError, verify

_WATCHED_DIR = "./exercises"
_POLL_SECONDS = 1.0


class WatchStatus(enum.Enum):
    """How watch mode ended."""

    FINISHED = enum.auto()
    UNFINISHED = enum.auto()


class WatchShell:
    """The interactive command prompt that runs beside watch mode."""

    def __init__(self, hint: str | None = None) -> None:
        self._lock = threading.Lock()
        self._hint = hint
        self.should_quit = threading.Event()

    @property
    def hint(self) -> str | None:
        with self._lock:
            return self._hint

    @hint.setter
    def hint(self, value: str | None) -> None:
        with self._lock:
            self._hint = value

    def handle(self, line: str) -> None:
        """Carry out one command typed by the user."""
        command = line.strip()
        if command == "hint":
            hint = self.hint
            if hint is not None:
                print(hint)
        elif command == "clear":
            print("\x1b[2J\x1b[1;1H")
        elif command == "quit":
            self.should_quit.set()
            print("Bye!")
        elif command == "help":
            print("Commands available to you in watch mode:")
            print("  hint   - prints the current exercise's hint")
            print("  clear  - clears the screen")
            print("  quit   - quits watch mode")
            print("  !<cmd> - executes a command, like `!rustc --explain E0381`")
            print("  help   - displays this help message")
            print()
            print("Watch mode automatically re-evaluates the current exercise")
            print("when you edit a file's contents.")
        elif command.startswith("!"):
            shell_command = command[1:]
            parts = shell_command.split()
            if not parts:
                print("no command provided")
                return
            try:
                subprocess.run(parts, check=False)
            except OSError as exc:
                print(f"failed to execute command `{shell_command}`: {exc}")
        else:
            print(f"unknown command: {command}")

    def _read(self, stream: TextIO) -> None:
        while True:
            try:
                line = stream.readline()
            except (OSError, ValueError) as exc:
                print(f"error reading command: {exc}")
                return
            if not line:
                return
            self.handle(line)

    def start(self, stream: TextIO | None = None) -> threading.Thread:
        """Read commands from stream (stdin by default) on a background thread."""
        print(
            "Welcome to watch mode! You can type 'help' to get an overview "
            "of the commands you can use here."
        )
        thread = threading.Thread(
            target=self._read, args=(stream or sys.stdin,), daemon=True
        )
        thread.start()
        return thread


class _EventCollector(FileSystemEventHandler):
    def __init__(self, events: queue.Queue[str]) -> None:
        super().__init__()
        self._events = events

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory or event.event_type not in ("created", "modified"):
            return
        self._events.put(os.fsdecode(event.src_path))


def _clear_screen() -> None:
    print("\x1bc")


def _path_ends_with(path: Path, suffix: Path) -> bool:
    tail = suffix.parts
    parts = path.parts
    return len(tail) <= len(parts) and parts[len(parts) - len(tail):] == tail


def _drain(first: str, events: queue.Queue[str]) -> list[str]:
    seen = {first: None}
    while True:
        try:
            seen.setdefault(events.get_nowait(), None)
        except queue.Empty:
            return list(seen)


def _pending_after_change(filepath: Path, exercises: list[Exercise]) -> Iterator[Exercise]:
    current = next((e for e in exercises if _path_ends_with(filepath, e.path)), None)
    others = (
        e for e in exercises
        if not e.looks_done() and not _path_ends_with(filepath, e.path)
    )
    return itertools.chain([current] if current is not None else [], others)


def watch(
    exercises: Iterable[Exercise], verbose: bool = False, success_hints: bool = False
) -> WatchStatus:
    """Verify exercises, then re-verify on every change under ./exercises until done or quit."""
    exercises = list(exercises)
    events: queue.Queue[str] = queue.Queue()
    observer = Observer()
    observer.schedule(_EventCollector(events), _WATCHED_DIR, recursive=True)
    observer.start()
    try:
        _clear_screen()
        try:
            verify(exercises, (0, len(exercises)), verbose, success_hints)
        except VerificationError as exc:
            shell = WatchShell(exc.exercise.hint)
        else:
            return WatchStatus.FINISHED

        shell.start()
        while True:
            try:
                first = events.get(timeout=_POLL_SECONDS)
            except queue.Empty:
                pass
            else:
                for changed in _drain(first, events):
                    path = Path(changed)
                    if path.suffix != ".rs" or not path.exists():
                        continue
                    filepath = path.resolve()
                    pending = _pending_after_change(filepath, exercises)
                    num_done = sum(1 for e in exercises if e.looks_done())
                    _clear_screen()
                    try:
                        verify(pending, (num_done, len(exercises)), verbose, success_hints)
                    except VerificationError as exc:
                        shell.hint = exc.exercise.hint
                    else:
                        return WatchStatus.FINISHED
            if shell.should_quit.is_set():
                return WatchStatus.UNFINISHED
    finally:
        observer.stop()
        observer.join()