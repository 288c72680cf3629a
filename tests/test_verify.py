import subprocess
from pathlib import Path

import pytest

from rustdrill.exercise import Exercise, Mode
from rustdrill.verify import VerificationError, test, verify

PENDING = "// fake_exercise\n\n// I AM NOT DONE\n\nfn main() {\n\n}\n"
FINISHED = "// fake_exercise\n\nfn main() {\n\n}\n"


class FakeToolchain:
    def __init__(self, compile_ok=True, run_ok=True, stdout=b"", stderr=b""):
        self.compile_ok = compile_ok
        self.run_ok = run_ok
        self.stdout = stdout
        self.stderr = stderr
        self.calls = []

    def __call__(self, command, **kwargs):
        command = list(command)
        self.calls.append(command)
        if command[0] in ("rustc", "cargo"):
            code = 0 if self.compile_ok else 1
            return subprocess.CompletedProcess(command, code, b"", b"error: broken build")
        code = 0 if self.run_ok else 101
        return subprocess.CompletedProcess(command, code, self.stdout, self.stderr)


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("NO_EMOJI", "1")
    return tmp_path


def make(workdir: Path, name: str, source: str, mode: Mode, hint: str = "") -> Exercise:
    path = workdir / f"{name}.rs"
    path.write_text(source, encoding="utf-8")
    return Exercise(name=name, path=path, mode=mode, hint=hint)


def install(monkeypatch, fake):
    monkeypatch.setattr(subprocess, "run", fake)
    return fake


def test_finished_exercise_passes_silently(workdir, monkeypatch, capsys):
    fake = install(monkeypatch, FakeToolchain())
    exercise = make(workdir, "done", FINISHED, Mode.COMPILE)
    verify([exercise], (0, 1))
    assert fake.calls[0][0] == "rustc"
    assert len(fake.calls) == 2
    assert "I AM NOT DONE" not in capsys.readouterr().out


def test_compile_failure_names_exercise(workdir, monkeypatch, capsys):
    install(monkeypatch, FakeToolchain(compile_ok=False))
    exercise = make(workdir, "broken", FINISHED, Mode.COMPILE)
    with pytest.raises(VerificationError) as info:
        verify([exercise], (0, 1))
    assert info.value.exercise is exercise
    out = capsys.readouterr().out
    assert f"Compiling of {exercise} failed! Please try again." in out
    assert "error: broken build" in out


def test_stops_at_first_failure(workdir, monkeypatch):
    fake = install(monkeypatch, FakeToolchain(compile_ok=False))
    first = make(workdir, "first", FINISHED, Mode.COMPILE)
    second = make(workdir, "second", FINISHED, Mode.COMPILE)
    with pytest.raises(VerificationError) as info:
        verify([first, second], (0, 2))
    assert info.value.exercise is first
    assert all(str(second.path) not in call for call in fake.calls)


def test_pending_compile_exercise_prompts(workdir, monkeypatch, capsys):
    install(monkeypatch, FakeToolchain(stdout=b"hello output"))
    exercise = make(workdir, "pending", PENDING, Mode.COMPILE)
    with pytest.raises(VerificationError) as info:
        verify([exercise], (0, 1))
    assert info.value.exercise is exercise
    out = capsys.readouterr().out
    assert f"Successfully ran {exercise}!" in out
    assert "~*~ The code is compiling! ~*~" in out
    assert "hello output" in out
    assert " 3 |  // I AM NOT DONE" in out


def test_pending_test_exercise_shows_hint_on_request(workdir, monkeypatch, capsys):
    install(monkeypatch, FakeToolchain())
    exercise = make(workdir, "pending_test", PENDING, Mode.TEST, hint="Hello!")
    with pytest.raises(VerificationError):
        verify([exercise], (0, 1), False, True)
    out = capsys.readouterr().out
    assert f"Successfully tested {exercise}!" in out
    assert "The code is compiling, and the tests pass!" in out
    assert "Hints:" in out
    assert "Hello!" in out


def test_clippy_exercise_writes_manifest(workdir, monkeypatch, capsys):
    (workdir / "exercises" / "clippy").mkdir(parents=True)
    install(monkeypatch, FakeToolchain())
    exercise = make(workdir, "clippy1", PENDING, Mode.CLIPPY)
    with pytest.raises(VerificationError):
        verify([exercise], (0, 1))
    manifest = (workdir / "exercises" / "clippy" / "Cargo.toml").read_text()
    assert 'name = "clippy1"' in manifest
    assert "The code is compiling, and Clippy is happy!" in capsys.readouterr().out


def test_harness_failure_raises(workdir, monkeypatch, capsys):
    install(monkeypatch, FakeToolchain(run_ok=False, stdout=b"test failed"))
    exercise = make(workdir, "testFailure", FINISHED, Mode.TEST)
    with pytest.raises(VerificationError) as info:
        test(exercise)
    assert info.value.exercise is exercise
    out = capsys.readouterr().out
    assert f"Testing of {exercise} failed!" in out
    assert "test failed" in out


def test_test_with_verbose_shows_output(workdir, monkeypatch, capsys):
    fake = install(monkeypatch, FakeToolchain(stdout=b"THIS TEST TOO SHALL PASS"))
    exercise = make(workdir, "testSuccess", PENDING, Mode.TEST)
    test(exercise, True)
    assert "THIS TEST TOO SHALL PASS" in capsys.readouterr().out
    assert fake.calls[-1][-1] == "--show-output"


def test_test_without_verbose_hides_output(workdir, monkeypatch, capsys):
    install(monkeypatch, FakeToolchain(stdout=b"THIS TEST TOO SHALL PASS"))
    exercise = make(workdir, "testSuccess", FINISHED, Mode.TEST)
    test(exercise, False)
    assert "THIS TEST TOO SHALL PASS" not in capsys.readouterr().out