"""Coloured status lines for the terminal."""

from __future__ import annotations

import os
import sys

_RED = "31"
_GREEN = "32"


def emoji_enabled() -> bool:
    """Return True unless the NO_EMOJI environment variable is set."""
    return "NO_EMOJI" not in os.environ


def _style(text: str, code: str) -> str:
    stream = sys.stdout
    if stream is None or not stream.isatty():
        return text
    return f"\x1b[{code}m{text}\x1b[0m"


def _emit(symbol: str, message: str, code: str) -> str:
    line = f"{_style(symbol, code)} {_style(message, code)}"
    print(line)
    return line


def warn(message: str) -> str:
    """Print a red warning line and return it."""
    symbol = "⚠️ " if emoji_enabled() else "!"
    return _emit(symbol, message, _RED)


def success(message: str) -> str:
    """Print a green success line and return it."""
    symbol = "✅" if emoji_enabled() else "✓"
    return _emit(symbol, message, _GREEN)