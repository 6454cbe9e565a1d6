"""Console handle: user-facing output and interactive prompts.

Created once in main() and passed to whoever needs to talk to the user.
Use it as a context manager so the session is always closed.
"""

from __future__ import annotations

import sys
from typing import TextIO

# ANSI color codes
GREEN = "\033[32m"
YELLOW = "\033[33m"
BLUE = "\033[34m"
RED = "\033[31m"
RESET = "\033[0m"
CHECK = "✓"
BULLET = "•"
CROSS = "✗"
WARN = "⚠"

RULE = "═" * 39
THIN_RULE = "─" * 39


class Console:
    def __init__(self, stdin: TextIO | None = None, stdout: TextIO | None = None):
        self._in = stdin or sys.stdin
        self._out = stdout or sys.stdout
        self._closed = False

    def __enter__(self) -> Console:
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def close(self) -> None:
        if not self._closed:
            self._out.flush()
            self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed

    def _supports_color(self) -> bool:
        return hasattr(self._out, "isatty") and self._out.isatty()

    def _colorize(self, text: str, color: str) -> str:
        if self._supports_color():
            return f"{color}{text}{RESET}"
        return text

    # ── Output ──────────────────────────────────────────

    def print(self, message: str = "") -> None:
        print(message, file=self._out)

    def success(self, message: str) -> None:
        print(f"{self._colorize(CHECK, GREEN)} {message}", file=self._out)

    def info(self, message: str) -> None:
        print(f"{self._colorize(BULLET, YELLOW)} {message}", file=self._out)

    def warn(self, message: str) -> None:
        print(f"{self._colorize(WARN, YELLOW)}  {message}", file=self._out)

    def error(self, message: str) -> None:
        print(f"{self._colorize(CROSS, RED)} {message}", file=self._out)

    def header(self, message: str) -> None:
        print(self._colorize(message, BLUE), file=self._out)

    def rule(self, thin: bool = False) -> None:
        print(THIN_RULE if thin else RULE, file=self._out)

    # ── Input ───────────────────────────────────────────

    def ask(self, question: str) -> str:
        """Prompt and read one line.

        Raises:
            EOFError: If input is exhausted.
        """
        if self._closed:
            raise RuntimeError("Console is closed")
        self._out.write(question)
        self._out.flush()
        line = self._in.readline()
        if not line:
            raise EOFError("input closed")
        return line.rstrip("\r\n")

    def confirm(self, question: str) -> bool:
        return self.ask(f"{question} (yes/no): ").strip().lower() in ("yes", "y")

    def ask_required(self, question: str, error: str) -> str:
        """Re-ask until a non-blank answer is given."""
        while True:
            answer = self.ask(question).strip()
            if answer:
                return answer
            self.error(error)

    def choose(self, question: str, choices: tuple[str, ...]) -> str:
        while True:
            answer = self.ask(question).strip()
            if answer in choices:
                return answer
            self.error(f"Invalid choice. Please enter {' or '.join(choices)}.")

