"""Local CLI REPL connector."""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING, TextIO

if TYPE_CHECKING:
    from memostack.core import MemoApp


_PROMPT = "\nmemo> "
_EXIT_WORDS = ("exit", "quit", "q")


class CLIConnector:
    """Interactive REPL connector — reads from stdin, writes to stdout."""

    def __init__(
        self,
        app: MemoApp,
        stdin: TextIO | None = None,
        stdout: TextIO | None = None,
    ) -> None:
        self._app = app
        self._stdin = stdin or sys.stdin
        self._stdout = stdout or sys.stdout
        self._running = False

    @property
    def name(self) -> str:
        return "cli"

    def start(self) -> None:
        self._running = True

        self._write("memostack (type 'help' for commands, 'exit' or Ctrl+C to quit)")
        self._write("-" * 48)
        self.reply(self._app.handle("list hot"))

        while self._running:
            try:
                line = self._read_input()
            except KeyboardInterrupt:
                self._write("\nBye!")
                break

            if line is None or line.strip().lower() in _EXIT_WORDS:
                self._write("Bye!")
                break

            text = line.strip()
            if not text:
                continue

            self.reply(self._app.handle(text))

    def _read_input(self) -> str | None:
        self._stdout.write(_PROMPT)
        self._stdout.flush()
        raw = self._stdin.readline()
        if not raw:
            return None
        return raw.rstrip("\n")

    def stop(self) -> None:
        self._running = False

    def reply(self, text: str) -> None:
        if text:
            self._write(text)

    def _write(self, text: str) -> None:
        print(text, file=self._stdout)
