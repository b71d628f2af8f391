"""Entry point: python -m memostack [command ...]

- No args:      Interactive CLI REPL
- Any command:  Run it once and print the reply, e.g.
                python -m memostack add "Buy milk\\nAlso eggs and bread"
"""

from __future__ import annotations

import logging
import sys

from memostack.config import load_config


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _run_cli() -> None:
    """Interactive CLI REPL mode."""
    config = load_config()
    _setup_logging(config.log_level)

    from memostack.connectors.cli import CLIConnector
    from memostack.core import MemoApp

    cli = CLIConnector(MemoApp(config))
    try:
        cli.start()
    except KeyboardInterrupt:
        pass


def _run_once(args: list[str]) -> None:
    """One-shot mode — a single command from argv."""
    config = load_config()
    _setup_logging(config.log_level)

    from memostack.core import MemoApp

    reply = MemoApp(config).handle(" ".join(args))
    if reply:
        print(reply)


def main(argv: list[str] | None = None) -> None:
    args = sys.argv[1:] if argv is None else argv

    if not args or args[0] in ("repl", "chat"):
        _run_cli()
    elif args[0] in ("-h", "--help"):
        print("Usage: python -m memostack [command ...]")
        print("  (no args)  Interactive REPL")
        print("  <command>  Run one command, e.g. 'list cold' (see 'help')")
    else:
        _run_once(args)


if __name__ == "__main__":
    main()
