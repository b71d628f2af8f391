"""memostack command hub.

Responsibilities:
1. Parse a command line coming from any connector
2. Promote delayed memos whose time has come
3. Route the command to the store or the view
4. Turn not-found and bad-input errors into readable replies
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable

from memostack.config import MemoStackConfig
from memostack.memo.models import Memo, MemoNotFound, MemoStatus, format_delay, parse_delay
from memostack.memo.store import MemoStore
from memostack.view import MemoView

logger = logging.getLogger(__name__)

HELP_TEXT = """\
Commands:
  add [--delay HH:MM] <text>   New memo (first line = title, use \\n for line breaks)
  list [hot|cold|done|delayed|all]
  show <id> | collapse <id> | toggle <id>
  hot <id> | cold <id> | done <id> | flip <id>
  delay <id> <HH:MM>           Hide a memo until the delay passes
  up <id> | top <id>           Reorder the hot stack
  edit <id> <text>             Replace a memo's text
  delete <id>                  Delete permanently
  search [text]                Filter the active tab (no text clears)
  capacity <n>                 Change the hot set size
  cleanup [keep]               Prune old backup versions (default keep 50)
  stats | help | exit"""

_ALIASES = {
    "a": "add",
    "ls": "list",
    "l": "list",
    "expand": "show",
    "rm": "delete",
    "del": "delete",
    "tab": "list",
    "?": "help",
}


class CommandError(ValueError):
    """Bad command arguments; the message is shown to the user as-is."""


def _parse_id(arg: str, usage: str) -> int:
    token = arg.split(maxsplit=1)[0] if arg.strip() else ""
    try:
        return int(token.lstrip("#"))
    except ValueError:
        raise CommandError(f"Usage: {usage}") from None


def _label(memo: Memo) -> str:
    return f"[{memo.id}] {memo.title}"


class MemoApp:
    """Core hub — routes commands between connectors, the store and the view."""

    def __init__(
        self,
        config: MemoStackConfig,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.config = config
        self.store = MemoStore(config.data_dir, max_hot_count=config.memo.max_hot_count)
        self.view = MemoView(self.store, config.memo)
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._commands: dict[str, Callable[[str], str]] = {
            "add": self._cmd_add,
            "list": self._cmd_list,
            "show": self._cmd_show,
            "collapse": self._cmd_collapse,
            "toggle": self._cmd_toggle,
            "hot": self._cmd_hot,
            "cold": self._cmd_cold,
            "done": self._cmd_done,
            "delay": self._cmd_delay,
            "flip": self._cmd_flip,
            "up": self._cmd_up,
            "top": self._cmd_top,
            "edit": self._cmd_edit,
            "delete": self._cmd_delete,
            "search": self._cmd_search,
            "capacity": self._cmd_capacity,
            "stats": self._cmd_stats,
            "cleanup": self._cmd_cleanup,
            "help": self._cmd_help,
        }

    # ── Command handling (the core loop) ─────────────────────

    def handle(self, line: str) -> str:
        """Process one command line — the main entry point for all connectors."""
        line = line.strip()
        if not line:
            return ""

        cmd, _, rest = line.partition(" ")
        name = _ALIASES.get(cmd.lower(), cmd.lower())
        handler = self._commands.get(name)
        if handler is None:
            return f"Unknown command: {cmd}. Type 'help' for usage."

        hot_before = self.store.hot_stack
        notices = [f"Delayed memo is now hot: {_label(m)}" for m in self._promote_due()]
        notices.extend(self._demotion_notes(hot_before))
        try:
            reply = handler(rest.strip())
        except (MemoNotFound, ValueError) as e:
            reply = str(e)
        return "\n".join(notices + [reply]) if notices else reply

    def _promote_due(self) -> list[Memo]:
        promoted = self.store.promote_due(self._clock())
        if promoted:
            logger.info("Promoted %d delayed memo(s)", len(promoted))
        return promoted

    def _demotion_notes(self, hot_before: list[int], moved: int | None = None) -> list[str]:
        """Memos pushed out of the hot set as a side effect of the last command."""
        hot_after = self.store.hot_stack
        gone = [i for i in hot_before if i not in hot_after and i != moved]
        notes = []
        for memo_id in gone:
            memo = self.store.get(memo_id)
            if memo.status is MemoStatus.COLD:
                notes.append(f"Hot set full, moved to cold: {_label(memo)}")
        return notes

    # ── Commands ─────────────────────────────────────────────

    def _cmd_add(self, arg: str) -> str:
        delay: int | None = None
        if arg.split(maxsplit=1)[:1] == ["--delay"]:
            _, _, arg = arg.partition(" ")
            value, _, arg = arg.strip().partition(" ")
            delay = parse_delay(value)
            if delay is None:
                raise CommandError(f"Invalid delay '{value}' (expected HH:MM)")

        text = arg.replace("\\n", "\n")
        if not text.strip():
            raise CommandError("Usage: add [--delay HH:MM] <text>")

        hot_before = self.store.hot_stack
        memo = self.store.create(text, delay_minutes=delay, now=self._clock())
        if memo.status is MemoStatus.DELAYED:
            lines = [f"Added {_label(memo)} (delayed {format_delay(delay or 0)})"]
        else:
            lines = [f"Added {_label(memo)}"]
        lines.extend(self._demotion_notes(hot_before))
        return "\n".join(lines)

    def _cmd_list(self, arg: str) -> str:
        now = self._clock()
        if arg.lower() == "all":
            return self.view.render_all(now)
        if arg:
            self.view.switch_tab(arg)
        return self.view.render(now=now)

    def _cmd_show(self, arg: str) -> str:
        memo_id = _parse_id(arg, "show <id>")
        if not self.view.expand(memo_id):
            return f"{self.view.render_memo(memo_id, self._clock())}\n(no details)"
        return self.view.render_memo(memo_id, self._clock())

    def _cmd_collapse(self, arg: str) -> str:
        memo_id = _parse_id(arg, "collapse <id>")
        self.view.collapse(memo_id)
        return self.view.render_memo(memo_id, self._clock())

    def _cmd_toggle(self, arg: str) -> str:
        memo_id = _parse_id(arg, "toggle <id>")
        self.view.toggle(memo_id)
        return self.view.render_memo(memo_id, self._clock())

    def _move(self, arg: str, status: MemoStatus) -> str:
        memo_id = _parse_id(arg, f"{status.value} <id>")
        hot_before = self.store.hot_stack
        memo = self.store.set_status(memo_id, status, now=self._clock())
        lines = [f"Moved {_label(memo)} to {status.value}"]
        lines.extend(self._demotion_notes(hot_before, memo_id))
        return "\n".join(lines)

    def _cmd_hot(self, arg: str) -> str:
        return self._move(arg, MemoStatus.HOT)

    def _cmd_cold(self, arg: str) -> str:
        return self._move(arg, MemoStatus.COLD)

    def _cmd_done(self, arg: str) -> str:
        return self._move(arg, MemoStatus.DONE)

    def _cmd_delay(self, arg: str) -> str:
        memo_id = _parse_id(arg, "delay <id> <HH:MM>")
        parts = arg.split()
        if len(parts) != 2:
            raise CommandError("Usage: delay <id> <HH:MM>")
        minutes = parse_delay(parts[1])
        if minutes is None:
            raise CommandError(f"Invalid delay '{parts[1]}' (expected HH:MM)")
        memo = self.store.delay(memo_id, minutes, now=self._clock())
        return f"Delayed {_label(memo)} for {format_delay(minutes)}"

    def _cmd_flip(self, arg: str) -> str:
        memo_id = _parse_id(arg, "flip <id>")
        hot_before = self.store.hot_stack
        memo = self.view.toggle_status(memo_id)
        lines = [f"Moved {_label(memo)} to {memo.status.value}"]
        lines.extend(self._demotion_notes(hot_before, memo_id))
        return "\n".join(lines)

    def _cmd_up(self, arg: str) -> str:
        memo_id = _parse_id(arg, "up <id>")
        if self.store.shift_up(memo_id):
            return self.view.render(MemoStatus.HOT, self._clock())
        return self._not_moved(memo_id)

    def _cmd_top(self, arg: str) -> str:
        memo_id = _parse_id(arg, "top <id>")
        if self.store.move_to_top(memo_id):
            return self.view.render(MemoStatus.HOT, self._clock())
        return self._not_moved(memo_id)

    def _not_moved(self, memo_id: int) -> str:
        memo = self.store.get(memo_id)
        if memo.status is not MemoStatus.HOT:
            return f"{_label(memo)} is not hot"
        return f"{_label(memo)} is already at the top"

    def _cmd_edit(self, arg: str) -> str:
        memo_id = _parse_id(arg, "edit <id> <text>")
        _, _, text = arg.partition(" ")
        text = text.replace("\\n", "\n")
        if not text.strip():
            raise CommandError("Usage: edit <id> <text>")
        memo = self.store.update(memo_id, text)
        return f"Updated {_label(memo)}"

    def _cmd_delete(self, arg: str) -> str:
        memo_id = _parse_id(arg, "delete <id>")
        memo = self.store.get(memo_id)
        self.store.delete(memo_id)
        self.view.forget(memo_id)
        return f"Deleted {_label(memo)}"

    def _cmd_search(self, arg: str) -> str:
        self.view.set_search(arg)
        return self.view.render(now=self._clock())

    def _cmd_capacity(self, arg: str) -> str:
        try:
            size = int(arg)
        except ValueError:
            raise CommandError("Usage: capacity <n>") from None
        hot_before = self.store.hot_stack
        self.store.set_capacity(size)
        lines = [f"Hot capacity set to {size}"]
        lines.extend(self._demotion_notes(hot_before))
        return "\n".join(lines)

    def _cmd_stats(self, arg: str) -> str:
        s = self.store.stats()
        return (
            f"hot {s['hot']}/{s['max_hot']} | cold {s['cold']} | done {s['done']} "
            f"| delayed {s['delayed']} | total {s['total']}"
        )

    def _cmd_cleanup(self, arg: str) -> str:
        try:
            keep = int(arg) if arg else 50
        except ValueError:
            raise CommandError("Usage: cleanup [keep]") from None
        if keep < 0:
            raise CommandError("Usage: cleanup [keep]")
        removed = self.store.cleanup_old_versions(keep=keep)
        return f"Removed {removed} old backup version(s)"

    def _cmd_help(self, arg: str) -> str:
        return HELP_TEXT
