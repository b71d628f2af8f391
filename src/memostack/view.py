"""Text view over the memo store.

Holds UI-only state (expanded memos, active tab, per-tab search, cold
spotlight) and renders title lists. Bodies are shown only for memos the
user expanded.
"""

from __future__ import annotations

import logging
import random
import time
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Callable

from memostack.config import MemoConfig
from memostack.memo.models import Memo, MemoNotFound, MemoStatus, format_remaining

if TYPE_CHECKING:
    from memostack.memo.store import MemoStore

logger = logging.getLogger(__name__)

MARK_COLLAPSED = "▸"
MARK_EXPANDED = "▾"
MARK_NO_BODY = "•"
BODY_INDENT = "    "

_TAB_LABELS = {
    MemoStatus.HOT: "Hot",
    MemoStatus.COLD: "Cold",
    MemoStatus.DONE: "Done",
    MemoStatus.DELAYED: "Delayed",
}


class MemoView:
    """Renders memos and tracks which ones are expanded."""

    def __init__(
        self,
        store: MemoStore,
        config: MemoConfig | None = None,
        rng: random.Random | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.store = store
        self.config = config or MemoConfig()
        self.active_tab = MemoStatus.HOT
        self._expanded: set[int] = set()
        self._search: dict[MemoStatus, str] = {}
        self._rng = rng
        self._clock = clock
        self._spotlight_id: int | None = None
        self._spotlight_at: float | None = None

    # ── Expand / collapse ─────────────────────────────────────

    def is_expanded(self, memo_id: int) -> bool:
        return memo_id in self._expanded

    def expand(self, memo_id: int) -> bool:
        """Expand a memo. Memos without a body stay collapsed."""
        memo = self.store.get(memo_id)
        if not memo.has_body:
            return False
        self._expanded.add(memo_id)
        return True

    def collapse(self, memo_id: int) -> bool:
        self.store.get(memo_id)
        self._expanded.discard(memo_id)
        return False

    def toggle(self, memo_id: int) -> bool:
        """Flip the expanded state; returns the new state."""
        if memo_id in self._expanded:
            return self.collapse(memo_id)
        return self.expand(memo_id)

    def collapse_all(self) -> None:
        self._expanded.clear()

    def forget(self, memo_id: int) -> None:
        """Drop view state for a memo that no longer exists."""
        self._expanded.discard(memo_id)
        if self._spotlight_id == memo_id:
            self._spotlight_id = None
            self._spotlight_at = None

    # ── Status & navigation ───────────────────────────────────

    def toggle_status(self, memo_id: int) -> Memo:
        """Hot memos go cold; anything else goes hot."""
        memo = self.store.get(memo_id)
        if memo.status is MemoStatus.HOT:
            return self.store.move_to_cold(memo_id)
        return self.store.move_to_hot(memo_id)

    def switch_tab(self, tab: MemoStatus | str) -> MemoStatus:
        if not isinstance(tab, MemoStatus):
            tab = MemoStatus.parse(tab)
        self.active_tab = tab
        return tab

    @property
    def search(self) -> str:
        return self._search.get(self.active_tab, "")

    def set_search(self, text: str) -> None:
        """Set the search filter of the active tab. Empty text clears it."""
        text = text.strip()
        if text:
            self._search[self.active_tab] = text
        else:
            self._search.pop(self.active_tab, None)

    # ── Cold spotlight ────────────────────────────────────────

    def spotlight(self) -> Memo | None:
        """Current cold spotlight memo, rotated every configured interval."""
        interval = self.config.cold_spotlight_interval_seconds
        if interval <= 0:
            return None

        current = self._current_spotlight()
        if (
            current is not None
            and self.config.pause_spotlight_when_expanded
            and current.id in self._expanded
        ):
            return current

        now = self._clock()
        if current is None or self._spotlight_at is None or now - self._spotlight_at >= interval:
            current = self.store.random_cold(self._rng)
            self._spotlight_id = current.id if current else None
            self._spotlight_at = now
            logger.debug("Cold spotlight -> %s", self._spotlight_id)
        return current

    def _current_spotlight(self) -> Memo | None:
        if self._spotlight_id is None:
            return None
        try:
            memo = self.store.get(self._spotlight_id)
        except MemoNotFound:
            return None
        return memo if memo.status is MemoStatus.COLD else None

    # ── Rendering ─────────────────────────────────────────────

    def render(self, tab: MemoStatus | str | None = None, now: datetime | None = None) -> str:
        """Render one tab (the active one by default)."""
        if tab is None:
            tab = self.active_tab
        elif not isinstance(tab, MemoStatus):
            tab = MemoStatus.parse(tab)

        search = self._search.get(tab, "")
        memos = self.store.list(tab, search=search or None)
        now = now or datetime.now(timezone.utc)

        if tab is MemoStatus.HOT:
            header = f"Hot memos: {len(memos)}/{self.store.max_hot_count}"
        else:
            header = f"{_TAB_LABELS[tab]} memos: {len(memos)}"
        if search:
            header += f" (search: {search!r})"

        lines = [header]
        for memo in memos:
            lines.extend(self._render_row(memo, now))
        if not memos:
            lines.append("  (none)")

        if tab is MemoStatus.HOT:
            spot = self.spotlight()
            if spot is not None:
                lines.append("")
                lines.append(
                    f"Cold spotlight (refreshes every "
                    f"{self.config.cold_spotlight_interval_seconds}s):"
                )
                lines.extend(self._render_row(spot, now))
        return "\n".join(lines)

    def render_all(self, now: datetime | None = None) -> str:
        return "\n\n".join(self.render(tab, now) for tab in MemoStatus)

    def render_memo(self, memo_id: int, now: datetime | None = None) -> str:
        memo = self.store.get(memo_id)
        return "\n".join(self._render_row(memo, now or datetime.now(timezone.utc)))

    def _render_row(self, memo: Memo, now: datetime) -> list[str]:
        expanded = memo.has_body and memo.id in self._expanded
        if expanded:
            mark = MARK_EXPANDED
        elif memo.has_body:
            mark = MARK_COLLAPSED
        else:
            mark = MARK_NO_BODY

        info = [f"created {memo.created_at:%Y-%m-%d %H:%M}"]
        if memo.done_at:
            info.append(f"done {memo.done_at:%Y-%m-%d %H:%M}")
        if memo.status is MemoStatus.DELAYED and memo.ready_at is not None:
            if memo.is_ready(now):
                info.append("ready to promote")
            else:
                remaining = (memo.ready_at - now).total_seconds()
                info.append(f"ready in {format_remaining(int(remaining))}")

        lines = [f"{mark} [{memo.id}] {memo.title}  ({', '.join(info)})"]
        if expanded:
            body = memo.body.expandtabs(self.config.tab_spaces)
            lines.extend(f"{BODY_INDENT}{line}" if line else "" for line in body.splitlines())
        return lines
