"""Memo store — hot stack + cold archive on plain files.

Markdown files are the source of truth: one file per memo, YAML frontmatter
for metadata and the body as content. The hot stack order and the id
counter live in state.json. An in-memory index (built once at startup,
updated on every write) avoids repeated disk scans.
"""

from __future__ import annotations

import json
import logging
import random
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path

import frontmatter

from memostack.memo.models import Memo, MemoNotFound, MemoStatus, split_text

logger = logging.getLogger(__name__)

DEFAULT_MAX_HOT = 7
VERSIONS_PER_MEMO = 10


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_dt(value: object) -> datetime | None:
    """Accept both YAML timestamps and ISO strings; always return UTC-aware."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        try:
            dt = datetime.fromisoformat(str(value))
        except ValueError:
            return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


class MemoStore:
    """Read/write access to all memos, hot and cold."""

    def __init__(self, root: Path, max_hot_count: int = DEFAULT_MAX_HOT) -> None:
        if max_hot_count < 1:
            raise ValueError(f"max_hot_count must be positive, got {max_hot_count}")
        self.root = Path(root)
        self.max_hot_count = max_hot_count
        self._memos: dict[int, Memo] = {}
        self._hot_stack: list[int] = []
        self._next_id = 1
        self._ensure_initialized()
        self._load()

    # ── Initialization ────────────────────────────────────────

    @property
    def memos_dir(self) -> Path:
        return self.root / "memos"

    @property
    def state_path(self) -> Path:
        return self.root / "state.json"

    @property
    def versions_dir(self) -> Path:
        return self.root / ".versions"

    def _ensure_initialized(self) -> None:
        """Ensure base directories exist. Idempotent."""
        self.memos_dir.mkdir(parents=True, exist_ok=True)
        self.versions_dir.mkdir(parents=True, exist_ok=True)

    # ── Loading & index ───────────────────────────────────────

    def _load(self) -> None:
        """Scan memos/ once at startup and reconcile the hot stack."""
        state = self._read_state()

        self._memos.clear()
        for md_file in sorted(self.memos_dir.glob("*.md")):
            memo = self._read_memo(md_file)
            if memo is None:
                continue
            self._memos[memo.id] = memo

        highest = max(self._memos, default=0)
        self._next_id = max(int(state.get("next_id", 1)), highest + 1)

        # Drop ids that vanished or are no longer hot, keep stack order
        stack: list[int] = []
        for memo_id in state.get("hot_stack", []):
            memo = self._memos.get(memo_id)
            if memo and memo.status is MemoStatus.HOT and memo_id not in stack:
                stack.append(memo_id)

        # Hot memos the stack lost track of go below the known ones, newest first
        orphans = sorted(
            (m for m in self._memos.values() if m.status is MemoStatus.HOT and m.id not in stack),
            key=lambda m: (m.created_at, m.id),
            reverse=True,
        )
        stack.extend(m.id for m in orphans)
        self._hot_stack = stack

        self._enforce_capacity()
        self._save_state()
        logger.debug("Loaded %d memos (%d hot) from %s", len(self._memos), len(stack), self.root)

    def _read_state(self) -> dict:
        if not self.state_path.exists():
            return {}
        try:
            data = json.loads(self.state_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Unreadable state file %s, rebuilding: %s", self.state_path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def _save_state(self) -> None:
        data = {"next_id": self._next_id, "hot_stack": self._hot_stack}
        self.state_path.write_text(json.dumps(data, indent=2), encoding="utf-8")

    def _read_memo(self, path: Path) -> Memo | None:
        """Parse one memo file. Malformed files are skipped with a warning."""
        try:
            post = frontmatter.load(str(path))
            meta = post.metadata
            memo_id = int(meta["id"])
            delay = meta.get("delay_minutes")
            delay_minutes = int(delay) if delay is not None else None
        except Exception as e:
            logger.warning("Skipping malformed memo file %s: %s", path, e)
            return None

        title = meta.get("title")
        body = post.content
        if title is None:
            # No title key: fall back to first line of the content
            title, body = split_text(body) if body.strip() else ("", "")

        return Memo(
            id=memo_id,
            title=str(title),
            body=body,
            status=MemoStatus.from_string(meta.get("status", "hot")),
            created_at=_parse_dt(meta.get("created")) or _utcnow(),
            done_at=_parse_dt(meta.get("done_at")),
            delay_minutes=delay_minutes,
            delayed_at=_parse_dt(meta.get("delayed_at")),
        )

    # ── File naming & writes ──────────────────────────────────

    def _memo_path(self, memo_id: int) -> Path:
        return self.memos_dir / f"{memo_id}.md"

    def _write_memo(self, memo: Memo) -> None:
        post = frontmatter.Post(
            memo.body,
            id=memo.id,
            title=memo.title,
            status=memo.status.value,
            created=memo.created_at.isoformat(timespec="seconds"),
            done_at=memo.done_at.isoformat(timespec="seconds") if memo.done_at else None,
            delay_minutes=memo.delay_minutes,
            delayed_at=memo.delayed_at.isoformat(timespec="seconds") if memo.delayed_at else None,
        )
        self._memo_path(memo.id).write_text(frontmatter.dumps(post) + "\n", encoding="utf-8")

    def _backup(self, path: Path) -> None:
        """Backup to .versions/, keep at most 10 versions per memo."""
        if not path.exists():
            return
        ts = datetime.now().strftime("%Y%m%dT%H%M%S%f")
        target = self.versions_dir / f"{path.stem}-{ts}.md"
        n = 1
        while target.exists():
            target = self.versions_dir / f"{path.stem}-{ts}-{n}.md"
            n += 1
        target.write_text(path.read_text(encoding="utf-8"), encoding="utf-8")
        old = sorted(self.versions_dir.glob(f"{path.stem}-*.md"))
        for f in old[:-VERSIONS_PER_MEMO]:
            f.unlink()

    def _require(self, memo_id: int) -> Memo:
        memo = self._memos.get(memo_id)
        if memo is None:
            raise MemoNotFound(memo_id)
        return memo

    # ── Hot stack ─────────────────────────────────────────────

    def _push_hot(self, memo: Memo) -> None:
        if memo.id in self._hot_stack:
            self._hot_stack.remove(memo.id)
        self._hot_stack.insert(0, memo.id)
        memo.status = MemoStatus.HOT
        memo.done_at = None

    def _drop_hot(self, memo_id: int) -> None:
        if memo_id in self._hot_stack:
            self._hot_stack.remove(memo_id)

    def _enforce_capacity(self) -> list[Memo]:
        """Demote from the bottom of the stack until it fits."""
        demoted: list[Memo] = []
        while len(self._hot_stack) > self.max_hot_count:
            memo = self._memos[self._hot_stack.pop()]
            memo.status = MemoStatus.COLD
            self._write_memo(memo)
            demoted.append(replace(memo))
            logger.info("Hot set full (%d), demoted memo %d to cold", self.max_hot_count, memo.id)
        return demoted

    @property
    def hot_stack(self) -> list[int]:
        """Hot memo ids, top first."""
        return list(self._hot_stack)

    # ── CRUD ──────────────────────────────────────────────────

    def create(
        self,
        text: str,
        delay_minutes: int | None = None,
        now: datetime | None = None,
    ) -> Memo:
        """Create a memo from raw text. Hot by default, delayed if a delay is given."""
        title, body = split_text(text)
        delayed = delay_minutes is not None and delay_minutes > 0
        memo = Memo(
            id=self._next_id,
            title=title,
            body=body,
            status=MemoStatus.DELAYED if delayed else MemoStatus.HOT,
            created_at=now or _utcnow(),
            delay_minutes=delay_minutes if delayed else None,
        )
        if delayed:
            memo.delayed_at = memo.created_at
        self._next_id += 1
        self._memos[memo.id] = memo

        if memo.status is MemoStatus.HOT:
            self._push_hot(memo)
        self._write_memo(memo)
        self._enforce_capacity()
        self._save_state()

        logger.info("Created memo %d (%s): %s", memo.id, memo.status.value, title)
        return replace(memo)

    def get(self, memo_id: int) -> Memo:
        return replace(self._require(memo_id))

    def list(
        self,
        status: MemoStatus | str | None = None,
        search: str | None = None,
    ) -> list[Memo]:
        """Memos in display order, optionally filtered by status and search text."""
        if status is None:
            memos = [m for s in MemoStatus for m in self._ordered(s)]
        else:
            if not isinstance(status, MemoStatus):
                status = MemoStatus.parse(status)
            memos = self._ordered(status)

        if search:
            memos = [m for m in memos if m.matches(search)]
        return [replace(m) for m in memos]

    def _ordered(self, status: MemoStatus) -> list[Memo]:
        if status is MemoStatus.HOT:
            return [self._memos[i] for i in self._hot_stack]

        memos = [m for m in self._memos.values() if m.status is status]
        if status is MemoStatus.COLD:
            memos.sort(key=lambda m: (m.created_at, m.id), reverse=True)
        elif status is MemoStatus.DONE:
            # Newest completion first; undated ones last, newest created first
            memos.sort(
                key=lambda m: (
                    m.done_at is not None,
                    m.done_at or m.created_at,
                    m.created_at,
                    m.id,
                ),
                reverse=True,
            )
        else:
            memos.sort(key=lambda m: (m.ready_at or m.created_at, m.id))
        return memos

    def update(self, memo_id: int, text: str) -> Memo:
        """Replace a memo's text. Status, id and creation date are kept."""
        memo = self._require(memo_id)
        title, body = split_text(text)
        self._backup(self._memo_path(memo_id))
        memo.title, memo.body = title, body
        self._write_memo(memo)
        logger.info("Updated memo %d: %s", memo_id, title)
        return replace(memo)

    def set_status(
        self,
        memo_id: int,
        status: MemoStatus | str,
        now: datetime | None = None,
        delay_minutes: int | None = None,
    ) -> Memo:
        """Move a memo between hot, cold, done and delayed.

        Delaying needs a positive ``delay_minutes``; the countdown starts at ``now``.
        """
        memo = self._require(memo_id)
        if not isinstance(status, MemoStatus):
            status = MemoStatus.parse(status)
        if status is MemoStatus.DELAYED and (delay_minutes is None or delay_minutes < 1):
            raise ValueError(f"A positive delay is required to delay a memo, got {delay_minutes}")

        if status is MemoStatus.HOT:
            self._push_hot(memo)
        else:
            self._drop_hot(memo_id)
            memo.status = status
            if status is MemoStatus.DONE:
                memo.done_at = now or _utcnow()

        if status is MemoStatus.DELAYED:
            memo.delay_minutes = delay_minutes
            memo.delayed_at = now or _utcnow()
            memo.done_at = None
        else:
            memo.delay_minutes = None
            memo.delayed_at = None

        self._write_memo(memo)
        self._enforce_capacity()
        self._save_state()
        logger.info("Memo %d -> %s", memo_id, status.value)
        return replace(memo)

    def move_to_hot(self, memo_id: int) -> Memo:
        return self.set_status(memo_id, MemoStatus.HOT)

    def move_to_cold(self, memo_id: int) -> Memo:
        return self.set_status(memo_id, MemoStatus.COLD)

    def move_to_done(self, memo_id: int, now: datetime | None = None) -> Memo:
        return self.set_status(memo_id, MemoStatus.DONE, now=now)

    def delay(self, memo_id: int, delay_minutes: int, now: datetime | None = None) -> Memo:
        return self.set_status(memo_id, MemoStatus.DELAYED, now=now, delay_minutes=delay_minutes)

    def delete(self, memo_id: int) -> None:
        """Delete a memo permanently."""
        self._require(memo_id)
        self._memo_path(memo_id).unlink(missing_ok=True)
        del self._memos[memo_id]
        self._drop_hot(memo_id)
        self._save_state()
        logger.info("Deleted memo %d", memo_id)

    # ── Stack ordering ────────────────────────────────────────

    def shift_up(self, memo_id: int) -> bool:
        """Swap a hot memo with the one above it. Returns False if nothing moved."""
        self._require(memo_id)
        if memo_id not in self._hot_stack:
            return False
        pos = self._hot_stack.index(memo_id)
        if pos == 0:
            return False
        self._hot_stack[pos - 1], self._hot_stack[pos] = memo_id, self._hot_stack[pos - 1]
        self._save_state()
        return True

    def move_to_top(self, memo_id: int) -> bool:
        """Move a hot memo to the top of the stack. Returns False if nothing moved."""
        self._require(memo_id)
        if memo_id not in self._hot_stack or self._hot_stack[0] == memo_id:
            return False
        self._hot_stack.remove(memo_id)
        self._hot_stack.insert(0, memo_id)
        self._save_state()
        return True

    def set_capacity(self, max_hot_count: int) -> list[Memo]:
        """Change the hot capacity; returns memos demoted to fit."""
        if max_hot_count < 1:
            raise ValueError(f"max_hot_count must be positive, got {max_hot_count}")
        self.max_hot_count = max_hot_count
        demoted = self._enforce_capacity()
        self._save_state()
        return demoted

    # ── Time-based transitions ────────────────────────────────

    def promote_due(self, now: datetime | None = None) -> list[Memo]:
        """Move delayed memos whose delay has elapsed into the hot set."""
        now = now or _utcnow()
        due = [m for m in self._ordered(MemoStatus.DELAYED) if m.is_ready(now)]
        return [self.set_status(m.id, MemoStatus.HOT, now=now) for m in due]

    def random_cold(self, rng: random.Random | None = None) -> Memo | None:
        cold = self._ordered(MemoStatus.COLD)
        if not cold:
            return None
        return replace((rng or random).choice(cold))

    # ── Statistics & maintenance ──────────────────────────────

    def stats(self) -> dict[str, int]:
        counts = {s.value: 0 for s in MemoStatus}
        for memo in self._memos.values():
            counts[memo.status.value] += 1
        counts["total"] = len(self._memos)
        counts["max_hot"] = self.max_hot_count
        return counts

    def cleanup_old_versions(self, keep: int = 50) -> int:
        """Keep only the most recent `keep` version files."""
        versions = sorted(
            self.versions_dir.glob("*"),
            key=lambda p: p.stat().st_mtime,
            reverse=True,
        )
        removed = 0
        for path in versions[keep:]:
            path.unlink()
            removed += 1
        return removed
