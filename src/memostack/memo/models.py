"""Memo data types and text helpers."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum


class MemoStatus(str, Enum):
    HOT = "hot"
    COLD = "cold"
    DONE = "done"
    DELAYED = "delayed"

    @classmethod
    def from_string(cls, value: str) -> MemoStatus:
        """Parse a persisted status. Unknown values fall back to hot."""
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.HOT

    @classmethod
    def parse(cls, value: str) -> MemoStatus:
        """Parse user input. Unknown values raise ValueError."""
        try:
            return cls(value.strip().lower())
        except ValueError:
            names = ", ".join(s.value for s in cls)
            raise ValueError(f"Unknown status '{value}' (expected one of: {names})") from None


class MemoNotFound(LookupError):
    """Raised when an operation references an unknown memo id."""

    def __init__(self, memo_id: int) -> None:
        super().__init__(f"Memo not found: {memo_id}")
        self.memo_id = memo_id


@dataclass
class Memo:
    """A single memo. The title is the first line; the body is the rest."""

    id: int
    title: str
    body: str
    status: MemoStatus
    created_at: datetime
    done_at: datetime | None = None
    delay_minutes: int | None = None
    delayed_at: datetime | None = None

    @property
    def text(self) -> str:
        return f"{self.title}\n{self.body}" if self.body else self.title

    @property
    def has_body(self) -> bool:
        return bool(self.body)

    @property
    def ready_at(self) -> datetime | None:
        if self.status is not MemoStatus.DELAYED or self.delay_minutes is None:
            return None
        anchor = self.delayed_at or self.created_at
        return anchor + timedelta(minutes=self.delay_minutes)

    def is_ready(self, now: datetime) -> bool:
        ready_at = self.ready_at
        return ready_at is not None and now >= ready_at

    def matches(self, search: str) -> bool:
        """Case-insensitive substring match against title or body."""
        q = search.strip().lower()
        if not q:
            return True
        return q in self.title.lower() or q in self.body.lower()


def split_text(text: str) -> tuple[str, str]:
    """Split memo input into (title, body).

    >>> split_text("Buy milk\\nAlso eggs and bread")
    ('Buy milk', 'Also eggs and bread')
    """
    text = text.strip()
    if not text:
        raise ValueError("Memo text is empty")
    title, _, body = text.partition("\n")
    return title.strip(), body.strip()


def parse_delay(value: str) -> int | None:
    """Parse an HH:MM delay into minutes. "00:00" and junk return None."""
    value = value.strip()
    if value.isdigit():
        minutes = int(value)
        return minutes or None

    parts = value.split(":")
    if len(parts) != 2:
        return None
    try:
        hours, minutes = int(parts[0]), int(parts[1])
    except ValueError:
        return None
    if not (0 <= hours < 24 and 0 <= minutes < 60):
        return None
    total = hours * 60 + minutes
    return total or None


def format_delay(minutes: int) -> str:
    minutes = max(minutes, 0)
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def format_remaining(seconds: int) -> str:
    """Countdown text: '1h 2m 3s', '2m 3s' or '3s'."""
    seconds = max(int(seconds), 0)
    hours, rem = divmod(seconds, 3600)
    minutes, secs = divmod(rem, 60)
    if hours:
        return f"{hours}h {minutes}m {secs}s"
    if minutes:
        return f"{minutes}m {secs}s"
    return f"{secs}s"
