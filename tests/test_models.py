"""Tests for memo types and text helpers."""

from datetime import datetime, timedelta, timezone

import pytest

from memostack.memo.models import (
    Memo,
    MemoStatus,
    format_delay,
    format_remaining,
    parse_delay,
    split_text,
)

T0 = datetime(2026, 1, 1, 9, 0, tzinfo=timezone.utc)


class TestSplitText:
    def test_example(self):
        assert split_text("Buy milk\nAlso eggs and bread") == ("Buy milk", "Also eggs and bread")

    def test_single_line(self):
        assert split_text("Just a title") == ("Just a title", "")

    def test_multi_line_body(self):
        title, body = split_text("Trip\n- passport\n- tickets\n\nleave at 7")
        assert title == "Trip"
        assert body == "- passport\n- tickets\n\nleave at 7"

    def test_surrounding_whitespace(self):
        assert split_text("\n  Title  \n  body \n\n") == ("Title", "body")

    def test_empty(self):
        with pytest.raises(ValueError):
            split_text("  \n ")


class TestMemoStatus:
    def test_from_string_unknown_is_hot(self):
        assert MemoStatus.from_string("archived") is MemoStatus.HOT
        assert MemoStatus.from_string("done") is MemoStatus.DONE

    def test_parse_rejects_unknown(self):
        with pytest.raises(ValueError, match="Unknown status"):
            MemoStatus.parse("warm")

    def test_parse_case_insensitive(self):
        assert MemoStatus.parse(" COLD ") is MemoStatus.COLD


class TestMemo:
    def make(self, **kw) -> Memo:
        defaults = dict(id=1, title="t", body="", status=MemoStatus.HOT, created_at=T0)
        defaults.update(kw)
        return Memo(**defaults)

    def test_text(self):
        assert self.make(body="b").text == "t\nb"
        assert self.make().text == "t"

    def test_ready_at_only_for_delayed(self):
        assert self.make(delay_minutes=10).ready_at is None
        delayed = self.make(status=MemoStatus.DELAYED, delay_minutes=10)
        assert delayed.ready_at == T0 + timedelta(minutes=10)
        assert not delayed.is_ready(T0 + timedelta(minutes=9))
        assert delayed.is_ready(T0 + timedelta(minutes=10))

    def test_ready_at_counts_from_delay_start(self):
        start = T0 + timedelta(hours=2)
        delayed = self.make(status=MemoStatus.DELAYED, delay_minutes=10, delayed_at=start)
        assert delayed.ready_at == start + timedelta(minutes=10)
        assert not delayed.is_ready(start + timedelta(minutes=9))

    def test_matches(self):
        memo = self.make(title="Call Bob", body="re: Lease")
        assert memo.matches("bob")
        assert memo.matches("LEASE")
        assert memo.matches("")
        assert not memo.matches("alice")


class TestDelay:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("00:30", 30),
            ("01:15", 75),
            ("23:59", 1439),
            ("45", 45),
            ("00:00", None),
            ("24:00", None),
            ("01:60", None),
            ("soon", None),
            ("", None),
        ],
    )
    def test_parse_delay(self, value, expected):
        assert parse_delay(value) == expected

    def test_format_delay(self):
        assert format_delay(75) == "01:15"
        assert format_delay(-5) == "00:00"

    def test_format_remaining(self):
        assert format_remaining(3723) == "1h 2m 3s"
        assert format_remaining(125) == "2m 5s"
        assert format_remaining(9) == "9s"
        assert format_remaining(-3) == "0s"
