"""Tests for the memostack command hub."""

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from memostack.config import MemoConfig, MemoStackConfig
from memostack.core import HELP_TEXT, MemoApp
from memostack.memo.models import MemoStatus

T0 = datetime(2026, 1, 1, 9, 0, tzinfo=timezone.utc)


class Clock:
    def __init__(self) -> None:
        self.now = T0

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def config(tmp_path: Path) -> MemoStackConfig:
    return MemoStackConfig(
        memo=MemoConfig(max_hot_count=2, cold_spotlight_interval_seconds=0),
        data_dir=tmp_path / "data",
    )


@pytest.fixture
def clock() -> Clock:
    return Clock()


@pytest.fixture
def app(config: MemoStackConfig, clock: Clock) -> MemoApp:
    return MemoApp(config, clock=clock)


class TestAdd:
    def test_add(self, app: MemoApp):
        assert app.handle("add Buy milk") == "Added [1] Buy milk"
        assert app.store.get(1).status is MemoStatus.HOT

    def test_escaped_newline(self, app: MemoApp):
        app.handle(r"add Buy milk\nAlso eggs and bread")
        memo = app.store.get(1)
        assert memo.title == "Buy milk"
        assert memo.body == "Also eggs and bread"

    def test_alias(self, app: MemoApp):
        assert app.handle("a quick one") == "Added [1] quick one"

    def test_overflow_reported(self, app: MemoApp):
        app.handle("add one")
        app.handle("add two")
        reply = app.handle("add three")
        assert "Added [3] three" in reply
        assert "Hot set full, moved to cold: [1] one" in reply
        assert app.store.get(1).status is MemoStatus.COLD

    def test_delayed(self, app: MemoApp, clock: Clock):
        reply = app.handle("add --delay 00:30 Call back")
        assert reply == "Added [1] Call back (delayed 00:30)"
        assert app.store.get(1).status is MemoStatus.DELAYED

        clock.now = T0 + timedelta(minutes=31)
        reply = app.handle("stats")
        assert reply.startswith("Delayed memo is now hot: [1] Call back")
        assert app.store.get(1).status is MemoStatus.HOT

    def test_promotion_reports_demotion(self, app: MemoApp, clock: Clock):
        app.handle("capacity 1")
        app.handle("add keep me")
        app.handle("add --delay 00:05 later")
        clock.now = T0 + timedelta(minutes=10)
        reply = app.handle("stats")
        assert reply.splitlines()[:2] == [
            "Delayed memo is now hot: [2] later",
            "Hot set full, moved to cold: [1] keep me",
        ]
        assert app.store.get(1).status is MemoStatus.COLD

    def test_text_starting_with_delay_like_word(self, app: MemoApp):
        assert app.handle("add --delayed thoughts") == "Added [1] --delayed thoughts"
        assert app.store.get(1).status is MemoStatus.HOT

    def test_invalid_delay(self, app: MemoApp):
        assert "Invalid delay" in app.handle("add --delay soon text")
        assert app.store.list() == []

    def test_missing_text(self, app: MemoApp):
        assert app.handle("add") == "Usage: add [--delay HH:MM] <text>"


class TestList:
    def test_default_hot(self, app: MemoApp):
        app.handle("add one")
        out = app.handle("list")
        assert out.startswith("Hot memos: 1/2")
        assert "[1] one" in out

    def test_cold_tab(self, app: MemoApp):
        app.handle("add one")
        app.handle("cold 1")
        out = app.handle("ls cold")
        assert out.startswith("Cold memos: 1")
        assert app.view.active_tab is MemoStatus.COLD

    def test_all(self, app: MemoApp):
        out = app.handle("list all")
        assert "Hot memos" in out
        assert "Delayed memos" in out

    def test_unknown_tab(self, app: MemoApp):
        assert "Unknown status 'warm'" in app.handle("list warm")


class TestExpand:
    def test_show_body(self, app: MemoApp):
        app.handle(r"add Trip\npassport")
        out = app.handle("show 1")
        assert "▾ [1] Trip" in out
        assert "passport" in out

    def test_show_without_body(self, app: MemoApp):
        app.handle("add Title only")
        assert app.handle("show 1").endswith("(no details)")

    def test_collapse_and_toggle(self, app: MemoApp):
        app.handle(r"add Trip\npassport")
        app.handle("show 1")
        assert "passport" not in app.handle("collapse 1")
        assert "passport" in app.handle("toggle 1")

    def test_not_found(self, app: MemoApp):
        assert app.handle("show 99") == "Memo not found: 99"

    def test_bad_id(self, app: MemoApp):
        assert app.handle("show abc") == "Usage: show <id>"


class TestStatusCommands:
    def test_cold_and_hot(self, app: MemoApp):
        app.handle(r"add Buy milk\nAlso eggs and bread")
        assert app.handle("cold 1") == "Moved [1] Buy milk to cold"
        assert app.handle("hot 1") == "Moved [1] Buy milk to hot"
        memo = app.store.get(1)
        assert memo.body == "Also eggs and bread"

    def test_done(self, app: MemoApp, clock: Clock):
        app.handle("add ship it")
        app.handle("done 1")
        assert app.store.get(1).done_at == T0

    def test_flip(self, app: MemoApp):
        app.handle("add x")
        assert app.handle("flip 1") == "Moved [1] x to cold"
        assert app.handle("flip 1") == "Moved [1] x to hot"

    def test_hot_reports_demotion(self, app: MemoApp):
        for text in ("one", "two", "three"):
            app.handle(f"add {text}")
        reply = app.handle("hot 1")
        assert "Hot set full, moved to cold: [2] two" in reply

    def test_not_found(self, app: MemoApp):
        assert app.handle("cold 5") == "Memo not found: 5"

    def test_delay_existing(self, app: MemoApp, clock: Clock):
        app.handle("add call back")
        clock.now = T0 + timedelta(hours=1)
        assert app.handle("delay 1 00:30") == "Delayed [1] call back for 00:30"
        assert app.store.hot_stack == []
        clock.now = T0 + timedelta(hours=1, minutes=29)
        assert not app.handle("stats").startswith("Delayed memo is now hot")
        clock.now = T0 + timedelta(hours=1, minutes=30)
        assert app.handle("stats").startswith("Delayed memo is now hot: [1] call back")

    def test_delay_bad_args(self, app: MemoApp):
        app.handle("add x")
        assert app.handle("delay 1") == "Usage: delay <id> <HH:MM>"
        assert app.handle("delay 1 soon") == "Invalid delay 'soon' (expected HH:MM)"
        assert app.handle("delay 9 00:10") == "Memo not found: 9"


class TestOrdering:
    def test_up(self, app: MemoApp):
        app.handle("add one")
        app.handle("add two")
        out = app.handle("up 1")
        assert out.index("one") < out.index("two")

    def test_top_already(self, app: MemoApp):
        app.handle("add one")
        assert app.handle("top 1") == "[1] one is already at the top"

    def test_up_not_hot(self, app: MemoApp):
        app.handle("add one")
        app.handle("cold 1")
        assert app.handle("up 1") == "[1] one is not hot"


class TestEditDelete:
    def test_edit(self, app: MemoApp):
        app.handle("add old")
        assert app.handle(r"edit 1 new\nbody") == "Updated [1] new"
        assert app.store.get(1).body == "body"

    def test_edit_missing_text(self, app: MemoApp):
        app.handle("add old")
        assert app.handle("edit 1") == "Usage: edit <id> <text>"

    def test_delete(self, app: MemoApp):
        app.handle("add gone soon")
        assert app.handle("rm 1") == "Deleted [1] gone soon"
        assert "(none)" in app.handle("list hot")
        assert app.handle("show 1") == "Memo not found: 1"


class TestMisc:
    def test_search(self, app: MemoApp):
        app.handle("add apples")
        app.handle("add bananas")
        out = app.handle("search app")
        assert "apples" in out
        assert "bananas" not in out
        assert "bananas" in app.handle("search")

    def test_capacity(self, app: MemoApp):
        app.handle("add one")
        app.handle("add two")
        reply = app.handle("capacity 1")
        assert reply.startswith("Hot capacity set to 1")
        assert "moved to cold: [1] one" in reply
        assert app.handle("capacity 0") == "max_hot_count must be positive, got 0"
        assert app.handle("capacity lots") == "Usage: capacity <n>"

    def test_stats(self, app: MemoApp):
        app.handle("add one")
        assert app.handle("stats") == "hot 1/2 | cold 0 | done 0 | delayed 0 | total 1"

    def test_cleanup(self, app: MemoApp):
        app.handle("add v1")
        for i in range(2, 5):
            app.handle(f"edit 1 v{i}")
        assert app.handle("cleanup") == "Removed 0 old backup version(s)"
        assert app.handle("cleanup 1") == "Removed 2 old backup version(s)"
        assert len(list(app.store.versions_dir.glob("1-*.md"))) == 1
        assert app.handle("cleanup some") == "Usage: cleanup [keep]"

    def test_help(self, app: MemoApp):
        assert app.handle("help") == HELP_TEXT

    def test_unknown_command(self, app: MemoApp):
        assert app.handle("frobnicate 1").startswith("Unknown command: frobnicate")

    def test_blank_line(self, app: MemoApp):
        assert app.handle("   ") == ""

    def test_state_survives_restart(self, app: MemoApp, config: MemoStackConfig, clock: Clock):
        app.handle(r"add keep me\nsafe")
        restarted = MemoApp(config, clock=clock)
        assert restarted.store.get(1).body == "safe"
