"""Configuration loading from environment variables and memostack.toml."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib
from pathlib import Path

_DEFAULT_DATA_DIR = Path.home() / ".memostack" / "data"
_CONFIG_FILENAME = "memostack.toml"


@dataclass
class MemoConfig:
    """Hot-set and presentation settings."""

    max_hot_count: int = 7
    cold_spotlight_interval_seconds: int = 60
    pause_spotlight_when_expanded: bool = True
    tab_spaces: int = 2


@dataclass
class MemoStackConfig:
    """Top-level memostack configuration."""

    memo: MemoConfig = field(default_factory=MemoConfig)
    data_dir: Path = _DEFAULT_DATA_DIR
    log_level: str = "WARNING"


def _as_bool(value: object) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def load_config(config_path: Path | None = None) -> MemoStackConfig:
    """Load configuration from environment variables and optional memostack.toml.

    Priority: environment variables > memostack.toml > defaults.
    """
    file_data: dict = {}
    if config_path and config_path.exists():
        file_data = tomllib.loads(config_path.read_text())
    else:
        # Search current dir and ~/.memostack/
        for candidate in [
            Path.cwd() / _CONFIG_FILENAME,
            Path.home() / ".memostack" / _CONFIG_FILENAME,
        ]:
            if candidate.exists():
                file_data = tomllib.loads(candidate.read_text())
                break

    memo_data = file_data.get("memo", {})
    data_dir = os.getenv("MEMOSTACK_DATA_DIR", file_data.get("data_dir"))

    config = MemoStackConfig(
        memo=MemoConfig(
            max_hot_count=int(os.getenv("MEMOSTACK_MAX_HOT", memo_data.get("max_hot_count", 7))),
            cold_spotlight_interval_seconds=int(
                os.getenv(
                    "MEMOSTACK_SPOTLIGHT_INTERVAL",
                    memo_data.get("cold_spotlight_interval_seconds", 60),
                )
            ),
            pause_spotlight_when_expanded=_as_bool(
                memo_data.get("pause_spotlight_when_expanded", True)
            ),
            tab_spaces=int(memo_data.get("tab_spaces", 2)),
        ),
        data_dir=Path(data_dir).expanduser() if data_dir else _DEFAULT_DATA_DIR,
        log_level=os.getenv("MEMOSTACK_LOG_LEVEL", file_data.get("log_level", "WARNING")),
    )

    if config.memo.max_hot_count < 1:
        raise ValueError(f"max_hot_count must be positive, got {config.memo.max_hot_count}")
    return config
