"""Memo storage — hot stack + cold archive.

Layout:
    ~/.memostack/data/
    ├── memos/
    │   └── 12.md                      # YAML frontmatter + body, one file per memo
    ├── state.json                     # Hot stack order (top first) + id counter
    └── .versions/                     # Timestamped backups (10 per memo)
"""
