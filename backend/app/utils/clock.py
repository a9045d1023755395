"""
Naive-UTC clock used for every persisted timestamp.

SQLite hands back naive datetimes, so all comparisons against stored
values go through this one function (tests monkeypatch it to move time).
"""
from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)
