from __future__ import annotations

from datetime import datetime, timedelta


def within_window(reference: datetime | None, now: datetime, days: int) -> bool:
    if reference is None:
        return False
    return now - reference <= timedelta(days=days)
