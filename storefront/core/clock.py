"""UTC timestamps at MongoDB precision."""

from datetime import datetime


def utcnow() -> datetime:
    """Naive UTC now truncated to milliseconds (BSON dates store ms only)."""
    now = datetime.utcnow()
    return now.replace(microsecond=now.microsecond // 1000 * 1000)
