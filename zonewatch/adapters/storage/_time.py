"""
Timestamp helpers shared by the SQLite stores.

Timestamps are stored as UTC ISO 8601 text so that lexical order
matches chronological order.
"""

from datetime import datetime, timezone
from typing import Optional

def to_db(ts: Optional[datetime]) -> Optional[str]:
    if ts is None:
        return None
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc).isoformat()

def from_db(value: Optional[str]) -> Optional[datetime]:
    if value is None:
        return None
    return datetime.fromisoformat(value)
