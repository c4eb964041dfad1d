from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """
    Timestamp for JSON bodies, e.g. "2024-05-01T12:30:00Z".

    Ledger and catalog timestamps come back naive from SQLite and aware from
    PostgreSQL; naive values are read as UTC. Sub-second precision is dropped.
    """
    if dt is None:
        return None
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt.isoformat(timespec="seconds") + "Z"
