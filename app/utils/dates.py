from __future__ import annotations

import time
from datetime import datetime, timezone


def now_unix_seconds() -> int:
    return int(time.time())


def utc_from_unix(ts: int) -> datetime:
    return datetime.fromtimestamp(ts, tz=timezone.utc)


def clamp_int(value: int, lower: int, upper: int) -> int:
    return max(lower, min(upper, int(value)))
