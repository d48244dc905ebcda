"""
Timestamp helpers.

The note service speaks ISO-8601; the local cache stores integer
milliseconds since the epoch. Naive timestamps from the service are read as
UTC. A timestamp that cannot be parsed falls back to the current time, which
matches how the mobile client has always treated bad server dates.
"""

import time
from datetime import datetime, timezone


def now_millis() -> int:
    return int(time.time() * 1000)


def iso_to_millis(value: str) -> int:
    try:
        # Python 3.11+: accepts "Z" and fractions of any length.
        parsed = datetime.fromisoformat(value)
    except (TypeError, ValueError, AttributeError):
        return now_millis()
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return int(parsed.timestamp() * 1000)
