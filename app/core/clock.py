from datetime import datetime, timezone
from typing import Callable

# Callable returning the current time; services take one so tests can freeze it.
Clock = Callable[[], datetime]


def utcnow() -> datetime:
    """Naive UTC timestamp, matching the naive DateTime columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
