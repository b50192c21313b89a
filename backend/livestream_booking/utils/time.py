from datetime import datetime, timezone


def to_unix(dt: datetime) -> int:
    if dt.tzinfo is None:
        raise ValueError("datetime must be timezone-aware")
    return int(dt.timestamp())


def from_unix(value: int) -> datetime:
    return datetime.fromtimestamp(value, tz=timezone.utc)


def format_unix(value: int) -> str:
    """Render unix seconds as an ISO 8601 UTC string for messages and logs."""
    return from_unix(value).isoformat()


# 9999-12-31T23:59:59Z, the last second datetime can render.
MAX_UNIX_SECONDS = 253402300799
