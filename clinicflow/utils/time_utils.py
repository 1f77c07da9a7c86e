from datetime import datetime, timezone

def as_utc(value: datetime) -> datetime:
    """Naive timestamps from the record store are stored as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)

def utc_now() -> datetime:
    return datetime.now(timezone.utc)
