from datetime import datetime, timezone


def utcnow() -> datetime:
    # columns are naive and always hold UTC
    return datetime.now(timezone.utc).replace(tzinfo=None)
