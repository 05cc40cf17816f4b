from datetime import date, datetime, timezone


def utcnow() -> datetime:
    """Current time as naive UTC, the form every stored datetime uses."""
    return datetime.now(tz=timezone.utc).replace(tzinfo=None)


def utc_today() -> date:
    return datetime.now(tz=timezone.utc).date()


def to_naive_utc(value: datetime | None) -> datetime | None:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
