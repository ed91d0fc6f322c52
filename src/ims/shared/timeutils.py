from datetime import UTC, datetime


def ensure_utc(value: datetime | None) -> datetime | None:
    """Treat naive datetimes as UTC so they compare with aware ones."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def is_future(value: datetime, as_of: datetime | None = None) -> bool:
    return ensure_utc(value) > ensure_utc(as_of or datetime.now(UTC))
