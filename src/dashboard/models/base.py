from datetime import UTC, datetime


def utc_now() -> datetime:
    """Return current UTC time as naive datetime (for PostgreSQL TIMESTAMP).

    created_at, updated_at and status-history timestamps are stored
    without time zone. All times are UTC by convention.
    """
    return datetime.now(UTC).replace(tzinfo=None)
