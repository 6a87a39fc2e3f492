from datetime import date, datetime, timezone


def utcnow() -> datetime:
    # timezone-aware UTC; sqlmodel refuses naive datetimes on bind
    return datetime.now(timezone.utc)


def utctoday() -> date:
    return utcnow().date()
