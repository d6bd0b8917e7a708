"""Time helpers shared by models and services."""

from datetime import datetime, timezone


def utcnow() -> datetime:
    """Current UTC time as a naive datetime, the form the timestamp columns store"""
    return datetime.now(timezone.utc).replace(tzinfo=None)
