"""Column types shared by the models.

JSON maps to JSONB on PostgreSQL and to plain JSON elsewhere, so the same
models run against SQLite in development and tests.
"""
from datetime import datetime, timezone

from sqlalchemy import JSON
from sqlalchemy.dialects.postgresql import JSONB

JSONType = JSON().with_variant(JSONB(), "postgresql")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
