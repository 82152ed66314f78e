"""Database column type helpers."""
from __future__ import annotations

from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.types import JSON, TypeDecorator


class JSONDocument(TypeDecorator):
    """
    JSON column for goals, tags and AI history payloads.

    JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests). Tuples and
    sets, as found in frozen planning snapshots, are stored as lists.
    """

    impl = JSONB
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(JSONB())
        return dialect.type_descriptor(JSON())

    def process_bind_param(self, value, dialect):
        return _listify(value)


def _listify(value):
    if isinstance(value, dict):
        return {key: _listify(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_listify(item) for item in value]
    return value
