"""
Dialect-specific statement helpers

``ON CONFLICT`` upserts are spelled the same way by PostgreSQL and SQLite
but live in each dialect's own ``insert`` construct.
"""
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session


def upsert_insert(db: Session, table):
    """Return an ``insert()`` for ``table`` that supports ``on_conflict_do_*``."""
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert(table)
    if dialect == "sqlite":
        return sqlite.insert(table)
    raise NotImplementedError(f"Upsert not supported for dialect '{dialect}'")
