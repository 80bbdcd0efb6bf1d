"""Schema creation for dev and test environments (no migrations)."""

from sqlalchemy.engine import Engine

import mockexam.models  # noqa: F401  registers every table on Base.metadata
from mockexam.db.base import Base
from mockexam.db.engine import engine as default_engine


def create_schema(engine: Engine | None = None) -> None:
    """Create all tables that do not exist yet."""
    Base.metadata.create_all(bind=engine or default_engine)


def drop_schema(engine: Engine | None = None) -> None:
    """Drop all tables."""
    Base.metadata.drop_all(bind=engine or default_engine)
