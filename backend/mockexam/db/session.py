"""Session factory and the per-request session dependency."""

from typing import Generator

from sqlalchemy.orm import Session, sessionmaker

from mockexam.db.engine import engine

# Results are returned after commit, so attributes must stay loaded
SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def get_db() -> Generator[Session, None, None]:
    """One session per request; anything left uncommitted by a failed handler is rolled back."""
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
