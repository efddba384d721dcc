"""
Database session management
"""
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from millstock.core.config import settings
from millstock.exceptions import MillStockException, PersistenceError
from millstock.logging_config import get_logger

logger = get_logger(__name__)

connection_string = settings.database_url
_url = make_url(connection_string)

# Log connection info (without password)
logger.info(f"Database connection: {_url.render_as_string(hide_password=True)}")

engine_kwargs = {
    "echo": settings.DB_ECHO,
    "pool_pre_ping": True,  # Verify connections before using
}
if _url.get_backend_name() == "sqlite":
    engine_kwargs["connect_args"] = {"check_same_thread": False}
else:
    engine_kwargs["pool_recycle"] = 3600  # Recycle connections after 1 hour

engine = create_engine(connection_string, **engine_kwargs)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    """
    Dependency for getting database session

    Usage in FastAPI endpoints:
        @router.get("/stock")
        def get_stock(db: Session = Depends(get_db)):
            ...
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def atomic(db: Session) -> Iterator[Session]:
    """
    Run a workflow as one transaction.

    Commits when the block exits normally. Any exception rolls back every
    write made inside the block; domain errors propagate unchanged and
    driver errors are re-raised as PersistenceError.

    Usage:
        with atomic(db):
            ledger.post(...)
            stock.increment(...)
    """
    try:
        yield db
        db.commit()
    except MillStockException:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Transaction rolled back: {e}", exc_info=True)
        raise PersistenceError(
            "Database operation failed; no changes were saved",
            details={"cause": e.__class__.__name__},
        ) from e
    except Exception:
        db.rollback()
        raise
