from sqlalchemy import create_engine, event, text
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import QueuePool, StaticPool
import logging

from app.core.config import settings
from app.core.exceptions import StoreError, ValidationError

logger = logging.getLogger(__name__)


def _build_engine(url: str):
    if url.startswith("sqlite"):
        # Single shared connection so an in-memory database survives across threads
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            echo=False,
        )
    return create_engine(
        url,
        poolclass=QueuePool,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=settings.DB_POOL_TIMEOUT,
        pool_recycle=settings.DB_POOL_RECYCLE,
        pool_pre_ping=True,  # Verify connections before use
        echo=False,
    )


engine = _build_engine(settings.DATABASE_URL)


@event.listens_for(engine, "connect")
def connect(dbapi_connection, connection_record):
    connection_record.info["pid"] = id(dbapi_connection)
    logger.debug(f"New database connection established: {connection_record.info['pid']}")
    if settings.DATABASE_URL.startswith("sqlite"):
        # Cascading deletes rely on foreign keys being enforced
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Database session dependency with error handling."""
    db = SessionLocal()
    try:
        yield db
    except OperationalError as e:
        logger.error(f"Database operational error: {e}")
        db.rollback()
        raise
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def init_db():
    """Create missing tables and seed the default maintenance rules."""
    # Import models so every table is registered on Base.metadata
    from app import models  # noqa: F401
    from app.services.rules import seed_default_rules

    Base.metadata.create_all(bind=engine)
    logger.info("Database tables ready (garage_booking_tokens included)")

    db = SessionLocal()
    try:
        created = seed_default_rules(db)
        if created:
            logger.info(f"Seeded {created} default maintenance rules")
    finally:
        db.close()


def check_database_health() -> dict:
    """Check database connectivity and return health status."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))

            pool_status = {}
            if isinstance(engine.pool, QueuePool):
                pool_status = {
                    "pool_size": engine.pool.size(),
                    "checked_in": engine.pool.checkedin(),
                    "checked_out": engine.pool.checkedout(),
                    "overflow": engine.pool.overflow(),
                }

            return {
                "status": "healthy",
                "connected": True,
                "pool": pool_status,
            }
    except OperationalError as e:
        logger.error(f"Database health check failed: {e}")
        return {
            "status": "unhealthy",
            "connected": False,
            "error": str(e),
        }


def commit(db, action: str) -> None:
    """Commit the session, turning store failures into StoreError."""
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.warning(f"Integrity error while trying to {action}: {e.orig}")
        raise ValidationError(f"Could not {action}: conflicting or missing related record") from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Database error while trying to {action}: {e}")
        raise StoreError(f"Could not {action}") from e
