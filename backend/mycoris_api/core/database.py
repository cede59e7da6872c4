from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from mycoris_api.core.config import settings


def _engine_options(database_url: str) -> dict:
    """Connection options so that no query can block a request indefinitely"""
    if database_url.startswith("sqlite"):
        # Requests are served from a thread pool; SQLite connections must be shareable
        return {"connect_args": {"check_same_thread": False}}

    return {
        # Validate pooled connections before use so dropped ones are replaced
        "pool_pre_ping": True,
        # Waiting longer than this for a free connection raises a TimeoutError
        "pool_timeout": settings.DB_POOL_TIMEOUT,
        "connect_args": {
            # Give up on an unreachable server instead of hanging
            "connect_timeout": settings.DB_CONNECT_TIMEOUT,
            # Server-side cap on every statement, in milliseconds
            "options": f"-c statement_timeout={settings.DB_STATEMENT_TIMEOUT_MS}",
        },
    }


# Create database engine - manages connection pool
# Options depend on the backend: SQLite in tests, Postgres otherwise
engine = create_engine(settings.DATABASE_URL, **_engine_options(settings.DATABASE_URL))

# autocommit=False: Changes require explicit commit
# autoflush=False: Don't auto-flush before queries
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for all database models
# Models register their tables on it; main.py creates them at startup
Base = declarative_base()


def get_db():
    """
    Dependency for getting database session.

    The session is closed after the request completes, even when the
    handler raised.
    """
    db = SessionLocal()
    try:
        # Code after yield runs when the request completes
        yield db
    finally:
        # Return the connection to the pool, even after an error
        db.close()
