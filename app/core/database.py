from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from app.core.config import settings


def _engine_kwargs(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_pre_ping": True,  # Verify connections before using them
        "pool_size": 10,  # Connection pool size
        "max_overflow": 20,  # Allow up to 20 connections beyond pool_size
    }


# Create SQLAlchemy engine
engine = create_engine(settings.DATABASE_URL, **_engine_kwargs(settings.DATABASE_URL))

# Create SessionLocal class
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Create Base class for models
Base = declarative_base()


def get_db():
    """
    Dependency function to get database session.
    Used in FastAPI endpoints with Depends(get_db)
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_session_factory():
    """
    Dependency returning the session factory itself.

    For long-lived handlers (WebSockets) that must open and close their own
    short sessions instead of holding one for the life of the connection.
    """
    return SessionLocal


def init_db():
    """
    Initialize database.

    Alembic owns table creation ("alembic upgrade head"); this only imports
    the models so they are registered on Base.metadata.
    """
    import app.models  # noqa: F401
