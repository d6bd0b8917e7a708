"""
Database configuration and session management
"""

from sqlmodel import Session, create_engine
import structlog

from kitchenflow.core.config import get_settings

logger = structlog.get_logger(__name__)
settings = get_settings()


def _connect_args(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


engine = create_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG and settings.ENVIRONMENT == "development",
    connect_args=_connect_args(settings.DATABASE_URL),
)


def session_factory() -> Session:
    """Open a new session outside of a request (event handlers)"""
    return Session(engine)


def get_session():
    """Dependency to get database session"""
    with Session(engine) as session:
        yield session
