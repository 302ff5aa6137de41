"""Database engine and session management."""

import logging

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from core.settings import get_settings
from core.models import Base

# Model modules register their tables on Base.metadata.
from modules.users import models as _user_models  # noqa: F401
from modules.royalty import models as _royalty_models  # noqa: F401

logger = logging.getLogger(__name__)

settings = get_settings()

engine = create_engine(
    settings.database_url,
    connect_args={"check_same_thread": False} if settings.database_url.startswith("sqlite") else {},
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    Base.metadata.create_all(bind=engine)
    logger.info("Database schema ready at %s", settings.database_url)
