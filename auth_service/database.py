# auth_service/database.py
import logging
import os

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from config import AppConfig

logger = logging.getLogger(__name__)

SQLALCHEMY_DATABASE_URL = AppConfig.DATABASE_URL

# connect_args is ONLY needed for SQLite multithread safety
connect_args = (
    {"check_same_thread": False} if SQLALCHEMY_DATABASE_URL.startswith("sqlite") else {}
)

engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args=connect_args)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def init_db(bind=None):
    """Create every table known to ``Base``.

    Model modules must be imported before this runs so their tables are
    registered on the metadata.
    """
    bind = bind or engine
    if bind.url.drivername.startswith("sqlite") and bind.url.database not in (None, "", ":memory:"):
        db_dir = os.path.dirname(bind.url.database)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)
    import auth_service.models  # noqa: F401
    import library.models  # noqa: F401

    Base.metadata.create_all(bind=bind)
    logger.info("Database tables checked/created on %s", bind.url.render_as_string(hide_password=True))


# Dependency to get the database session (used in FastAPI routes)
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
