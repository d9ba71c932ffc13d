import logging

from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import declarative_base, sessionmaker

from clinic_billing.core.config import settings

logger = logging.getLogger(__name__)


def _database_url():
    """Connection URL with the service credential filled in as password."""
    url = make_url(settings.DATABASE_URL)
    if url.password is None and url.username and settings.DATABASE_SERVICE_KEY:
        url = url.set(password=settings.DATABASE_SERVICE_KEY)
    return url


engine = create_engine(
    _database_url(),
    pool_pre_ping=True,  # Managed store drops idle connections
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
