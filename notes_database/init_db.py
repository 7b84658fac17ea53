"""
Database initialization/migration script.

The API runs `init_db` once at startup; it can also be run by hand to
create all required tables in the database named by DATABASE_URL.
"""
import logging

from sqlalchemy import text
from sqlalchemy.engine import Engine

from notes_database.db import get_database_url, make_engine
from notes_database.models import Base

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
def init_db(engine: Engine) -> None:
    """Checks connectivity, then creates all tables if they do not exist."""
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
    Base.metadata.create_all(bind=engine)
    logger.info("database schema is up to date")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    init_db(make_engine(get_database_url()))
    print("Database tables created successfully.")
