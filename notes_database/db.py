import os

from dotenv import load_dotenv
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker


# PUBLIC_INTERFACE
def get_database_url():
    """
    Retrieves the database URL from the environment variable DATABASE_URL.
    """
    load_dotenv()
    db_url = os.getenv("DATABASE_URL")
    if not db_url:
        raise ValueError("DATABASE_URL environment variable not set.")
    return db_url


# PUBLIC_INTERFACE
def make_engine(database_url: str, **kwargs) -> Engine:
    """
    Builds the SQLAlchemy engine. SQLite connections are shared across the
    server's worker threads, so the same-thread check is disabled for them.
    """
    if database_url.startswith("sqlite"):
        connect_args = kwargs.pop("connect_args", {})
        connect_args.setdefault("check_same_thread", False)
        kwargs["connect_args"] = connect_args
    return create_engine(database_url, echo=False, pool_pre_ping=True, **kwargs)


# PUBLIC_INTERFACE
def make_session_factory(engine: Engine) -> sessionmaker:
    """Returns a session factory bound to `engine`."""
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)
