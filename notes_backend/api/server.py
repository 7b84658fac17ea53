"""
Process entry point: settings, logging, schema, then the HTTP server.

Any failure before the server starts is fatal.
"""
import logging
import sys

import uvicorn
from sqlalchemy.exc import SQLAlchemyError

from notes_backend.api.config import get_settings
from notes_backend.api.logger import setup_logging
from notes_backend.api.main import create_app
from notes_database.db import make_engine
from notes_database.init_db import init_db

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
def main() -> None:
    try:
        settings = get_settings()
    except ValueError as e:
        setup_logging()
        logger.error("failed to load settings: %s", e)
        sys.exit(1)

    setup_logging(settings.log_level)
    logger.info("starting notes API env=%s", settings.app_env)
    logger.debug("debug messages are enabled")

    try:
        engine = make_engine(settings.database_url)
        init_db(engine)
    except (SQLAlchemyError, ImportError) as e:
        logger.error("database setup failed: %s", e)
        sys.exit(1)

    app = create_app(settings, engine=engine)
    logger.info("listening on %s:%s", settings.http_host, settings.http_port)
    uvicorn.run(
        app,
        host=settings.http_host,
        port=settings.http_port,
        # Idle keep-alive timeout only; uvicorn has no per-request deadline.
        timeout_keep_alive=settings.http_timeout_keep_alive,
        log_config=None,
    )
    logger.info("server stopped")


if __name__ == "__main__":
    main()
