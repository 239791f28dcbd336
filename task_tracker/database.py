import logging
from typing import Iterator

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

logger = logging.getLogger(__name__)

Base = declarative_base()


def make_engine(database_url: str) -> Engine:
    connect_args = {}
    if database_url.startswith("sqlite"):
        # Sessions are handed across the server's worker threads.
        connect_args["check_same_thread"] = False
    return create_engine(database_url, connect_args=connect_args)


def init_db(engine: Engine) -> sessionmaker:
    """Create the tables if they are missing and return a session factory."""
    # models registers its tables on Base.metadata
    from . import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info("Database ready url=%s", engine.url.render_as_string(hide_password=True))
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


def close_db(engine: Engine) -> None:
    engine.dispose()
    logger.info("Database connection closed")


def get_db(request: Request) -> Iterator[Session]:
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()
