import logging

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from servio.core import config

logger = logging.getLogger(__name__)

Base = declarative_base()


class Database:
    """
    Data-access handle: one engine plus its session factory.
    Created by the application factory at startup and disposed at shutdown.
    """

    def __init__(self, url: str = config.DATABASE_URL, **engine_kwargs):
        self.url = url
        if url.startswith("sqlite"):
            engine_kwargs.setdefault("connect_args", {"check_same_thread": False})
        else:
            engine_kwargs.setdefault("pool_pre_ping", True)
            engine_kwargs.setdefault("pool_recycle", config.DB_POOL_RECYCLE)
            engine_kwargs.setdefault("pool_size", config.DB_POOL_SIZE)
            engine_kwargs.setdefault("max_overflow", config.DB_MAX_OVERFLOW)
            engine_kwargs.setdefault("pool_timeout", config.DB_POOL_TIMEOUT)

        self.engine = create_engine(url, **engine_kwargs)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)
        logger.info("Database engine created for %s", self.engine.url.render_as_string(hide_password=True))

    def create_all(self) -> None:
        # register every mapped table before creating the schema
        from servio.db.models import availability, booking, business_profile, earning, notification, service, user  # noqa: F401

        Base.metadata.create_all(bind=self.engine, checkfirst=True)

    def session(self) -> Session:
        return self.SessionLocal()

    def dispose(self) -> None:
        self.engine.dispose()
        logger.info("Database engine disposed")


def get_db(request: Request):
    db = request.app.state.database.session()
    try:
        yield db
    finally:
        db.close()
