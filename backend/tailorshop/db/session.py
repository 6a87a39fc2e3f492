import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from fastapi import Request
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from tailorshop.config import Settings
from tailorshop.db.realtime import ChangeFeed

logger = logging.getLogger(__name__)


class BackendClient:
    """Handle on the hosted database: engine, session factory and change feed.

    Built once at process start and handed to whatever needs the backend.
    """

    def __init__(self, database_url: str, echo: bool = False, feed: Optional[ChangeFeed] = None):
        self.database_url = database_url
        kwargs = {"echo": echo}
        if database_url.startswith("sqlite"):
            kwargs["connect_args"] = {"check_same_thread": False}
            if ":memory:" in database_url or database_url.rstrip("/") == "sqlite:":
                kwargs["poolclass"] = StaticPool
        else:
            kwargs["pool_pre_ping"] = True
        self.engine = create_engine(database_url, **kwargs)
        self.session_factory = sessionmaker(bind=self.engine, class_=Session, expire_on_commit=False)
        self.feed = feed or ChangeFeed()
        self.feed.attach(self.session_factory)
        logger.debug("BackendClient initialized url=%s", self.engine.url.render_as_string(hide_password=True))

    @classmethod
    def from_settings(cls, settings: Settings) -> "BackendClient":
        return cls(settings.database_url, echo=settings.echo_sql)

    def create_schema(self) -> None:
        # registers every table on SQLModel.metadata
        import tailorshop.models  # noqa: F401

        SQLModel.metadata.create_all(self.engine)

    def get_session(self) -> Session:
        return self.session_factory()

    @contextmanager
    def session(self) -> Iterator[Session]:
        session = self.get_session()
        try:
            yield session
        finally:
            session.close()

    def dispose(self) -> None:
        self.engine.dispose()


def get_client(request: Request) -> BackendClient:
    return request.app.state.client


def get_session(request: Request) -> Iterator[Session]:
    session = get_client(request).get_session()
    try:
        yield session
    finally:
        session.close()
