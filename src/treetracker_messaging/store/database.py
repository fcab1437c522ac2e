"""
Engine and session management for the local message store.
"""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from treetracker_messaging.store.schema import Base

logger = logging.getLogger(__name__)

SQLITE_PREFIX = "sqlite:///"


def _engine_connect_args(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


def _engine_options(url: str) -> dict:
    # worker threads must all see the same in-memory database
    if url == SQLITE_PREFIX + ":memory:":
        return {"poolclass": StaticPool}
    return {}


def _prepare_sqlite_url(url: str) -> str:
    """Expand ~ in file-backed SQLite URLs and make sure the parent directory exists."""
    if not url.startswith(SQLITE_PREFIX) or url == SQLITE_PREFIX + ":memory:":
        return url
    path = Path(url[len(SQLITE_PREFIX):]).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    return f"{SQLITE_PREFIX}{path}"


class Database:
    def __init__(self, url: str, echo: bool = False):
        self.url = _prepare_sqlite_url(url)
        self.engine: Engine = create_engine(
            self.url, echo=echo, connect_args=_engine_connect_args(self.url), **_engine_options(self.url),
        )
        self._sessions = sessionmaker(bind=self.engine, autoflush=False, expire_on_commit=False)

    def init_db(self) -> None:
        Base.metadata.create_all(bind=self.engine)
        logger.debug("Message schema ready at %s", self.url)

    @contextmanager
    def session(self) -> Iterator[Session]:
        """One transaction: committed on clean exit, rolled back on error."""
        db = self._sessions()
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def dispose(self) -> None:
        self.engine.dispose()
