"""
Relational storage of discovered links (SQLite or PostgreSQL).
"""
from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Tuple

from sqlalchemy import Column, Integer, Text, create_engine, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base

from linkcrawler.errors import StorageError

log = logging.getLogger(__name__)

Base = declarative_base()


class DiscoveredLink(Base):
    __tablename__ = "urls"

    id = Column(Integer, primary_key=True, autoincrement=True)
    url = Column(Text, nullable=False, unique=True)
    parent_url = Column(Text, nullable=True)


def _engine_url(database_url: str) -> str:
    """Route bare PostgreSQL URLs (including ``postgres://``) to psycopg 3."""
    scheme, sep, rest = database_url.partition("://")
    if sep and scheme in ("postgres", "postgresql"):
        return f"postgresql+psycopg://{rest}"
    return database_url


class LinkStore:
    """Persist crawl results into the ``urls`` table, one row per url."""

    def __init__(self, database_url: str) -> None:
        try:
            self.engine = create_engine(_engine_url(database_url), future=True)
            Base.metadata.create_all(self.engine)
        except SQLAlchemyError as e:
            raise StorageError(f"failed to open database: {e}") from e
        except ImportError as e:
            raise StorageError(
                f"no driver for {database_url.split(':', 1)[0]!r} installed ({e.name}); "
                "PostgreSQL needs the 'postgres' extra"
            ) from e

    def _insert(self):
        # Both dialects support INSERT ... ON CONFLICT DO NOTHING
        if self.engine.dialect.name == "postgresql":
            return postgresql.insert(DiscoveredLink.__table__).on_conflict_do_nothing(index_elements=["url"])
        if self.engine.dialect.name == "sqlite":
            return sqlite.insert(DiscoveredLink.__table__).on_conflict_do_nothing(index_elements=["url"])
        raise StorageError(f"unsupported database dialect: {self.engine.dialect.name}")

    def store_links(self, links: Iterable[str], parent_of: Dict[str, str]) -> int:
        """
        Insert links with their parents in one transaction.

        Urls already in the table are left untouched. Returns the number of
        rows added.
        """
        rows = [{"url": link, "parent_url": parent_of.get(link)} for link in links]
        if not rows:
            return 0
        stmt = self._insert()
        try:
            with Session(self.engine) as session, session.begin():
                before = session.query(DiscoveredLink).count()
                session.execute(stmt, rows)
                added = session.query(DiscoveredLink).count() - before
        except SQLAlchemyError as e:
            raise StorageError(f"failed to store links: {e}") from e
        log.info("stored %d new links (%d offered)", added, len(rows))
        return added

    def stored_links(self) -> List[Tuple[int, str, str | None]]:
        """Return every stored ``(id, url, parent_url)`` row ordered by id."""
        try:
            with Session(self.engine) as session:
                result = session.execute(
                    select(DiscoveredLink.id, DiscoveredLink.url, DiscoveredLink.parent_url)
                    .order_by(DiscoveredLink.id)
                )
                return [tuple(row) for row in result]
        except SQLAlchemyError as e:
            raise StorageError(f"failed to read links: {e}") from e

    def close(self) -> None:
        self.engine.dispose()
