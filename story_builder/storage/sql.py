"""Relational storage through SQLAlchemy Core.

One backend covers both relational deployment targets; the dialect comes
from the database URL:

    sqlite:///data/story-builder.db          local file
    sqlite://                                 private in-memory database
    postgresql+psycopg://user:pw@host/db      server

Tables are created on start. Parent/child cascades are handled by the
Storage base class, so no foreign keys are declared here.
"""

from __future__ import annotations

import logging
from pathlib import Path
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    delete,
    insert,
    select,
    update,
)
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.pool import StaticPool

from .base import Storage

logger = logging.getLogger(__name__)

metadata = MetaData()


def _id() -> Column:
    return Column("id", String(36), primary_key=True)


def _parent(name: str) -> Column:
    return Column(name, String(36), nullable=False, index=True)


TABLES: dict[str, Table] = {
    "projects": Table(
        "projects", metadata,
        _id(),
        Column("title", Text, nullable=False),
        Column("genre", Text, nullable=False),
        Column("description", Text),
        Column("image_url", Text),
        Column("current_step", Integer, nullable=False, default=1),
        Column("progress", Integer, nullable=False, default=0),
        Column("created_at", DateTime(timezone=True), nullable=False),
        Column("updated_at", DateTime(timezone=True), nullable=False),
    ),
    "characters": Table(
        "characters", metadata,
        _id(),
        _parent("project_id"),
        Column("name", Text, nullable=False),
        Column("description", Text),
        Column("personality", Text),
        Column("background", Text),
        Column("role", Text),
        Column("affiliation", Text),
        Column("image_url", Text),
        Column("order", Integer, nullable=False, default=0),
    ),
    "plots": Table(
        "plots", metadata,
        _id(),
        _parent("project_id"),
        Column("theme", Text),
        Column("setting", Text),
        Column("structure", String(32), nullable=False, default="kishotenketsu"),
        Column("hook", Text),
        Column("opening", Text),
        Column("development", Text),
        Column("climax", Text),
        Column("conclusion", Text),
    ),
    "synopses": Table(
        "synopses", metadata,
        _id(),
        _parent("project_id"),
        Column("content", Text, nullable=False),
        Column("tone", Text),
        Column("style", Text),
    ),
    "synopsis_versions": Table(
        "synopsis_versions", metadata,
        _id(),
        _parent("project_id"),
        Column("content", Text, nullable=False),
        Column("version", Integer, nullable=False),
        Column("is_active", Boolean, nullable=False, default=False),
        Column("created_at", DateTime(timezone=True), nullable=False),
    ),
    "chapters": Table(
        "chapters", metadata,
        _id(),
        _parent("project_id"),
        Column("title", Text, nullable=False),
        Column("summary", Text),
        Column("structure", String(32), nullable=False),
        Column("estimated_words", Integer, default=0),
        Column("estimated_reading_time", Integer, default=0),
        Column("character_ids", JSON, default=list),
        Column("order", Integer, nullable=False),
    ),
    "episodes": Table(
        "episodes", metadata,
        _id(),
        _parent("chapter_id"),
        Column("title", Text, nullable=False),
        Column("description", Text),
        Column("perspective", Text),
        Column("mood", Text),
        Column("events", JSON, default=list),
        Column("dialogue", Text),
        Column("setting", Text),
        Column("order", Integer, nullable=False),
    ),
    "drafts": Table(
        "drafts", metadata,
        _id(),
        _parent("episode_id"),
        Column("content", Text, nullable=False),
        Column("tone", Text),
        Column("is_generated", Boolean, default=False),
        Column("version", Integer, nullable=False, default=1),
    ),
}


def build_engine(url: str) -> Engine:
    """Create an engine for ``url``, preparing SQLite files and in-memory pools."""
    parsed = make_url(url)
    if parsed.get_backend_name() != "sqlite":
        return create_engine(url)
    database = parsed.database
    if not database or database == ":memory:":
        # A single shared connection, otherwise every checkout sees an empty db
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    Path(database).parent.mkdir(parents=True, exist_ok=True)
    return create_engine(url, connect_args={"check_same_thread": False})


def _as_dict(row: Any) -> dict[str, Any]:
    """Row mapping as a dict; SQLite returns naive datetimes, which are stored as UTC."""
    result = dict(row._mapping)
    for key, value in result.items():
        if isinstance(value, datetime) and value.tzinfo is None:
            result[key] = value.replace(tzinfo=timezone.utc)
    return result


class SqlStorage(Storage):
    def __init__(self, url: str) -> None:
        self._engine = build_engine(url)
        metadata.create_all(self._engine)
        logger.info("sql storage ready dialect=%s", self._engine.dialect.name)

    def close(self) -> None:
        self._engine.dispose()

    def _insert(self, table: str, row: dict[str, Any]) -> None:
        with self._engine.begin() as conn:
            conn.execute(insert(TABLES[table]).values(**row))

    def _get(self, table: str, row_id: str) -> dict[str, Any] | None:
        t = TABLES[table]
        with self._engine.connect() as conn:
            row = conn.execute(select(t).where(t.c.id == row_id)).first()
        return _as_dict(row) if row is not None else None

    def _select(self, table: str, **filters: Any) -> list[dict[str, Any]]:
        t = TABLES[table]
        stmt = select(t)
        for key, value in filters.items():
            stmt = stmt.where(t.c[key] == value)
        with self._engine.connect() as conn:
            return [_as_dict(row) for row in conn.execute(stmt)]

    def _update(self, table: str, row_id: str, fields: dict[str, Any]) -> dict[str, Any] | None:
        t = TABLES[table]
        values = {k: v for k, v in fields.items() if k in t.c}
        with self._engine.begin() as conn:
            if values:
                result = conn.execute(update(t).where(t.c.id == row_id).values(**values))
                if result.rowcount == 0:
                    return None
            row = conn.execute(select(t).where(t.c.id == row_id)).first()
        return _as_dict(row) if row is not None else None

    def _delete(self, table: str, row_id: str) -> bool:
        t = TABLES[table]
        with self._engine.begin() as conn:
            result = conn.execute(delete(t).where(t.c.id == row_id))
        return result.rowcount > 0
