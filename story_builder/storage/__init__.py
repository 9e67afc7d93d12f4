"""Project store with pluggable backends.

Backends (selected by URL in create_storage()):
  memory://                       MemoryStorage — dict tables, lost on restart
  sqlite:///path/to/file.db       SqlStorage — SQLite file
  postgresql+psycopg://...        SqlStorage — PostgreSQL server

All backends share the Storage base class, which implements the entity
operations (projects, characters, plot, synopsis + versions, chapters,
episodes, drafts) on top of five row primitives. Parent deletes cascade:

  project ─┬─ characters
           ├─ plot
           ├─ synopsis, synopsis versions
           └─ chapters ── episodes ── drafts

The active store is module-level state, set once by init_storage() at app
start (or by the test fixture) and read through get_storage().
"""

from __future__ import annotations

import logging
from pathlib import Path

from .base import Storage, new_id  # noqa: F401
from .memory import MemoryStorage
from .sql import SqlStorage

logger = logging.getLogger(__name__)

MEMORY_URL = "memory://"

_storage: Storage | None = None
_data_dir: Path | None = None


def create_storage(url: str) -> Storage:
    if url == MEMORY_URL:
        return MemoryStorage()
    return SqlStorage(url)


def default_database_url(data_dir: Path) -> str:
    return f"sqlite:///{(data_dir / 'story-builder.db').as_posix()}"


def init_storage(data_dir: Path, database_url: str | None = None) -> Storage:
    """Create the data directory and open the store. Replaces any previous store."""
    global _storage, _data_dir
    data_dir.mkdir(parents=True, exist_ok=True)
    url = database_url or default_database_url(data_dir)
    if _storage is not None:
        _storage.close()
    _data_dir = data_dir
    _storage = create_storage(url)
    logger.info("storage backend=%s data_dir=%s", type(_storage).__name__, data_dir)
    return _storage


def get_storage() -> Storage:
    assert _storage is not None, "Call init_storage() before using storage"
    return _storage


def data_dir() -> Path:
    assert _data_dir is not None, "Call init_storage() before using storage"
    return _data_dir
