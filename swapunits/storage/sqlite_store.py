"""
SQLite storage for conversion history and favorites.
Single portable file. Both lists are newest-first and capped.
"""

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path

from swapunits.storage.models import FavoriteItem, HistoryItem

logger = logging.getLogger(__name__)

MAX_HISTORY_ITEMS = 15
MAX_FAVORITE_ITEMS = 15

CREATE_TABLES = """
CREATE TABLE IF NOT EXISTS history (
    seq INTEGER PRIMARY KEY AUTOINCREMENT,
    id TEXT UNIQUE NOT NULL,
    category TEXT NOT NULL,
    from_value REAL NOT NULL,
    from_unit TEXT NOT NULL,
    to_value REAL NOT NULL,
    to_unit TEXT NOT NULL,
    timestamp TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS favorites (
    seq INTEGER PRIMARY KEY AUTOINCREMENT,
    id TEXT UNIQUE NOT NULL,
    category TEXT NOT NULL,
    from_unit TEXT NOT NULL,
    to_unit TEXT NOT NULL,
    name TEXT NOT NULL,
    created_at TEXT NOT NULL,
    UNIQUE (category, from_unit, to_unit)
);

CREATE INDEX IF NOT EXISTS idx_history_timestamp
    ON history(timestamp);
"""

_HISTORY_COLUMNS = "id, category, from_value, from_unit, to_value, to_unit, timestamp"
_FAVORITE_COLUMNS = "id, category, from_unit, to_unit, name, created_at"


class SQLiteStore:
    """SQLite history/favorites store. One connection per operation."""

    def __init__(self, db_path: str, max_history: int = MAX_HISTORY_ITEMS,
                 max_favorites: int = MAX_FAVORITE_ITEMS):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.max_history = max_history
        self.max_favorites = max_favorites
        self._init_db()

    def _init_db(self):
        with self._connect() as conn:
            conn.executescript(CREATE_TABLES)
        logger.info("SQLite store initialized at %s", self.db_path)

    @contextmanager
    def _connect(self):
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def add_history_item(self, item: HistoryItem) -> HistoryItem:
        """Record a conversion and drop anything beyond max_history."""
        with self._connect() as conn:
            conn.execute(
                f"INSERT INTO history ({_HISTORY_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?)",
                (item.id, item.category, item.from_value, item.from_unit,
                 item.to_value, item.to_unit, item.timestamp),
            )
            conn.execute(
                """DELETE FROM history WHERE seq NOT IN
                   (SELECT seq FROM history ORDER BY seq DESC LIMIT ?)""",
                (self.max_history,),
            )
        logger.debug("Stored history item %s (%s %s -> %s)", item.id, item.category, item.from_unit, item.to_unit)
        return item

    def get_history(self, limit: int | None = None) -> list[HistoryItem]:
        with self._connect() as conn:
            rows = conn.execute(
                f"SELECT {_HISTORY_COLUMNS} FROM history ORDER BY seq DESC LIMIT ?",
                (limit if limit is not None else self.max_history,),
            ).fetchall()
        return [HistoryItem(**dict(r)) for r in rows]

    def clear_history(self) -> int:
        with self._connect() as conn:
            cur = conn.execute("DELETE FROM history")
            removed = cur.rowcount
        logger.info("Cleared %d history items", removed)
        return removed

    # ------------------------------------------------------------------
    # Favorites
    # ------------------------------------------------------------------

    def add_favorite(self, item: FavoriteItem) -> FavoriteItem | None:
        """Save a unit pair. Returns None if the pair is already a favorite."""
        with self._connect() as conn:
            cur = conn.execute(
                f"INSERT OR IGNORE INTO favorites ({_FAVORITE_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?)",
                (item.id, item.category, item.from_unit, item.to_unit, item.name, item.created_at),
            )
            if cur.rowcount == 0:
                logger.debug("Favorite already exists: %s %s -> %s", item.category, item.from_unit, item.to_unit)
                return None
            conn.execute(
                """DELETE FROM favorites WHERE seq NOT IN
                   (SELECT seq FROM favorites ORDER BY seq DESC LIMIT ?)""",
                (self.max_favorites,),
            )
        return item

    def get_favorites(self) -> list[FavoriteItem]:
        with self._connect() as conn:
            rows = conn.execute(
                f"SELECT {_FAVORITE_COLUMNS} FROM favorites ORDER BY seq DESC"
            ).fetchall()
        return [FavoriteItem(**dict(r)) for r in rows]

    def remove_favorite(self, favorite_id: str) -> bool:
        with self._connect() as conn:
            cur = conn.execute("DELETE FROM favorites WHERE id = ?", (favorite_id,))
        return cur.rowcount > 0

    def clear_favorites(self) -> int:
        with self._connect() as conn:
            cur = conn.execute("DELETE FROM favorites")
            removed = cur.rowcount
        logger.info("Cleared %d favorites", removed)
        return removed

    def get_stats(self) -> dict:
        with self._connect() as conn:
            history = conn.execute("SELECT COUNT(*) FROM history").fetchone()[0]
            favorites = conn.execute("SELECT COUNT(*) FROM favorites").fetchone()[0]
            by_category = conn.execute(
                "SELECT category, COUNT(*) AS n FROM history GROUP BY category ORDER BY n DESC"
            ).fetchall()
        return {
            "history": history,
            "favorites": favorites,
            "history_by_category": {r["category"]: r["n"] for r in by_category},
        }
