"""
Persistence for pinned context and the health history log.

The ContextStore protocol is the only blocking boundary in the engine. The
scoring and compaction code never touches it directly; the critical-context
store and the façade call it and absorb its failures.
"""

import logging
import sqlite3
import threading
from pathlib import Path
from typing import Protocol

from .exceptions import StorageError
from .models import CriticalContext, HealthSnapshot

logger = logging.getLogger(__name__)


SCHEMA = """
CREATE TABLE IF NOT EXISTS critical_context (
    id TEXT PRIMARY KEY,
    type TEXT NOT NULL,
    content TEXT NOT NULL,
    reason TEXT,
    source TEXT,
    never_compress INTEGER DEFAULT 1,
    created_at REAL NOT NULL
);

CREATE TABLE IF NOT EXISTS context_health_history (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    timestamp REAL NOT NULL,
    tokens_used INTEGER,
    tokens_limit INTEGER,
    utilization_percent REAL,
    drift_score REAL,
    relevance_score REAL,
    health TEXT,
    compaction_triggered INTEGER DEFAULT 0
);

CREATE INDEX IF NOT EXISTS idx_critical_context_type ON critical_context(type);
CREATE INDEX IF NOT EXISTS idx_critical_context_created ON critical_context(created_at);
CREATE INDEX IF NOT EXISTS idx_context_health_timestamp ON context_health_history(timestamp);
"""


class ContextStore(Protocol):
    """Abstract interface for pinned-context and health-history persistence.

    Implementations raise StorageError when the backing storage fails.
    """

    def insert_critical(self, item: CriticalContext) -> None:
        """Persist a pinned item."""
        ...

    def list_critical(self) -> list[CriticalContext]:
        """Return all pinned items, newest first."""
        ...

    def delete_critical(self, critical_id: str) -> bool:
        """Delete a pinned item; return whether it existed."""
        ...

    def append_health(self, snapshot: HealthSnapshot) -> None:
        """Append a health history row."""
        ...

    def list_health(self, limit: int) -> list[HealthSnapshot]:
        """Return up to limit history rows, newest first."""
        ...

    def close(self) -> None:
        """Release any held resources."""
        ...


class InMemoryContextStore:
    """Process-local store for tests and ephemeral sessions."""

    def __init__(self) -> None:
        self._critical: dict[str, CriticalContext] = {}
        self._health: list[HealthSnapshot] = []

    def insert_critical(self, item: CriticalContext) -> None:
        self._critical[item.id] = item

    def list_critical(self) -> list[CriticalContext]:
        # Insertion order breaks created_at ties
        items = list(self._critical.values())
        items.reverse()
        return sorted(items, key=lambda c: c.created_at, reverse=True)

    def delete_critical(self, critical_id: str) -> bool:
        return self._critical.pop(critical_id, None) is not None

    def append_health(self, snapshot: HealthSnapshot) -> None:
        self._health.append(snapshot)

    def list_health(self, limit: int) -> list[HealthSnapshot]:
        if limit <= 0:
            return []
        return list(reversed(self._health[-limit:]))

    def close(self) -> None:
        pass


class SQLiteContextStore:
    """SQLite-backed store, one database file per project."""

    def __init__(self, path: Path | str):
        self.path = Path(path)
        self._lock = threading.Lock()
        try:
            if str(self.path) != ":memory:":
                self.path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(str(self.path), timeout=10.0, check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA journal_mode=WAL")
            self._conn.executescript(SCHEMA)
            self._conn.commit()
        except (sqlite3.Error, OSError) as e:
            raise StorageError(f"Failed to open context store at {self.path}: {e}") from e
        logger.debug("Opened context store at %s", self.path)

    def _execute(self, sql: str, params: tuple = ()) -> sqlite3.Cursor:
        with self._lock:
            try:
                cursor = self._conn.execute(sql, params)
                self._conn.commit()
                return cursor
            except sqlite3.Error as e:
                raise StorageError(f"Context store query failed: {e}") from e

    def insert_critical(self, item: CriticalContext) -> None:
        self._execute(
            """
            INSERT INTO critical_context (id, type, content, reason, source, never_compress, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                item.id,
                item.type,
                item.content,
                item.reason,
                item.source,
                1 if item.never_compress else 0,
                item.created_at,
            ),
        )

    def list_critical(self) -> list[CriticalContext]:
        rows = self._execute(
            """
            SELECT id, type, content, reason, source, never_compress, created_at
            FROM critical_context
            ORDER BY created_at DESC, rowid DESC
            """
        ).fetchall()
        return [
            CriticalContext(
                id=row["id"],
                type=row["type"],
                content=row["content"],
                reason=row["reason"],
                source=row["source"],
                created_at=row["created_at"],
                never_compress=row["never_compress"] == 1,
            )
            for row in rows
        ]

    def delete_critical(self, critical_id: str) -> bool:
        cursor = self._execute("DELETE FROM critical_context WHERE id = ?", (critical_id,))
        return cursor.rowcount > 0

    def append_health(self, snapshot: HealthSnapshot) -> None:
        self._execute(
            """
            INSERT INTO context_health_history
            (timestamp, tokens_used, tokens_limit, utilization_percent, drift_score,
             relevance_score, health, compaction_triggered)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                snapshot.timestamp,
                snapshot.tokens_used,
                snapshot.tokens_limit,
                snapshot.utilization_percent,
                snapshot.drift_score,
                snapshot.relevance_score,
                snapshot.health,
                1 if snapshot.compaction_triggered else 0,
            ),
        )

    def list_health(self, limit: int) -> list[HealthSnapshot]:
        if limit <= 0:
            return []
        rows = self._execute(
            """
            SELECT timestamp, tokens_used, tokens_limit, utilization_percent, drift_score,
                   relevance_score, health, compaction_triggered
            FROM context_health_history
            ORDER BY timestamp DESC, id DESC
            LIMIT ?
            """,
            (limit,),
        ).fetchall()
        return [
            HealthSnapshot(
                timestamp=row["timestamp"],
                health=row["health"],
                utilization_percent=row["utilization_percent"],
                drift_score=row["drift_score"],
                tokens_used=row["tokens_used"] or 0,
                tokens_limit=row["tokens_limit"] or 0,
                relevance_score=row["relevance_score"] if row["relevance_score"] is not None else 1.0,
                compaction_triggered=row["compaction_triggered"] == 1,
            )
            for row in rows
        ]

    def close(self) -> None:
        with self._lock:
            try:
                self._conn.close()
            except sqlite3.Error as e:
                logger.warning("Failed to close context store %s: %s", self.path, e)
