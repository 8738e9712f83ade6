"""
SQLite storage. One file, one connection, no ORM.

Tables:
- batches: one row per saved acquisition
- reviews: the reviews of each batch, in discovery order
"""

import json
import sqlite3
from datetime import datetime, timezone
from pathlib import Path

from models import BatchRecord, ReviewItem


class Storage:
    def __init__(self, db_path: Path):
        db_path.parent.mkdir(parents=True, exist_ok=True)
        # Flask request threads and job threads each open their own Storage.
        self._conn = sqlite3.connect(str(db_path))
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.execute("PRAGMA foreign_keys=ON")
        self._conn.row_factory = sqlite3.Row
        self._migrate()

    def _migrate(self):
        """Create tables if they don't exist. No migration framework needed."""
        self._conn.executescript("""
            CREATE TABLE IF NOT EXISTS batches (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                source_id TEXT NOT NULL,
                display_name TEXT NOT NULL,
                item_count INTEGER NOT NULL,
                target_count INTEGER,
                status TEXT NOT NULL DEFAULT 'complete',
                created_at TEXT NOT NULL
            );

            CREATE INDEX IF NOT EXISTS idx_batches_source
                ON batches(source_id);

            CREATE TABLE IF NOT EXISTS reviews (
                batch_id INTEGER NOT NULL,
                position INTEGER NOT NULL,
                item_id TEXT NOT NULL,
                body TEXT NOT NULL,
                author TEXT NOT NULL DEFAULT '{}',
                PRIMARY KEY (batch_id, position),
                UNIQUE (batch_id, item_id),
                FOREIGN KEY (batch_id) REFERENCES batches(id)
            );
        """)
        self._conn.commit()

    def save_batch(
        self,
        source_id: str,
        display_name: str,
        items: list[ReviewItem],
        target_count: int | None = None,
        status: str = "complete",
    ) -> int:
        """
        Save a finished batch with all its reviews. Returns the batch id.

        Raises:
            ValueError: the batch repeats an item_id.
        """
        ids = [item.item_id for item in items]
        if len(set(ids)) != len(ids):
            raise ValueError(f"Batch for {source_id} contains duplicate item ids")

        now = datetime.now(timezone.utc).isoformat()
        with self._conn:
            cursor = self._conn.execute(
                "INSERT INTO batches (source_id, display_name, item_count, target_count, status, created_at) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                (str(source_id), display_name, len(items), target_count, status, now),
            )
            batch_id = cursor.lastrowid
            self._conn.executemany(
                "INSERT INTO reviews (batch_id, position, item_id, body, author) VALUES (?, ?, ?, ?, ?)",
                [
                    (batch_id, position, item.item_id, item.body, json.dumps(item.author))
                    for position, item in enumerate(items)
                ],
            )
        return batch_id

    def get_batch(self, batch_id: int) -> BatchRecord | None:
        row = self._conn.execute(
            "SELECT * FROM batches WHERE id = ?", (batch_id,)
        ).fetchone()
        return self._row_to_batch(row) if row else None

    def get_batch_history(self, source_id: str) -> list[BatchRecord]:
        """All saved batches for a source, newest first."""
        rows = self._conn.execute(
            "SELECT * FROM batches WHERE source_id = ? ORDER BY created_at DESC, id DESC",
            (str(source_id),),
        ).fetchall()
        return [self._row_to_batch(r) for r in rows]

    def get_batch_reviews(self, batch_id: int) -> list[ReviewItem]:
        """Reviews of a batch, in the order they were discovered."""
        rows = self._conn.execute(
            "SELECT item_id, body, author FROM reviews WHERE batch_id = ? ORDER BY position",
            (batch_id,),
        ).fetchall()
        return [
            ReviewItem(item_id=r["item_id"], body=r["body"], author=json.loads(r["author"]))
            for r in rows
        ]

    def get_stats(self) -> dict:
        """Basic stats for debugging."""
        total_batches = self._conn.execute("SELECT COUNT(*) FROM batches").fetchone()[0]
        total_reviews = self._conn.execute("SELECT COUNT(*) FROM reviews").fetchone()[0]
        by_source = {}
        for row in self._conn.execute(
            "SELECT source_id, COUNT(*) as cnt FROM batches GROUP BY source_id"
        ):
            by_source[row[0]] = row[1]
        return {
            "total_batches": total_batches,
            "total_reviews": total_reviews,
            "by_source": by_source,
        }

    def _row_to_batch(self, row: sqlite3.Row) -> BatchRecord:
        return BatchRecord(
            id=row["id"],
            source_id=row["source_id"],
            display_name=row["display_name"],
            item_count=row["item_count"],
            target_count=row["target_count"],
            status=row["status"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    def close(self):
        self._conn.close()
