"""SQLite-backed recognition history."""

import asyncio
import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Sequence

from subtitle_study.exceptions import RepositoryError
from subtitle_study.models import RecognitionAttempt, RecognitionStats

logger = logging.getLogger(__name__)


class SQLiteRecognitionRepository:
    """Record recognition successes and failures per lemma.

    Thread Safety:
        Each call opens its own sqlite3.Connection.
    """

    def __init__(self, db_path: Path):
        self._db_path = db_path
        self._initialized = False

    def initialize(self) -> None:
        """Create the database and table if they don't exist."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(self._db_path))
        try:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS recognition_attempts (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    lemma TEXT NOT NULL,
                    reading TEXT NOT NULL DEFAULT '',
                    success INTEGER NOT NULL,
                    attempted_at TEXT NOT NULL
                )
                """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_recognition_lemma
                ON recognition_attempts(lemma)
                """)
            conn.commit()
        finally:
            conn.close()
        self._initialized = True

    def _ensure_initialized(self) -> None:
        if not self._initialized:
            self.initialize()

    async def record_attempts_batch(self, attempts: Sequence[RecognitionAttempt]) -> None:
        """Record several attempts in a single transaction.

        Raises:
            RepositoryError: If the attempts cannot be written
        """
        if not attempts:
            return
        await asyncio.to_thread(self._record_batch, list(attempts))

    def _record_batch(self, attempts: list[RecognitionAttempt]) -> None:
        attempted_at = datetime.now().isoformat()
        try:
            self._ensure_initialized()
            conn = sqlite3.connect(str(self._db_path))
            try:
                conn.executemany(
                    "INSERT INTO recognition_attempts (lemma, reading, success, attempted_at) "
                    "VALUES (?, ?, ?, ?)",
                    [(a.lemma, a.reading, int(a.success), attempted_at) for a in attempts],
                )
                conn.commit()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise RepositoryError(f"Failed to record {len(attempts)} recognition attempts: {e}") from e
        logger.debug(f"Recorded {len(attempts)} recognition attempts")

    async def get_stats(self, lemma: str) -> RecognitionStats:
        """Aggregate the recognition history of a lemma.

        Raises:
            RepositoryError: If the database cannot be read
        """
        return await asyncio.to_thread(self._get_stats, lemma)

    def _get_stats(self, lemma: str) -> RecognitionStats:
        try:
            self._ensure_initialized()
            conn = sqlite3.connect(str(self._db_path))
            try:
                rows = conn.execute(
                    "SELECT success, attempted_at FROM recognition_attempts "
                    "WHERE lemma = ? ORDER BY id DESC",
                    (lemma,),
                ).fetchall()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise RepositoryError(f"Failed to read recognition stats for {lemma}: {e}") from e

        stats = RecognitionStats(lemma=lemma)
        if not rows:
            return stats

        stats.attempts = len(rows)
        stats.successes = sum(1 for success, _ in rows if success)
        stats.failures = stats.attempts - stats.successes
        stats.last_attempt_at = datetime.fromisoformat(rows[0][1])

        # Rows are newest first; count the current success streak
        for success, _ in rows:
            if not success:
                break
            stats.consecutive_successes += 1

        return stats
