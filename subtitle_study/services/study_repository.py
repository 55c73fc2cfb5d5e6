"""SQLite-backed log of answered study blanks."""

import asyncio
import logging
import sqlite3
from datetime import datetime
from pathlib import Path

from subtitle_study.exceptions import RepositoryError
from subtitle_study.models import StudyRecord, StudyStats

logger = logging.getLogger(__name__)


class SQLiteStudyRepository:
    """Record every answered blank and aggregate results per lemma.

    Thread Safety:
        Each call opens its own sqlite3.Connection, so methods are safe to
        run from ``asyncio.to_thread`` workers.
    """

    def __init__(self, db_path: Path):
        """Initialize the repository.

        Args:
            db_path: Path to the SQLite database file
        """
        self._db_path = db_path
        self._initialized = False

    def initialize(self) -> None:
        """Create the database and table if they don't exist."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = self._connect()
        try:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS study_records (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    lemma TEXT NOT NULL,
                    reading TEXT NOT NULL DEFAULT '',
                    surface_form TEXT NOT NULL DEFAULT '',
                    result TEXT NOT NULL,
                    timestamp TEXT NOT NULL,
                    sentence_context TEXT NOT NULL DEFAULT '',
                    media_source TEXT NOT NULL DEFAULT ''
                )
                """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_study_records_lemma
                ON study_records(lemma)
                """)
            conn.commit()
        finally:
            conn.close()
        self._initialized = True
        logger.info(f"Study database initialized at {self._db_path}")

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path))
        conn.row_factory = sqlite3.Row
        return conn

    def _ensure_initialized(self) -> None:
        if not self._initialized:
            self.initialize()

    async def save(self, record: StudyRecord) -> None:
        """Append a study record.

        Raises:
            RepositoryError: If the record cannot be written
        """
        await asyncio.to_thread(self._save, record)

    def _save(self, record: StudyRecord) -> None:
        try:
            self._ensure_initialized()
            conn = self._connect()
            try:
                conn.execute(
                    """INSERT INTO study_records
                       (lemma, reading, surface_form, result, timestamp,
                        sentence_context, media_source)
                       VALUES (?, ?, ?, ?, ?, ?, ?)""",
                    (
                        record.lemma,
                        record.reading,
                        record.surface_form,
                        record.result,
                        record.timestamp.isoformat(),
                        record.sentence_context,
                        record.media_source,
                    ),
                )
                conn.commit()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise RepositoryError(f"Failed to save study record for {record.lemma}: {e}") from e

    async def get_stats(self, lemma: str) -> StudyStats:
        """Aggregate study results for a lemma.

        Raises:
            RepositoryError: If the database cannot be read
        """
        return await asyncio.to_thread(self._get_stats, lemma)

    def _get_stats(self, lemma: str) -> StudyStats:
        try:
            self._ensure_initialized()
            conn = self._connect()
            try:
                row = conn.execute(
                    """SELECT COUNT(*) AS total,
                              SUM(CASE WHEN result = 'correct' THEN 1 ELSE 0 END) AS correct,
                              MAX(timestamp) AS last_studied
                       FROM study_records WHERE lemma = ?""",
                    (lemma,),
                ).fetchone()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise RepositoryError(f"Failed to read study stats for {lemma}: {e}") from e

        total = row["total"] or 0
        correct = row["correct"] or 0
        last = row["last_studied"]
        return StudyStats(
            lemma=lemma,
            total_attempts=total,
            correct=correct,
            incorrect=total - correct,
            last_studied=datetime.fromisoformat(last) if last else None,
        )

    def get_recent_records(self, limit: int = 50) -> list[StudyRecord]:
        """Return the most recent study records, newest first."""
        self._ensure_initialized()
        conn = self._connect()
        try:
            rows = conn.execute(
                "SELECT * FROM study_records ORDER BY id DESC LIMIT ?",
                (limit,),
            ).fetchall()
        finally:
            conn.close()
        return [
            StudyRecord(
                lemma=row["lemma"],
                reading=row["reading"],
                surface_form=row["surface_form"],
                correct=row["result"] == "correct",
                timestamp=datetime.fromisoformat(row["timestamp"]),
                sentence_context=row["sentence_context"],
                media_source=row["media_source"],
            )
            for row in rows
        ]
