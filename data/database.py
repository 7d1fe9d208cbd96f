"""
Database Module for FavoImgs

This module handles the favorite cache: a local SQLite database recording every
favorite ever seen, the media URIs discovered for it, and whether all of its
media has been downloaded. The cache is what makes repeated runs incremental
and lets an interrupted run resume.
"""

import os
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Optional, List

from data.models import FavoriteRecord, MediaLink, DownloadState
from utils.exceptions import CacheUnavailableError, DuplicateFavoriteError
from utils.helpers import ensure_dir_exists
from utils.logger import get_logger

logger = get_logger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS [Favorites] (
    [Id] bigint PRIMARY KEY NOT NULL,
    [CreatedAt] datetime NOT NULL,
    [UserId] bigint NOT NULL,
    [ScreenName] nvarchar(64) NOT NULL DEFAULT '',
    [Text] nvarchar(280) NOT NULL,
    [State] int NOT NULL
);

CREATE TABLE IF NOT EXISTS [MediaUris] (
    [Id] bigint NOT NULL,
    [Uri] nvarchar(256) NOT NULL
);

CREATE INDEX IF NOT EXISTS [IX_Id] ON [MediaUris] ([Id]);
"""


class FavoriteStore:
    """SQLite-backed cache of favorites and their media URIs.

    The store has an explicit lifecycle: call open() before use and close()
    when the run ends, or use it as a context manager. A single connection is
    shared between worker threads and every statement runs under one lock, so
    writes are serialized.

    Every sqlite3 failure is reported as CacheUnavailableError.
    """

    def __init__(self, db_path: str):
        """
        Initialize the store.

        Args:
            db_path: Path of the SQLite database file.
        """
        self.db_path = db_path
        self.conn = None
        self._lock = threading.Lock()

    def __enter__(self) -> "FavoriteStore":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def open(self) -> None:
        """
        Open the database file, creating it and its schema if absent.

        Raises:
            CacheUnavailableError: If the file cannot be opened or initialized.
        """
        if self.conn is not None:
            return

        try:
            directory = os.path.dirname(os.path.abspath(self.db_path))
            ensure_dir_exists(directory)
            conn = sqlite3.connect(self.db_path, check_same_thread=False)
            conn.execute("PRAGMA journal_mode=WAL")
            conn.executescript(SCHEMA)
            self._migrate(conn)
            conn.commit()
        except (sqlite3.Error, OSError) as e:
            logger.error(f"Failed to open favorite cache at {self.db_path}: {e}")
            raise CacheUnavailableError(f"Cannot open favorite cache {self.db_path}: {e}") from e

        self.conn = conn
        logger.info(f"Opened favorite cache: {self.db_path}")

    def _migrate(self, conn: sqlite3.Connection) -> None:
        """Add columns missing from caches created by older versions."""
        existing = {row[1] for row in conn.execute("PRAGMA table_info([Favorites])").fetchall()}
        if "ScreenName" not in existing:
            conn.execute("ALTER TABLE [Favorites] ADD COLUMN [ScreenName] nvarchar(64) NOT NULL DEFAULT ''")

    def close(self) -> None:
        """Commit and close the database connection."""
        with self._lock:
            if self.conn is None:
                return
            try:
                self.conn.commit()
                self.conn.close()
                logger.info("Favorite cache closed")
            except sqlite3.Error as e:
                logger.error(f"Error closing favorite cache: {e}")
            finally:
                self.conn = None

    @contextmanager
    def _cursor(self, write: bool = False):
        """
        Yield a cursor under the store lock, translating sqlite3 errors.

        Args:
            write: Commit on success and roll back on failure.
        """
        with self._lock:
            if self.conn is None:
                raise CacheUnavailableError("Favorite cache is not open")
            try:
                cursor = self.conn.cursor()
                yield cursor
                if write:
                    self.conn.commit()
            except sqlite3.Error as e:
                logger.error(f"Favorite cache error: {e}")
                self._rollback()
                raise CacheUnavailableError(f"Favorite cache error: {e}") from e
            except Exception:
                self._rollback()
                raise

    def _rollback(self) -> None:
        try:
            self.conn.rollback()
        except sqlite3.Error:
            logger.warning("Rollback of favorite cache transaction failed")

    def exists(self, favorite_id: int) -> bool:
        """
        Check whether a favorite is cached.

        Args:
            favorite_id: The tweet ID.

        Returns:
            bool: True if the favorite is cached.
        """
        with self._cursor() as cursor:
            cursor.execute("SELECT count(*) FROM [Favorites] WHERE [Id] = ?", (favorite_id,))
            return cursor.fetchone()[0] != 0

    def insert_pending(self, record: FavoriteRecord, media_uris: List[str]) -> None:
        """
        Insert a favorite in the pending state together with its media URIs.

        The favorite and its media rows are written in one transaction.

        Args:
            record: The favorite to insert.
            media_uris: Media URIs as discovered, recorded even if their download later fails.

        Raises:
            DuplicateFavoriteError: If the id is already cached. Nothing is written.
            CacheUnavailableError: On storage failure.
        """
        with self._cursor(write=True) as cursor:
            cursor.execute("SELECT count(*) FROM [Favorites] WHERE [Id] = ?", (record.id,))
            if cursor.fetchone()[0] != 0:
                raise DuplicateFavoriteError(record.id)

            cursor.execute(
                """
                INSERT INTO [Favorites] ([Id], [CreatedAt], [UserId], [ScreenName], [Text], [State])
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (record.id, record.created_at.isoformat(), record.author_id,
                 record.author_screen_name, record.text, int(DownloadState.PENDING))
            )
            cursor.executemany(
                "INSERT INTO [MediaUris] ([Id], [Uri]) VALUES (?, ?)",
                [(record.id, uri) for uri in media_uris]
            )

        logger.debug(f"Cached favorite {record.id} with {len(media_uris)} media URIs")

    def is_complete(self, favorite_id: int) -> bool:
        """
        Check whether all media of a favorite has been downloaded.

        Args:
            favorite_id: The tweet ID.

        Returns:
            bool: True if the favorite is complete, False if pending or unknown.
        """
        with self._cursor() as cursor:
            cursor.execute("SELECT [State] FROM [Favorites] WHERE [Id] = ?", (favorite_id,))
            row = cursor.fetchone()
            return row is not None and row[0] == DownloadState.COMPLETE

    def mark_complete(self, favorite_id: int) -> bool:
        """
        Mark a favorite complete. Marking an already complete favorite is a no-op.

        Args:
            favorite_id: The tweet ID.

        Returns:
            bool: True if the favorite exists.
        """
        with self._cursor(write=True) as cursor:
            cursor.execute(
                "UPDATE [Favorites] SET [State] = ? WHERE [Id] = ?",
                (int(DownloadState.COMPLETE), favorite_id)
            )
            return cursor.rowcount != 0

    def reset_all(self) -> bool:
        """
        Set every favorite back to pending to force a full re-download pass.

        Returns:
            bool: True if any row changed.
        """
        with self._cursor(write=True) as cursor:
            cursor.execute(
                "UPDATE [Favorites] SET [State] = ? WHERE [State] <> ?",
                (int(DownloadState.PENDING), int(DownloadState.PENDING))
            )
            changed = cursor.rowcount
        logger.info(f"Reset {changed} cached favorites to pending")
        return changed != 0

    def latest(self) -> Optional[int]:
        """Return the highest cached favorite id, or None when the cache is empty."""
        with self._cursor() as cursor:
            cursor.execute("SELECT max([Id]) FROM [Favorites]")
            return cursor.fetchone()[0]

    def oldest(self) -> Optional[int]:
        """Return the lowest cached favorite id, or None when the cache is empty."""
        with self._cursor() as cursor:
            cursor.execute("SELECT min([Id]) FROM [Favorites]")
            return cursor.fetchone()[0]

    def count(self) -> int:
        """Return the number of cached favorites."""
        with self._cursor() as cursor:
            cursor.execute("SELECT count(*) FROM [Favorites]")
            return cursor.fetchone()[0]

    def get_record(self, favorite_id: int) -> Optional[FavoriteRecord]:
        """
        Load a cached favorite.

        Args:
            favorite_id: The tweet ID.

        Returns:
            Optional[FavoriteRecord]: The record, or None if not cached.
        """
        with self._cursor() as cursor:
            cursor.execute(
                """
                SELECT [Id], [CreatedAt], [UserId], [ScreenName], [Text], [State]
                FROM [Favorites] WHERE [Id] = ?
                """,
                (favorite_id,)
            )
            row = cursor.fetchone()

        if row is None:
            return None
        return FavoriteRecord(
            id=row[0],
            created_at=datetime.fromisoformat(row[1]),
            author_id=row[2],
            author_screen_name=row[3],
            text=row[4],
            download_state=DownloadState(row[5]),
        )

    def get_media_links(self, favorite_id: int) -> List[MediaLink]:
        """
        List the media links recorded for a favorite, in insertion order.

        Args:
            favorite_id: The tweet ID.

        Returns:
            List[MediaLink]: The recorded links.
        """
        with self._cursor() as cursor:
            cursor.execute(
                "SELECT [Uri] FROM [MediaUris] WHERE [Id] = ? ORDER BY rowid",
                (favorite_id,)
            )
            return [MediaLink(favorite_id=favorite_id, uri=row[0]) for row in cursor.fetchall()]
