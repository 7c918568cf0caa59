"""
SQLite-backed asset store.

Stores complete asset bytes as BLOBs in a single `assets` table keyed by
identity, with an index on insertion time for chronological listing.
Uses aiosqlite so every database call is awaitable.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import aiosqlite

from modelcache.cache.base import AssetStore
from modelcache.exceptions import StorageReadError, StorageUnavailable, StorageWriteError
from modelcache.logging import get_logger
from modelcache.types import CacheInfoSummary, CachedAsset

logger = get_logger(__name__)

# Bumped whenever the schema changes; stored in PRAGMA user_version.
SCHEMA_VERSION = 1


class SQLiteAssetStore(AssetStore):
    """Durable asset store in a local SQLite database.

    Each mutation is one statement committed on success and rolled back on
    failure. Reads and mutations share one connection and are serialized
    through one lock, so a read never sees a row whose commit is pending.
    """

    def __init__(self, db_path: str | Path) -> None:
        """Initialize the store.

        Args:
            db_path: Path of the SQLite database file.
        """
        self.db_path = Path(db_path)
        self._db: aiosqlite.Connection | None = None
        self._lock = asyncio.Lock()

    @property
    def is_open(self) -> bool:
        """Whether the database connection is open."""
        return self._db is not None

    async def open(self) -> SQLiteAssetStore:
        """Open the database and create or upgrade the schema.

        Idempotent: returns immediately if already open.

        Raises:
            StorageUnavailable: If the directory or database cannot be opened,
                or the database was written by a newer schema version.
        """
        if self._db is not None:
            return self

        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            db = await aiosqlite.connect(self.db_path)
        except (OSError, aiosqlite.Error) as e:
            raise StorageUnavailable(
                "Could not open asset database",
                context={"path": str(self.db_path), "error": str(e)},
            ) from e

        try:
            db.row_factory = aiosqlite.Row
            await db.execute("PRAGMA journal_mode=WAL")
            await self._migrate(db)
        except StorageUnavailable:
            await db.close()
            raise
        except aiosqlite.Error as e:
            await db.close()
            raise StorageUnavailable(
                "Could not initialize asset database schema",
                context={"path": str(self.db_path), "error": str(e)},
            ) from e

        self._db = db
        logger.info("Asset store initialized", path=str(self.db_path))
        return self

    async def _migrate(self, db: aiosqlite.Connection) -> None:
        """Bring the schema up to SCHEMA_VERSION."""
        async with db.execute("PRAGMA user_version") as cursor:
            row = await cursor.fetchone()
        version = row[0] if row else 0

        if version > SCHEMA_VERSION:
            raise StorageUnavailable(
                "Asset database was created by a newer version",
                context={
                    "path": str(self.db_path),
                    "schema_version": version,
                    "supported_version": SCHEMA_VERSION,
                },
            )
        if version == SCHEMA_VERSION:
            return

        logger.debug("Upgrading asset schema", from_version=version, to_version=SCHEMA_VERSION)
        await db.execute("""
            CREATE TABLE IF NOT EXISTS assets (
                identity TEXT PRIMARY KEY,
                data BLOB NOT NULL,
                inserted_at INTEGER NOT NULL,
                size_bytes INTEGER NOT NULL
            )
        """)
        await db.execute(
            "CREATE INDEX IF NOT EXISTS idx_assets_inserted_at ON assets(inserted_at)"
        )
        # PRAGMA does not accept bound parameters
        await db.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")
        await db.commit()

    async def close(self) -> None:
        """Close the database connection."""
        if self._db:
            await self._db.close()
            self._db = None

    def _conn(self) -> aiosqlite.Connection:
        if not self._db:
            raise RuntimeError("SQLiteAssetStore not initialized. Call open() first.")
        return self._db

    async def _read(
        self,
        operation: str,
        sql: str,
        params: tuple[object, ...] = (),
        identity: str | None = None,
    ) -> list[aiosqlite.Row]:
        """Run one query and return all of its rows."""
        db = self._conn()
        async with self._lock:
            try:
                async with db.execute(sql, params) as cursor:
                    return list(await cursor.fetchall())
            except aiosqlite.Error as e:
                context: dict[str, object] = {"operation": operation, "error": str(e)}
                if identity is not None:
                    context["identity"] = identity
                raise StorageReadError(f"Asset store {operation} failed", context=context) from e

    async def get(self, identity: str) -> CachedAsset | None:
        """Retrieve an asset by identity.

        Args:
            identity: The asset identity.

        Returns:
            The CachedAsset, or None if not found.

        Raises:
            StorageReadError: If the query fails.
        """
        rows = await self._read(
            "get",
            "SELECT identity, data, inserted_at, size_bytes FROM assets WHERE identity = ?",
            (identity,),
            identity=identity,
        )
        if not rows:
            return None

        row = rows[0]
        return CachedAsset(
            identity=row["identity"],
            data=bytes(row["data"]),
            inserted_at=row["inserted_at"],
            size_bytes=row["size_bytes"],
        )

    async def _write(
        self,
        operation: str,
        sql: str,
        params: tuple[object, ...] = (),
        identity: str | None = None,
    ) -> None:
        """Run one mutating statement in its own transaction."""
        db = self._conn()
        async with self._lock:
            try:
                await db.execute(sql, params)
                await db.commit()
            except aiosqlite.Error as e:
                try:
                    await db.rollback()
                except aiosqlite.Error as rollback_error:
                    logger.warning("Rollback failed", error=str(rollback_error))
                context: dict[str, object] = {"operation": operation, "error": str(e)}
                if identity is not None:
                    context["identity"] = identity
                raise StorageWriteError(f"Asset store {operation} failed", context=context) from e

    async def put(self, asset: CachedAsset) -> None:
        """Insert or replace an asset.

        Args:
            asset: The record to store.

        Raises:
            StorageWriteError: If the database rejects the write (disk full,
                read-only file, ...).
        """
        await self._write(
            "put",
            """
            INSERT OR REPLACE INTO assets (identity, data, inserted_at, size_bytes)
            VALUES (?, ?, ?, ?)
            """,
            (asset.identity, asset.data, asset.inserted_at, asset.size_bytes),
            identity=asset.identity,
        )
        logger.debug("Stored asset", identity=asset.identity, size=asset.size_bytes)

    async def delete(self, identity: str) -> None:
        """Delete an asset; missing identities are ignored."""
        await self._write(
            "delete", "DELETE FROM assets WHERE identity = ?", (identity,), identity=identity
        )

    async def delete_all(self) -> None:
        """Delete every asset."""
        await self._write("delete_all", "DELETE FROM assets")

    async def list_all(self) -> list[CacheInfoSummary]:
        """List all asset summaries, oldest first.

        Only metadata columns are read; blobs stay on disk.
        """
        rows = await self._read(
            "list_all",
            "SELECT identity, inserted_at, size_bytes FROM assets ORDER BY inserted_at",
        )
        return [
            CacheInfoSummary(
                identity=row["identity"],
                inserted_at=row["inserted_at"],
                size_bytes=row["size_bytes"],
            )
            for row in rows
        ]

    async def aggregate_size(self) -> int:
        """Sum of size_bytes across all assets, computed on every call."""
        rows = await self._read(
            "aggregate_size", "SELECT COALESCE(SUM(size_bytes), 0) FROM assets"
        )
        return rows[0][0] if rows else 0
