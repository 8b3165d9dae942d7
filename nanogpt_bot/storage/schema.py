from __future__ import annotations

import logging
import os
from pathlib import Path

import aiosqlite

from .utils import _sqlite_connection

logger = logging.getLogger("nanogpt_bot")


class StoreSchemaMixin:
    SCHEMA_VERSION = 2

    def __init__(self, db_path: Path) -> None:
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def _allow_destructive_reset_on_mismatch() -> bool:
        raw = os.getenv("BOT_SQLITE_RESET_ON_SCHEMA_MISMATCH", "")
        return raw.strip().lower() in {"1", "true", "yes", "y", "on"}

    async def _has_user_tables(self, db: aiosqlite.Connection) -> bool:
        async with db.execute(
            """
            SELECT 1
            FROM sqlite_master
            WHERE type = 'table'
              AND name NOT LIKE 'sqlite_%'
            LIMIT 1
            """
        ) as cursor:
            row = await cursor.fetchone()
        return bool(row)

    async def init(self) -> None:
        async with _sqlite_connection(self.db_path) as db:
            await db.execute("PRAGMA journal_mode=WAL")
            async with db.execute("PRAGMA user_version") as cursor:
                row = await cursor.fetchone()
            version = int(row[0]) if row else 0
            has_tables = await self._has_user_tables(db)

            if version > self.SCHEMA_VERSION:
                if has_tables and self._allow_destructive_reset_on_mismatch():
                    await self._reset_schema(db)
                    await db.execute(f"PRAGMA user_version = {self.SCHEMA_VERSION}")
                    await db.commit()
                    return
                raise RuntimeError(
                    "SQLite schema version mismatch detected (database is newer than this bot build). "
                    f"Found user_version={version}, supported={self.SCHEMA_VERSION}. "
                    "Set BOT_SQLITE_RESET_ON_SCHEMA_MISMATCH=1 to allow destructive reset."
                )

            if not has_tables:
                await self._create_schema(db)
            else:
                await self._migrate_schema(db, version)
            if version != self.SCHEMA_VERSION:
                await db.execute(f"PRAGMA user_version = {self.SCHEMA_VERSION}")

            await db.commit()

    async def _reset_schema(self, db: aiosqlite.Connection) -> None:
        for table in ("memories", "contexts", "users", "guilds"):
            await db.execute(f"DROP TABLE IF EXISTS {table}")
        await self._create_schema(db)

    async def _table_columns(self, db: aiosqlite.Connection, table_name: str) -> set[str]:
        async with db.execute(f"PRAGMA table_info({table_name})") as cursor:
            rows = await cursor.fetchall()
        return {str(row[1]) for row in rows}

    async def _add_column_if_missing(self, db: aiosqlite.Connection, table_name: str, column_sql: str) -> None:
        column_name = str(column_sql.split()[0]).strip()
        if not column_name:
            return
        cols = await self._table_columns(db, table_name)
        if column_name in cols:
            return
        await db.execute(f"ALTER TABLE {table_name} ADD COLUMN {column_sql}")

    async def _migrate_schema(self, db: aiosqlite.Connection, from_version: int) -> None:
        # Tables missing from older builds are created here; existing ones are left alone.
        await self._create_tables(db)
        if from_version < 2:
            await self._migrate_v2_scoped_contexts(db)

    async def _migrate_v2_scoped_contexts(self, db: aiosqlite.Connection) -> None:
        await self._add_column_if_missing(db, "contexts", "user_id TEXT")
        await self._add_column_if_missing(db, "guilds", "updated_at DATETIME")
        await self._add_column_if_missing(db, "users", "updated_at DATETIME")
        await self._drop_duplicate_contexts(db)
        await self._create_indexes(db)

    async def _drop_duplicate_contexts(self, db: aiosqlite.Connection) -> None:
        # Older builds let server-scoped rows (NULL user) share a name; keep the newest of each.
        cursor = await db.execute(
            """
            DELETE FROM contexts
            WHERE id NOT IN (
                SELECT MAX(id)
                FROM contexts
                GROUP BY guild_id, IFNULL(user_id, ''), name
            )
            """
        )
        removed = cursor.rowcount
        await cursor.close()
        if removed > 0:
            logger.warning("Removed %s duplicate context rows during schema migration", removed)

    async def _create_schema(self, db: aiosqlite.Connection) -> None:
        await self._create_tables(db)
        await self._create_indexes(db)

    async def _create_tables(self, db: aiosqlite.Connection) -> None:
        await db.executescript(
            """
            CREATE TABLE IF NOT EXISTS guilds (
                id TEXT PRIMARY KEY,
                default_model TEXT,
                created_at DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP,
                updated_at DATETIME
            );

            CREATE TABLE IF NOT EXISTS users (
                id TEXT PRIMARY KEY,
                default_model TEXT,
                created_at DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP,
                updated_at DATETIME
            );

            CREATE TABLE IF NOT EXISTS contexts (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                guild_id TEXT NOT NULL,
                user_id TEXT,
                name TEXT NOT NULL,
                content TEXT NOT NULL,
                source_filename TEXT,
                file_type TEXT,
                created_at DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP,
                UNIQUE(guild_id, user_id, name)
            );

            CREATE TABLE IF NOT EXISTS memories (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id TEXT NOT NULL,
                role TEXT NOT NULL CHECK (role IN ('user', 'assistant')),
                content TEXT NOT NULL,
                model TEXT,
                created_at DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP
            );
            """
        )

    async def _create_indexes(self, db: aiosqlite.Connection) -> None:
        # UNIQUE treats NULL user_id values as distinct, so server scope needs the expression index.
        await db.executescript(
            """
            CREATE UNIQUE INDEX IF NOT EXISTS idx_contexts_scope_name
            ON contexts(guild_id, IFNULL(user_id, ''), name);

            CREATE INDEX IF NOT EXISTS idx_contexts_scope_recent
            ON contexts(guild_id, user_id, created_at DESC);

            CREATE INDEX IF NOT EXISTS idx_memories_user
            ON memories(user_id, created_at, id);
            """
        )
