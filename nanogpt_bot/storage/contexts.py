from __future__ import annotations

import sqlite3
from typing import List, Optional

import aiosqlite

from .errors import ContextConflictError
from .models import ContextRecord
from .utils import _clean_optional, _parse_timestamp, _sqlite_connection

_CONTEXT_COLUMNS = "id, guild_id, user_id, name, content, source_filename, file_type, created_at"


def _row_to_context(row: aiosqlite.Row) -> ContextRecord:
    return ContextRecord(
        id=int(row["id"]),
        guild_id=str(row["guild_id"]),
        user_id=str(row["user_id"]) if row["user_id"] is not None else None,
        name=str(row["name"]),
        content=str(row["content"]),
        source_filename=str(row["source_filename"] or ""),
        file_type=str(row["file_type"] or ""),
        created_at=_parse_timestamp(row["created_at"]),
    )


class ContextsMixin:
    """Named document contexts in two scopes: server-shared (NULL user) and personal."""

    async def add_context(
        self,
        guild_id: str,
        name: str,
        content: str,
        source_filename: str,
        file_type: str,
        user_id: str | None = None,
    ) -> None:
        owner = _clean_optional(user_id)
        async with _sqlite_connection(self.db_path) as db:
            try:
                await db.execute(
                    """
                    INSERT INTO contexts (guild_id, user_id, name, content, source_filename, file_type)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (str(guild_id), owner, name, content, source_filename, file_type),
                )
            except sqlite3.IntegrityError as exc:
                raise ContextConflictError(str(guild_id), name, owner) from exc
            await db.commit()

    async def _get_scoped_context(
        self,
        db: aiosqlite.Connection,
        guild_id: str,
        name: str,
        user_id: str | None,
    ) -> Optional[ContextRecord]:
        if user_id is None:
            query = f"SELECT {_CONTEXT_COLUMNS} FROM contexts WHERE guild_id = ? AND name = ? AND user_id IS NULL"
            params: tuple[str, ...] = (guild_id, name)
        else:
            query = f"SELECT {_CONTEXT_COLUMNS} FROM contexts WHERE guild_id = ? AND name = ? AND user_id = ?"
            params = (guild_id, name, user_id)
        async with db.execute(query, params) as cursor:
            row = await cursor.fetchone()
        return _row_to_context(row) if row is not None else None

    async def get_context(self, guild_id: str, name: str, user_id: str | None = None) -> Optional[ContextRecord]:
        owner = _clean_optional(user_id)
        async with _sqlite_connection(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            # A personal context shadows the server context of the same name.
            if owner is not None:
                personal = await self._get_scoped_context(db, str(guild_id), name, owner)
                if personal is not None:
                    return personal
            return await self._get_scoped_context(db, str(guild_id), name, None)

    async def list_contexts(self, guild_id: str, user_id: str | None = None) -> List[ContextRecord]:
        owner = _clean_optional(user_id)
        async with _sqlite_connection(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            if owner is None:
                cursor = await db.execute(
                    f"""
                    SELECT {_CONTEXT_COLUMNS}
                    FROM contexts
                    WHERE guild_id = ? AND user_id IS NULL
                    ORDER BY created_at DESC, id DESC
                    """,
                    (str(guild_id),),
                )
            else:
                cursor = await db.execute(
                    f"""
                    SELECT {_CONTEXT_COLUMNS}
                    FROM contexts
                    WHERE guild_id = ? AND user_id = ?
                    ORDER BY created_at DESC, id DESC
                    """,
                    (str(guild_id), owner),
                )
            async with cursor:
                rows = await cursor.fetchall()
        return [_row_to_context(row) for row in rows]

    async def remove_context(self, guild_id: str, name: str, user_id: str | None = None) -> bool:
        owner = _clean_optional(user_id)
        async with _sqlite_connection(self.db_path) as db:
            if owner is None:
                cursor = await db.execute(
                    "DELETE FROM contexts WHERE guild_id = ? AND name = ? AND user_id IS NULL",
                    (str(guild_id), name),
                )
            else:
                cursor = await db.execute(
                    "DELETE FROM contexts WHERE guild_id = ? AND name = ? AND user_id = ?",
                    (str(guild_id), name, owner),
                )
            await db.commit()
            return cursor.rowcount > 0
