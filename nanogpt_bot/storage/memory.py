from __future__ import annotations

from typing import Dict, List

import aiosqlite

from .models import MemoryStats
from .utils import _clean_optional, _parse_timestamp, _sqlite_connection

MEMORY_ROLES = frozenset({"user", "assistant"})


class MemoryLedgerMixin:
    """Append-only conversation log keyed by user only, so it follows the user across guilds."""

    async def append_memory(self, user_id: str, role: str, content: str, model: str | None = None) -> None:
        if role not in MEMORY_ROLES:
            raise ValueError(f"Unsupported memory role: {role!r}")
        async with _sqlite_connection(self.db_path) as db:
            await db.execute(
                "INSERT INTO memories (user_id, role, content, model) VALUES (?, ?, ?, ?)",
                (str(user_id), role, content, _clean_optional(model)),
            )
            await db.commit()

    async def append_exchange(
        self,
        user_id: str,
        user_content: str,
        assistant_content: str,
        model: str | None = None,
    ) -> None:
        """Record one user turn and its reply together, or neither."""
        cleaned_model = _clean_optional(model)
        async with _sqlite_connection(self.db_path) as db:
            await db.executemany(
                "INSERT INTO memories (user_id, role, content, model) VALUES (?, ?, ?, ?)",
                [
                    (str(user_id), "user", user_content, cleaned_model),
                    (str(user_id), "assistant", assistant_content, cleaned_model),
                ],
            )
            await db.commit()

    async def get_memory_history(self, user_id: str, limit: int) -> List[Dict[str, str]]:
        if int(limit) <= 0:
            return []
        async with _sqlite_connection(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            async with db.execute(
                """
                SELECT id, role, content
                FROM memories
                WHERE user_id = ?
                ORDER BY created_at DESC, id DESC
                LIMIT ?
                """,
                (str(user_id), int(limit)),
            ) as cursor:
                rows = await cursor.fetchall()

        # Replayed verbatim as prior turns, so oldest first.
        ordered = list(reversed(rows))
        return [{"role": str(row["role"]), "content": str(row["content"])} for row in ordered]

    async def clear_memory(self, user_id: str) -> int:
        async with _sqlite_connection(self.db_path) as db:
            cursor = await db.execute("DELETE FROM memories WHERE user_id = ?", (str(user_id),))
            await db.commit()
            return int(cursor.rowcount)

    async def get_memory_stats(self, user_id: str) -> MemoryStats:
        async with _sqlite_connection(self.db_path) as db:
            async with db.execute(
                "SELECT COUNT(*), MIN(created_at), MAX(created_at) FROM memories WHERE user_id = ?",
                (str(user_id),),
            ) as cursor:
                row = await cursor.fetchone()
        count = int(row[0]) if row else 0
        if count == 0:
            return MemoryStats(count=0, first_at=None, last_at=None)
        return MemoryStats(
            count=count,
            first_at=_parse_timestamp(row[1]),
            last_at=_parse_timestamp(row[2]),
        )
