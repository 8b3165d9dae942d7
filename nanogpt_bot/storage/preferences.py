from __future__ import annotations

from .utils import _clean_optional, _sqlite_connection


def pick_model(user_model: str | None, guild_model: str | None, fallback: str) -> str:
    """Most specific preference wins: user, then guild, then the process default."""
    for candidate in (user_model, guild_model):
        cleaned = _clean_optional(candidate)
        if cleaned:
            return cleaned
    return fallback


class PreferencesMixin:
    async def _get_default_model(self, table: str, key: str) -> str | None:
        async with _sqlite_connection(self.db_path) as db:
            async with db.execute(
                f"SELECT default_model FROM {table} WHERE id = ?",
                (key,),
            ) as cursor:
                row = await cursor.fetchone()
        if row is None:
            return None
        return _clean_optional(row[0])

    async def _set_default_model(self, table: str, key: str, model: str | None) -> None:
        async with _sqlite_connection(self.db_path) as db:
            await db.execute(
                f"""
                INSERT INTO {table} (id, default_model, created_at, updated_at)
                VALUES (?, ?, CURRENT_TIMESTAMP, CURRENT_TIMESTAMP)
                ON CONFLICT(id) DO UPDATE SET
                    default_model = excluded.default_model,
                    updated_at = CURRENT_TIMESTAMP
                """,
                (key, _clean_optional(model)),
            )
            await db.commit()

    async def get_guild_model(self, guild_id: str) -> str | None:
        return await self._get_default_model("guilds", str(guild_id))

    async def get_user_model(self, user_id: str) -> str | None:
        return await self._get_default_model("users", str(user_id))

    async def set_guild_model(self, guild_id: str, model: str | None) -> None:
        await self._set_default_model("guilds", str(guild_id), model)

    async def set_user_model(self, user_id: str, model: str | None) -> None:
        await self._set_default_model("users", str(user_id), model)

    async def resolve_model(self, guild_id: str, user_id: str, fallback: str) -> str:
        async with _sqlite_connection(self.db_path) as db:
            async with db.execute(
                """
                SELECT
                    (SELECT default_model FROM users WHERE id = ?),
                    (SELECT default_model FROM guilds WHERE id = ?)
                """,
                (str(user_id), str(guild_id)),
            ) as cursor:
                row = await cursor.fetchone()
        user_model, guild_model = (row[0], row[1]) if row else (None, None)
        return pick_model(user_model, guild_model, fallback)
