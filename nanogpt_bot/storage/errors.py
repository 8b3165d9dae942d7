from __future__ import annotations


class StoreError(Exception):
    """Base class for failures surfaced by the bot store."""


class StoreUnavailableError(StoreError):
    """The SQLite layer itself failed (disk, lock, corruption)."""


class ContextConflictError(StoreError):
    def __init__(self, guild_id: str, name: str, user_id: str | None = None) -> None:
        self.guild_id = guild_id
        self.name = name
        self.user_id = user_id
        scope = "personal" if user_id else "server"
        super().__init__(f"A {scope} context named {name!r} already exists in guild {guild_id}")

    @property
    def scope(self) -> str:
        return "personal" if self.user_id else "server"
