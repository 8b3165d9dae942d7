from __future__ import annotations

from .contexts import ContextsMixin
from .memory import MemoryLedgerMixin
from .preferences import PreferencesMixin
from .schema import StoreSchemaMixin
from .utils import _sqlite_connection


class BotStore(
    StoreSchemaMixin,
    PreferencesMixin,
    ContextsMixin,
    MemoryLedgerMixin,
):
    """Persistent bot state: model preferences, document contexts and per-user conversation memory."""

    backend_name = "sqlite"

    async def ping(self) -> None:
        async with _sqlite_connection(self.db_path) as db:
            await db.execute("SELECT 1")
