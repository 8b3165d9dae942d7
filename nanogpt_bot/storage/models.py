from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(slots=True, frozen=True)
class ContextRecord:
    id: int
    guild_id: str
    user_id: str | None
    name: str
    content: str
    source_filename: str
    file_type: str
    created_at: datetime | None

    @property
    def scope(self) -> str:
        return "personal" if self.user_id else "server"


@dataclass(slots=True, frozen=True)
class MemoryStats:
    count: int
    first_at: datetime | None
    last_at: datetime | None
