from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, List

from ..storage.models import ContextRecord

DM_GUILD_KEY = "dm"
VALID_IMAGE_TYPES = ("image/png", "image/jpeg", "image/jpg", "image/webp")
AUTOCOMPLETE_LIMIT = 25


@dataclass(slots=True, frozen=True)
class ContextChoice:
    name: str
    label: str


def guild_key(guild_id: int | None) -> str:
    return str(guild_id) if guild_id is not None else DM_GUILD_KEY


def web_search_mode(websearch: bool, deepsearch: bool) -> str:
    if deepsearch:
        return "deep"
    if websearch:
        return "standard"
    return "none"


def merge_context_choices(
    personal: Iterable[ContextRecord],
    server: Iterable[ContextRecord],
    query: str = "",
    limit: int = AUTOCOMPLETE_LIMIT,
) -> List[ContextChoice]:
    """Merged autocomplete view: one entry per name, personal entries first."""
    needle = query.strip().casefold()
    seen: set[str] = set()
    choices: List[ContextChoice] = []
    for scope, records in (("personal", personal), ("server", server)):
        for record in records:
            if record.name in seen:
                continue
            seen.add(record.name)
            if needle and needle not in record.name.casefold():
                continue
            choices.append(ContextChoice(name=record.name, label=f"{record.name} ({scope})"))
    return choices[:limit]


def filter_choices(values: Iterable[str], query: str, limit: int = AUTOCOMPLETE_LIMIT) -> List[str]:
    needle = query.strip().casefold()
    return [value for value in values if needle in value.casefold()][:limit]


def truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


def chat_footer(model: str, web_search: str, *, memory: bool = False, image: bool = False) -> str:
    parts = [f"Model: {model}"]
    if memory:
        parts.append("Memory")
    if web_search == "standard":
        parts.append("Web Search")
    elif web_search == "deep":
        parts.append("Deep Search")
    if image:
        parts.append("Image")
    return " | ".join(parts)


def numbered_footers(footer: str, count: int) -> List[str]:
    if count <= 1:
        return [footer]
    return [f"{footer} ({index}/{count})" for index in range(1, count + 1)]


def format_history(history: Iterable[dict[str, str]], preview_chars: int = 200) -> str:
    lines = []
    for turn in history:
        prefix = "**You:**" if turn["role"] == "user" else "**AI:**"
        lines.append(f"{prefix} {truncate(turn['content'], preview_chars)}")
    return "\n\n".join(lines)


def sanitize_filename(name: str) -> str:
    cleaned = re.sub(r'[<>:"/\\|?*]', "", name)
    cleaned = re.sub(r"\s+", "_", cleaned)[:100]
    return cleaned or "scraped"


def sanitize_context_name(name: str) -> str:
    return " ".join(name.strip().split())[:100]
