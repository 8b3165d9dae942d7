from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Set

from dotenv import load_dotenv


load_dotenv()


class FeatureAccess(str, Enum):
    ENABLED = "enabled"
    DISABLED = "disabled"
    ADMIN_ONLY = "admin"

    @classmethod
    def parse(cls, raw: str | None) -> "FeatureAccess":
        value = (raw or "").strip().lower()
        if value == "true":
            return cls.DISABLED
        if value == "admin":
            return cls.ADMIN_ONLY
        # "false", empty and unknown values keep the feature on.
        return cls.ENABLED


GATED_FEATURES = ("websearch", "deepsearch", "imagegen", "scrape")


def _env_lookup(name: str, aliases: tuple[str, ...] = ()) -> str | None:
    for key in (name, *aliases):
        # Be tolerant to UTF-8 BOM accidentally saved in .env key names.
        for candidate in (key, f"\ufeff{key}"):
            raw = os.getenv(candidate)
            if raw is not None:
                return raw
    return None


def _env_int(name: str, default: int, aliases: tuple[str, ...] = ()) -> int:
    raw = _env_lookup(name, aliases)
    if raw is None:
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


def _env_float(name: str, default: float, aliases: tuple[str, ...] = ()) -> float:
    raw = _env_lookup(name, aliases)
    if raw is None:
        return default
    try:
        return float(raw.strip())
    except ValueError:
        return default


def _env_str(name: str, default: str, aliases: tuple[str, ...] = ()) -> str:
    raw = _env_lookup(name, aliases)
    if raw is None:
        return default
    value = raw.strip()
    return value if value else default


def _env_str_set(name: str, aliases: tuple[str, ...] = ()) -> Set[str]:
    raw = (_env_lookup(name, aliases) or "").strip()
    if not raw:
        return set()
    return {chunk.strip() for chunk in raw.split(",") if chunk.strip()}


def _env_optional_int(name: str) -> int | None:
    raw = (_env_lookup(name) or "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


def _clean_token(value: str) -> str:
    cleaned = value.strip()
    if cleaned.lower().startswith("bot "):
        cleaned = cleaned[4:].strip()
    if (cleaned.startswith('"') and cleaned.endswith('"')) or (
        cleaned.startswith("'") and cleaned.endswith("'")
    ):
        cleaned = cleaned[1:-1].strip()
    return cleaned


def _feature_flags() -> Dict[str, FeatureAccess]:
    return {name: FeatureAccess.parse(_env_lookup(f"DISABLE_{name.upper()}")) for name in GATED_FEATURES}


@dataclass(slots=True)
class Settings:
    discord_token: str
    dev_guild_id: int | None

    nanogpt_api_key: str
    nanogpt_base_url: str
    nanogpt_timeout_seconds: int
    nanogpt_temperature: float
    nanogpt_max_tokens: int

    default_model: str
    default_image_model: str
    system_prompt: str

    sqlite_path: Path
    memory_history_limit: int
    max_response_chars: int
    model_cache_ttl_seconds: int

    admin_user_ids: Set[str] = field(default_factory=set)
    features: Dict[str, FeatureAccess] = field(default_factory=dict)
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            discord_token=_clean_token(_env_lookup("DISCORD_TOKEN") or ""),
            dev_guild_id=_env_optional_int("DISCORD_DEV_GUILD_ID"),
            nanogpt_api_key=_env_str("NANOGPT_API_KEY", ""),
            nanogpt_base_url=_env_str("NANOGPT_BASE_URL", "https://nano-gpt.com/api"),
            nanogpt_timeout_seconds=_env_int("NANOGPT_TIMEOUT_SECONDS", 120),
            nanogpt_temperature=_env_float("NANOGPT_TEMPERATURE", 0.7),
            nanogpt_max_tokens=_env_int("NANOGPT_MAX_TOKENS", 4000),
            default_model=_env_str("DEFAULT_MODEL", "gpt-4o-mini"),
            default_image_model=_env_str("DEFAULT_IMAGE_MODEL", "hidream"),
            system_prompt=_env_str("SYSTEM_PROMPT", "You are a helpful AI assistant."),
            sqlite_path=Path(_env_str("DATABASE_PATH", "./data/bot.db", aliases=("SQLITE_PATH",))).expanduser(),
            memory_history_limit=_env_int("MEMORY_HISTORY_LIMIT", 50),
            max_response_chars=_env_int("MAX_RESPONSE_CHARS", 4000),
            model_cache_ttl_seconds=_env_int("MODEL_CACHE_TTL_SECONDS", 300),
            admin_user_ids=_env_str_set("CONTEXT_ADMIN_USERS"),
            features=_feature_flags(),
            log_level=_env_str("LOG_LEVEL", "INFO").upper(),
        )

    def feature_access(self, feature: str) -> FeatureAccess:
        return self.features.get(feature.lower(), FeatureAccess.ENABLED)

    def validate(self) -> None:
        if not self.discord_token:
            raise ValueError("DISCORD_TOKEN is required")
        if self.discord_token == "put_your_discord_bot_token_here":
            raise ValueError("DISCORD_TOKEN is still placeholder")

        if not self.nanogpt_api_key:
            raise ValueError("NANOGPT_API_KEY is required")
        if self.nanogpt_api_key == "put_your_nanogpt_api_key_here":
            raise ValueError("NANOGPT_API_KEY is still placeholder")
        if self.nanogpt_timeout_seconds < 10:
            raise ValueError("NANOGPT_TIMEOUT_SECONDS must be >= 10")
        if self.nanogpt_temperature < 0.0 or self.nanogpt_temperature > 2.0:
            raise ValueError("NANOGPT_TEMPERATURE must be in [0, 2]")
        if self.nanogpt_max_tokens < 1:
            raise ValueError("NANOGPT_MAX_TOKENS must be >= 1")

        if not self.default_model:
            raise ValueError("DEFAULT_MODEL cannot be empty")
        if self.memory_history_limit < 1:
            raise ValueError("MEMORY_HISTORY_LIMIT must be >= 1")
        # Discord caps embed descriptions at 4096 characters.
        if self.max_response_chars < 100 or self.max_response_chars > 4096:
            raise ValueError("MAX_RESPONSE_CHARS must be in [100, 4096]")
        if self.model_cache_ttl_seconds < 0:
            raise ValueError("MODEL_CACHE_TTL_SECONDS must be >= 0")
