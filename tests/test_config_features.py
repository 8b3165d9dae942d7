from __future__ import annotations

import sys
from pathlib import Path

import pytest


PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from nanogpt_bot.config import FeatureAccess, Settings  # noqa: E402
from nanogpt_bot.features import check_feature  # noqa: E402


def _settings(**overrides) -> Settings:
    values = dict(
        discord_token="token",
        dev_guild_id=None,
        nanogpt_api_key="key",
        nanogpt_base_url="https://nano-gpt.com/api",
        nanogpt_timeout_seconds=120,
        nanogpt_temperature=0.7,
        nanogpt_max_tokens=4000,
        default_model="gpt-4o-mini",
        default_image_model="hidream",
        system_prompt="You are a helpful AI assistant.",
        sqlite_path=Path("./data/bot.db"),
        memory_history_limit=50,
        max_response_chars=4000,
        model_cache_ttl_seconds=300,
    )
    values.update(overrides)
    return Settings(**values)


def test_feature_access_parse() -> None:
    assert FeatureAccess.parse("true") is FeatureAccess.DISABLED
    assert FeatureAccess.parse(" ADMIN ") is FeatureAccess.ADMIN_ONLY
    assert FeatureAccess.parse("false") is FeatureAccess.ENABLED
    assert FeatureAccess.parse(None) is FeatureAccess.ENABLED
    assert FeatureAccess.parse("maybe") is FeatureAccess.ENABLED


def test_from_env_reads_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DISCORD_TOKEN", "Bot abc123")
    monkeypatch.setenv("NANOGPT_API_KEY", "secret")
    monkeypatch.setenv("DEFAULT_MODEL", "claude-3-haiku")
    monkeypatch.setenv("MEMORY_HISTORY_LIMIT", "not-a-number")
    monkeypatch.setenv("CONTEXT_ADMIN_USERS", "1, 2,,3")
    monkeypatch.setenv("DISABLE_IMAGEGEN", "true")
    monkeypatch.setenv("DISABLE_SCRAPE", "admin")
    monkeypatch.delenv("DISABLE_WEBSEARCH", raising=False)
    monkeypatch.setenv("DISCORD_DEV_GUILD_ID", "42")

    settings = Settings.from_env()

    assert settings.discord_token == "abc123"
    assert settings.nanogpt_api_key == "secret"
    assert settings.default_model == "claude-3-haiku"
    assert settings.memory_history_limit == 50
    assert settings.admin_user_ids == {"1", "2", "3"}
    assert settings.dev_guild_id == 42
    assert settings.feature_access("imagegen") is FeatureAccess.DISABLED
    assert settings.feature_access("scrape") is FeatureAccess.ADMIN_ONLY
    assert settings.feature_access("websearch") is FeatureAccess.ENABLED


@pytest.mark.parametrize(
    "overrides",
    [
        {"discord_token": ""},
        {"nanogpt_api_key": ""},
        {"nanogpt_timeout_seconds": 5},
        {"nanogpt_temperature": 2.5},
        {"max_response_chars": 5000},
        {"memory_history_limit": 0},
    ],
)
def test_validate_rejects_bad_settings(overrides) -> None:
    with pytest.raises(ValueError):
        _settings(**overrides).validate()


def test_validate_accepts_defaults() -> None:
    _settings().validate()


def test_check_feature_gates() -> None:
    settings = _settings(
        admin_user_ids={"7"},
        features={
            "websearch": FeatureAccess.ENABLED,
            "deepsearch": FeatureAccess.DISABLED,
            "imagegen": FeatureAccess.ADMIN_ONLY,
        },
    )

    assert check_feature(settings, "websearch", "1").allowed
    assert check_feature(settings, "scrape", "1").allowed

    disabled = check_feature(settings, "deepsearch", "7")
    assert not disabled.allowed
    assert "disabled" in disabled.reason

    assert check_feature(settings, "imagegen", "7").allowed
    assert check_feature(settings, "imagegen", "1", is_admin=True).allowed
    denied = check_feature(settings, "imagegen", "1")
    assert not denied.allowed
    assert "administrators" in denied.reason
