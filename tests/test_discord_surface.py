from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from types import SimpleNamespace

import pytest


PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

pytest.importorskip("discord")

from nanogpt_bot.discord.commands.help import HELP_SECTIONS, build_help_embed  # noqa: E402
from nanogpt_bot.discord.commands.memory import _discord_timestamp  # noqa: E402
from nanogpt_bot.config import FeatureAccess  # noqa: E402


def test_help_embed_lists_every_section() -> None:
    embed = build_help_embed()
    assert [field.name for field in embed.fields] == [name for name, _ in HELP_SECTIONS]


def test_discord_timestamp_handles_missing_values() -> None:
    assert _discord_timestamp(None) == "N/A"


class FakeResponse:
    def __init__(self) -> None:
        self.deferred = False
        self.sent: list[str] = []

    async def defer(self, **kwargs) -> None:
        self.deferred = True

    async def send_message(self, content, **kwargs) -> None:
        self.sent.append(content)


class FakeFollowup:
    def __init__(self) -> None:
        self.embeds = []

    async def send(self, **kwargs) -> None:
        self.embeds.append(kwargs.get("embed"))


class FakeInteraction:
    def __init__(self, user_id: int = 11, guild_id: int | None = 22) -> None:
        self.user = SimpleNamespace(id=user_id)
        self.guild_id = guild_id
        self.response = FakeResponse()
        self.followup = FakeFollowup()
        self.edits: list[dict] = []

    async def edit_original_response(self, **kwargs) -> None:
        self.edits.append(kwargs)


class FakeApi:
    def __init__(self, reply: str = "", error: Exception | None = None) -> None:
        self.reply = reply
        self.error = error
        self.calls: list[tuple] = []

    async def chat(self, messages, model, web_search="none"):
        self.calls.append((messages, model, web_search))
        if self.error is not None:
            raise self.error
        return self.reply


def _bot(tmp_path: Path, api: FakeApi, **overrides):
    from nanogpt_bot.storage import BotStore

    store = BotStore(tmp_path / "bot.db")
    asyncio.run(store.init())
    settings = SimpleNamespace(
        system_prompt="sys",
        default_model="gpt-4o-mini",
        memory_history_limit=50,
        max_response_chars=100,
        admin_user_ids=set(),
        feature_access=lambda feature: overrides.get(feature, FeatureAccess.ENABLED),
    )
    return SimpleNamespace(settings=settings, store=store, api=api)


def _run(bot, interaction, **kwargs) -> None:
    from nanogpt_bot.discord.commands.chat import run_chat

    options = dict(
        message="hello",
        context_name=None,
        model_override=None,
        websearch=False,
        deepsearch=False,
        image=None,
        use_memory=True,
    )
    options.update(kwargs)
    asyncio.run(run_chat(bot, interaction, **options))


def test_memory_chat_records_both_turns_after_reply(tmp_path: Path) -> None:
    api = FakeApi(reply="x" * 150)
    bot = _bot(tmp_path, api)
    interaction = FakeInteraction()

    _run(bot, interaction)

    history = asyncio.run(bot.store.get_memory_history("11", 10))
    assert history == [{"role": "user", "content": "hello"}, {"role": "assistant", "content": "x" * 150}]
    assert api.calls[0][1] == "gpt-4o-mini"
    assert interaction.edits[0]["embed"].footer.text == "Model: gpt-4o-mini | Memory (1/2)"
    assert len(interaction.followup.embeds) == 1


def test_failed_chat_leaves_memory_untouched(tmp_path: Path) -> None:
    from nanogpt_bot.services.nanogpt_client import NanoGPTError

    bot = _bot(tmp_path, FakeApi(error=NanoGPTError("down", 503)))

    with pytest.raises(NanoGPTError):
        _run(bot, FakeInteraction())
    assert asyncio.run(bot.store.get_memory_history("11", 10)) == []


def test_disabled_search_is_refused_before_deferring(tmp_path: Path) -> None:
    api = FakeApi(reply="unused")
    bot = _bot(tmp_path, api, websearch=FeatureAccess.DISABLED)
    interaction = FakeInteraction()

    _run(bot, interaction, websearch=True)

    assert interaction.response.sent == ["The websearch feature is currently disabled."]
    assert not interaction.response.deferred
    assert api.calls == []


def test_unknown_context_is_reported(tmp_path: Path) -> None:
    api = FakeApi(reply="unused")
    bot = _bot(tmp_path, api)
    interaction = FakeInteraction()

    _run(bot, interaction, context_name="missing", use_memory=False)

    assert "not found" in interaction.edits[0]["content"]
    assert api.calls == []


def test_user_preference_and_context_flow_into_request(tmp_path: Path) -> None:
    api = FakeApi(reply="ok")
    bot = _bot(tmp_path, api)

    async def seed() -> None:
        await bot.store.set_user_model("11", "claude")
        await bot.store.add_context("22", "rules", "No spam.", "rules.txt", "txt")

    asyncio.run(seed())
    _run(bot, FakeInteraction(), context_name="rules", use_memory=False, deepsearch=True)

    messages, model, web_search = api.calls[0]
    assert model == "claude"
    assert web_search == "deep"
    assert messages[0]["content"].endswith("--- CONTEXT: rules (rules.txt) ---\nNo spam.")
