from __future__ import annotations

import sys
from datetime import datetime, timezone
from pathlib import Path


PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from nanogpt_bot.discord.common import (  # noqa: E402
    chat_footer,
    format_history,
    guild_key,
    merge_context_choices,
    numbered_footers,
    sanitize_filename,
    truncate,
    web_search_mode,
)
from nanogpt_bot.prompts import build_chat_messages, build_system_prompt  # noqa: E402
from nanogpt_bot.storage.models import ContextRecord  # noqa: E402


def _record(name: str, user_id: str | None = None, content: str = "body") -> ContextRecord:
    return ContextRecord(
        id=1,
        guild_id="g1",
        user_id=user_id,
        name=name,
        content=content,
        source_filename=f"{name}.txt",
        file_type="txt",
        created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )


def test_system_prompt_embeds_context() -> None:
    prompt = build_system_prompt("Be helpful.", _record("rules", content="No spam."))
    assert prompt == "Be helpful.\n\n--- CONTEXT: rules (rules.txt) ---\nNo spam."
    assert build_system_prompt("Be helpful.") == "Be helpful."


def test_chat_messages_order_history_between_system_and_user() -> None:
    history = [{"role": "user", "content": "hi"}, {"role": "assistant", "content": "hello"}]
    messages = build_chat_messages("sys", "next", history=history, image_data_url="data:image/png;base64,AAA")

    assert [message["role"] for message in messages] == ["system", "user", "assistant", "user"]
    last = messages[-1]["content"]
    assert last[0] == {"type": "text", "text": "next"}
    assert last[1]["image_url"]["url"] == "data:image/png;base64,AAA"


def test_merge_context_choices_prefers_personal() -> None:
    personal = [_record("notes", "u1"), _record("draft", "u1")]
    server = [_record("notes"), _record("rules")]

    choices = merge_context_choices(personal, server)
    assert [choice.label for choice in choices] == ["notes (personal)", "draft (personal)", "rules (server)"]

    filtered = merge_context_choices(personal, server, query="RUL")
    assert [choice.name for choice in filtered] == ["rules"]


def test_small_helpers() -> None:
    assert guild_key(None) == "dm"
    assert guild_key(123) == "123"
    assert web_search_mode(True, True) == "deep"
    assert web_search_mode(True, False) == "standard"
    assert web_search_mode(False, False) == "none"
    assert truncate("abcdef", 3) == "abc..."
    assert chat_footer("m", "standard", memory=True) == "Model: m | Memory | Web Search"
    assert numbered_footers("f", 1) == ["f"]
    assert numbered_footers("f", 2) == ["f (1/2)", "f (2/2)"]
    assert sanitize_filename('a/b: "c" d') == "ab_c_d"
    assert sanitize_filename("???") == "scraped"


def test_format_history() -> None:
    text = format_history([{"role": "user", "content": "hi"}, {"role": "assistant", "content": "x" * 5}], 3)
    assert text == "**You:** hi\n\n**AI:** xxx..."
