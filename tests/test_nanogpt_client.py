from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import pytest


PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from nanogpt_bot.services.nanogpt_client import NanoGPTClient, model_with_web_search  # noqa: E402


def _client() -> NanoGPTClient:
    return NanoGPTClient(api_key="key", timeout_seconds=30, temperature=0.5, max_tokens=100)


def test_model_with_web_search() -> None:
    assert model_with_web_search("gpt-4o", "none") == "gpt-4o"
    assert model_with_web_search("gpt-4o", "standard") == "gpt-4o:online"
    assert model_with_web_search("gpt-4o", "deep") == "gpt-4o:online/linkup-deep"


def test_extract_text_and_model_ids() -> None:
    assert NanoGPTClient._extract_text({"choices": [{"message": {"content": "  hi  "}}]}) == "hi"
    assert NanoGPTClient._extract_text({"choices": []}) == ""
    assert NanoGPTClient._model_ids({"data": [{"id": "a"}, {"name": "b"}, {"id": ""}, "junk"]}) == ["a", "b"]
    assert NanoGPTClient._model_ids([{"id": "c"}]) == ["c"]
    assert NanoGPTClient._model_ids(None) == []


def test_chat_builds_payload(monkeypatch: pytest.MonkeyPatch) -> None:
    client = _client()
    captured = {}

    async def fake_request(method, endpoint, payload=None, retries=3):
        captured.update(method=method, endpoint=endpoint, payload=payload)
        return {"choices": [{"message": {"content": "answer"}}]}

    monkeypatch.setattr(client, "_request", fake_request)
    messages = [{"role": "user", "content": "q"}]
    reply = asyncio.run(client.chat(messages, "gpt-4o", web_search="deep"))

    assert reply == "answer"
    assert captured["method"] == "POST"
    assert captured["endpoint"] == "/v1/chat/completions"
    assert captured["payload"]["model"] == "gpt-4o:online/linkup-deep"
    assert captured["payload"]["temperature"] == 0.5
    assert captured["payload"]["max_tokens"] == 100
    assert captured["payload"]["messages"] == messages


def test_chat_rejects_unknown_search_mode() -> None:
    with pytest.raises(ValueError):
        asyncio.run(_client().chat([], "gpt-4o", web_search="turbo"))


def test_generate_image_drops_unset_options(monkeypatch: pytest.MonkeyPatch) -> None:
    client = _client()
    captured = {}

    async def fake_request(method, endpoint, payload=None, retries=3):
        captured.update(payload=payload, retries=retries)
        return {"data": [{"url": "https://example.invalid/x.png"}]}

    monkeypatch.setattr(client, "_request", fake_request)
    asyncio.run(client.generate_image("a cat", "hidream", size="512x512", seed=7))

    assert captured["retries"] == 1
    assert captured["payload"] == {
        "prompt": "a cat",
        "model": "hidream",
        "n": 1,
        "response_format": "url",
        "size": "512x512",
        "seed": 7,
    }
