from __future__ import annotations

from typing import Any, Dict, List, Sequence

from .storage.models import ContextRecord


def build_system_prompt(system_prompt: str, context: ContextRecord | None = None) -> str:
    if context is None:
        return system_prompt
    source = context.source_filename or context.name
    return f"{system_prompt}\n\n--- CONTEXT: {context.name} ({source}) ---\n{context.content}"


def build_user_content(text: str, image_data_url: str | None = None) -> str | List[Dict[str, Any]]:
    if not image_data_url:
        return text
    return [
        {"type": "text", "text": text},
        {"type": "image_url", "image_url": {"url": image_data_url}},
    ]


def build_chat_messages(
    system_prompt: str,
    user_text: str,
    *,
    context: ContextRecord | None = None,
    history: Sequence[Dict[str, str]] = (),
    image_data_url: str | None = None,
) -> List[Dict[str, Any]]:
    messages: List[Dict[str, Any]] = [{"role": "system", "content": build_system_prompt(system_prompt, context)}]
    for turn in history:
        messages.append({"role": turn["role"], "content": turn["content"]})
    messages.append({"role": "user", "content": build_user_content(user_text, image_data_url)})
    return messages
