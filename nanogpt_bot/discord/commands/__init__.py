from __future__ import annotations

from typing import TYPE_CHECKING

from . import chat, context, help, media, memory, models

if TYPE_CHECKING:
    from ..client import NanoGPTDiscordBot

COMMAND_MODULES = (chat, memory, context, models, media, help)


def register_all(bot: "NanoGPTDiscordBot") -> None:
    for module in COMMAND_MODULES:
        module.register(bot)
