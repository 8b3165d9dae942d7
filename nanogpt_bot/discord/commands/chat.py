from __future__ import annotations

import logging
from typing import TYPE_CHECKING, List

import discord
from discord import app_commands

from ...prompts import build_chat_messages
from ..common import VALID_IMAGE_TYPES, chat_footer, guild_key, merge_context_choices, web_search_mode
from ..interactions import attachment_to_data_url, feature_check, send_segmented_reply

if TYPE_CHECKING:
    from ..client import NanoGPTDiscordBot

logger = logging.getLogger("nanogpt_bot")

NO_RESPONSE_TEXT = "No response received."


async def context_autocomplete(interaction: discord.Interaction, current: str) -> List[app_commands.Choice[str]]:
    bot: NanoGPTDiscordBot = interaction.client  # type: ignore[assignment]
    gkey = guild_key(interaction.guild_id)
    user_key = str(interaction.user.id)
    personal = await bot.store.list_contexts(gkey, user_key)
    server = await bot.store.list_contexts(gkey)
    return [
        app_commands.Choice(name=choice.label, value=choice.name)
        for choice in merge_context_choices(personal, server, current)
    ]


async def run_chat(
    bot: "NanoGPTDiscordBot",
    interaction: discord.Interaction,
    *,
    message: str,
    context_name: str | None,
    model_override: str | None,
    websearch: bool,
    deepsearch: bool,
    image: discord.Attachment | None,
    use_memory: bool,
) -> None:
    settings = bot.settings
    for enabled, feature in ((websearch, "websearch"), (deepsearch, "deepsearch")):
        if not enabled:
            continue
        check = feature_check(interaction, settings, feature)
        if not check.allowed:
            await interaction.response.send_message(check.reason, ephemeral=True)
            return

    await interaction.response.defer(thinking=True)

    gkey = guild_key(interaction.guild_id)
    user_key = str(interaction.user.id)
    model = (model_override or "").strip() or await bot.store.resolve_model(gkey, user_key, settings.default_model)
    search_mode = web_search_mode(websearch, deepsearch)

    context = None
    if context_name:
        context = await bot.store.get_context(gkey, context_name, user_key)
        if context is None:
            await interaction.edit_original_response(
                content=f'Context "{context_name}" not found. Use /context list to see available contexts.'
            )
            return

    image_data_url = None
    if image is not None:
        image_data_url = await attachment_to_data_url(image)
        if image_data_url is None:
            await interaction.edit_original_response(
                content=f"Invalid image format. Supported formats: {', '.join(VALID_IMAGE_TYPES)}"
            )
            return

    history = await bot.store.get_memory_history(user_key, settings.memory_history_limit) if use_memory else []
    messages = build_chat_messages(
        settings.system_prompt,
        message,
        context=context,
        history=history,
        image_data_url=image_data_url,
    )

    reply = await bot.api.chat(messages, model, web_search=search_mode) or NO_RESPONSE_TEXT
    if use_memory:
        # Only the text of the user turn is remembered, never the image payload.
        await bot.store.append_exchange(user_key, message, reply, model)
    logger.info(
        "Chat reply user=%s guild=%s model=%s memory=%s search=%s chars=%s",
        user_key,
        gkey,
        model,
        use_memory,
        search_mode,
        len(reply),
    )

    footer = chat_footer(model, search_mode, memory=use_memory, image=image is not None)
    await send_segmented_reply(interaction, reply, footer, settings.max_response_chars)


def register(bot: "NanoGPTDiscordBot") -> None:
    @bot.tree.command(name="chat", description="Chat with the AI")
    @app_commands.describe(
        message="Your message to the AI",
        context="Name of a saved context to include",
        model="Model to use for this message (overrides default)",
        websearch="Enable web search for real-time info",
        deepsearch="Enable deep web search for comprehensive info",
        image="Image to analyze (png, jpg, jpeg, webp)",
    )
    @app_commands.autocomplete(context=context_autocomplete)
    async def chat(
        interaction: discord.Interaction,
        message: str,
        context: str | None = None,
        model: str | None = None,
        websearch: bool = False,
        deepsearch: bool = False,
        image: discord.Attachment | None = None,
    ) -> None:
        await run_chat(
            bot,
            interaction,
            message=message,
            context_name=context,
            model_override=model,
            websearch=websearch,
            deepsearch=deepsearch,
            image=image,
            use_memory=False,
        )
