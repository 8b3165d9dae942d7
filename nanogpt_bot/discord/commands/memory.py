from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

import discord
from discord import app_commands

from ..common import format_history
from .chat import context_autocomplete, run_chat

if TYPE_CHECKING:
    from ..client import NanoGPTDiscordBot

EMPTY_MEMORY_TEXT = "Your memory is empty. Use `/memory chat` to start a conversation."


def _discord_timestamp(value: datetime | None) -> str:
    if value is None:
        return "N/A"
    return f"<t:{int(value.timestamp())}:R>"


def register(bot: "NanoGPTDiscordBot") -> None:
    group = app_commands.Group(name="memory", description="Chat with AI that remembers your conversation history")

    @group.command(name="chat", description="Chat with AI using your conversation memory")
    @app_commands.describe(
        message="Your message to the AI",
        context="Name of a saved context to include",
        model="Model to use for this message (overrides default)",
        websearch="Enable web search for real-time info",
        deepsearch="Enable deep web search for comprehensive info",
        image="Image to analyze (png, jpg, jpeg, webp)",
    )
    @app_commands.autocomplete(context=context_autocomplete)
    async def memory_chat(
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
            use_memory=True,
        )

    @group.command(name="clear", description="Clear your conversation memory")
    async def memory_clear(interaction: discord.Interaction) -> None:
        await interaction.response.defer(ephemeral=True, thinking=True)
        deleted = await bot.store.clear_memory(str(interaction.user.id))
        if deleted == 0:
            await interaction.edit_original_response(content="Your memory is already empty.")
            return
        await interaction.edit_original_response(content=f"Cleared **{deleted}** messages from your memory.")

    @group.command(name="view", description="View your recent conversation history")
    @app_commands.describe(count="Number of messages to show (default: 10)")
    async def memory_view(
        interaction: discord.Interaction,
        count: app_commands.Range[int, 1, 50] = 10,
    ) -> None:
        await interaction.response.defer(ephemeral=True, thinking=True)
        history = await bot.store.get_memory_history(str(interaction.user.id), count)
        if not history:
            await interaction.edit_original_response(content=EMPTY_MEMORY_TEXT)
            return
        embed = discord.Embed(
            title="Conversation Memory",
            description=format_history(history)[:4000],
            timestamp=discord.utils.utcnow(),
        )
        embed.set_footer(text=f"Showing {len(history)} message(s)")
        await interaction.edit_original_response(embed=embed)

    @group.command(name="stats", description="View your memory statistics")
    async def memory_stats(interaction: discord.Interaction) -> None:
        await interaction.response.defer(ephemeral=True, thinking=True)
        stats = await bot.store.get_memory_stats(str(interaction.user.id))
        if stats.count == 0:
            await interaction.edit_original_response(content=EMPTY_MEMORY_TEXT)
            return
        embed = discord.Embed(title="Memory Statistics", timestamp=discord.utils.utcnow())
        embed.add_field(name="Total Messages", value=str(stats.count), inline=True)
        embed.add_field(name="First Message", value=_discord_timestamp(stats.first_at), inline=True)
        embed.add_field(name="Last Message", value=_discord_timestamp(stats.last_at), inline=True)
        embed.set_footer(text="Memory is global and shared across all servers")
        await interaction.edit_original_response(embed=embed)

    bot.tree.add_command(group)
