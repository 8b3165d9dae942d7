from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List

import discord
from discord import app_commands

from ...segmenter import segment_response
from ..common import filter_choices, guild_key
from ..interactions import is_admin

if TYPE_CHECKING:
    from ..client import NanoGPTDiscordBot

RESET_KEYWORDS = frozenset({"default", "reset", "none"})
SCOPE_CHOICES = [
    app_commands.Choice(name="Just me", value="user"),
    app_commands.Choice(name="Whole server", value="server"),
]


async def model_autocomplete(interaction: discord.Interaction, current: str) -> List[app_commands.Choice[str]]:
    bot: NanoGPTDiscordBot = interaction.client  # type: ignore[assignment]
    models = await bot.model_cache.get()
    return [app_commands.Choice(name=model[:100], value=model[:100]) for model in filter_choices(models, current)]


def format_usage_window(window: Dict[str, Any] | None) -> str:
    if not window:
        return "N/A"
    used = window.get("used", 0)
    remaining = window.get("remaining", 0)
    percent = float(window.get("percentUsed", 0) or 0)
    return f"{used} used / {remaining} left ({percent:.1f}%)"


def register(bot: "NanoGPTDiscordBot") -> None:
    @bot.tree.command(name="setmodel", description="Set the default AI model")
    @app_commands.describe(
        model="The model to use (use 'default' to clear your preference)",
        scope="Apply to yourself (default) or the entire server",
    )
    @app_commands.choices(scope=SCOPE_CHOICES)
    @app_commands.autocomplete(model=model_autocomplete)
    async def setmodel(
        interaction: discord.Interaction,
        model: str,
        scope: app_commands.Choice[str] | None = None,
    ) -> None:
        server_scope = scope is not None and scope.value == "server"
        if server_scope and interaction.guild_id is None:
            await interaction.response.send_message("Server defaults can only be set inside a server.", ephemeral=True)
            return
        if server_scope and not is_admin(interaction, bot.settings):
            await interaction.response.send_message("Only administrators can change the server model.", ephemeral=True)
            return

        selected = model.strip()
        cleared = selected.casefold() in RESET_KEYWORDS
        await interaction.response.defer(ephemeral=True, thinking=True)
        if server_scope:
            await bot.store.set_guild_model(guild_key(interaction.guild_id), None if cleared else selected)
            target = "this server"
        else:
            await bot.store.set_user_model(str(interaction.user.id), None if cleared else selected)
            target = "you"

        if cleared:
            effective = await bot.store.resolve_model(
                guild_key(interaction.guild_id),
                str(interaction.user.id),
                bot.settings.default_model,
            )
            await interaction.edit_original_response(
                content=f"Cleared the default model for {target}. Your effective model is now `{effective}`."
            )
            return
        await interaction.edit_original_response(content=f"Default model for {target} set to `{selected}`.")

    @bot.tree.command(name="models", description="List available AI models")
    async def models(interaction: discord.Interaction) -> None:
        await interaction.response.defer(ephemeral=True, thinking=True)
        available = await bot.model_cache.get()
        if not available:
            await interaction.edit_original_response(content="No models are available right now.")
            return
        current = await bot.store.resolve_model(
            guild_key(interaction.guild_id),
            str(interaction.user.id),
            bot.settings.default_model,
        )
        listing = "\n".join(f"`{model}`" for model in available)
        chunks = segment_response(listing, bot.settings.max_response_chars)
        for index, chunk in enumerate(chunks):
            embed = discord.Embed(title="Available Models" if index == 0 else None, description=chunk)
            embed.set_footer(text=f"{len(available)} models | Your default: {current}")
            if index == 0:
                await interaction.edit_original_response(embed=embed)
            else:
                await interaction.followup.send(embed=embed, ephemeral=True)

    @bot.tree.command(name="usage", description="Check NanoGPT API usage (daily and monthly limits)")
    async def usage(interaction: discord.Interaction) -> None:
        await interaction.response.defer(ephemeral=True, thinking=True)
        data = await bot.api.get_usage()
        embed = discord.Embed(title="NanoGPT Usage", timestamp=discord.utils.utcnow())
        embed.add_field(name="State", value=str(data.get("state", "unknown")), inline=True)
        embed.add_field(name="Active", value="Yes" if data.get("active") else "No", inline=True)
        embed.add_field(name="Daily", value=format_usage_window(data.get("daily")), inline=False)
        embed.add_field(name="Monthly", value=format_usage_window(data.get("monthly")), inline=False)
        limits = data.get("limits") or {}
        if limits:
            embed.set_footer(text=f"Limits: {limits.get('daily', '?')}/day, {limits.get('monthly', '?')}/month")
        await interaction.edit_original_response(embed=embed)
