from __future__ import annotations

from typing import TYPE_CHECKING

import discord

if TYPE_CHECKING:
    from ..client import NanoGPTDiscordBot

HELP_SECTIONS = (
    (
        "/chat",
        [
            "Chat with the AI assistant (no memory).",
            "**Options:** `message` (required), `context`, `model`, `websearch`, `deepsearch`, `image`",
        ],
    ),
    (
        "/memory",
        [
            "Chat with AI that remembers your conversation history.",
            "• `/memory chat` - Chat with persistent memory (same options as /chat)",
            "• `/memory view` - View recent conversation history",
            "• `/memory stats` - Show your memory statistics",
            "• `/memory clear` - Clear your conversation memory",
            "Memory follows you across every server.",
        ],
    ),
    (
        "/context",
        [
            "Manage document contexts for AI conversations.",
            "• `/context add` - Upload a document (PDF, TXT, MD, ...)",
            "• `/context list` - List saved contexts",
            "• `/context view` - View a context's content",
            "• `/context remove` - Remove a saved context",
            "**Scope:** personal (default) or server (shared, admins only). Personal contexts win on name clashes.",
        ],
    ),
    (
        "/setmodel",
        [
            "Set your default model, or the server default (admins).",
            "Your own choice beats the server default. Use `default` to clear it.",
        ],
    ),
    ("/models", ["List all available AI models."]),
    ("/usage", ["Check NanoGPT API usage (daily and monthly limits)."]),
    (
        "/imagine",
        [
            "Generate images using AI.",
            "**Options:** `prompt` (required), `model`, `size`, `guidance`, `steps`, `seed`, `image`, `strength`",
        ],
    ),
    ("/scrape", ["Scrape up to five web pages, optionally as downloadable markdown."]),
)


def build_help_embed() -> discord.Embed:
    embed = discord.Embed(
        title="NanoGPT Bot Help",
        description="A Discord bot powered by the NanoGPT API for AI conversations with document context support.",
        timestamp=discord.utils.utcnow(),
    )
    for name, lines in HELP_SECTIONS:
        embed.add_field(name=name, value="\n".join(lines), inline=False)
    embed.set_footer(text="Tip: Use /memory for persistent conversations, or /chat for stateless queries!")
    return embed


def register(bot: "NanoGPTDiscordBot") -> None:
    @bot.tree.command(name="help", description="Show all available commands and how to use them")
    async def help_command(interaction: discord.Interaction) -> None:
        await interaction.response.send_message(embed=build_help_embed(), ephemeral=True)
