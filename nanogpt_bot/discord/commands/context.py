from __future__ import annotations

import logging
from pathlib import PurePath
from typing import TYPE_CHECKING

import discord
from discord import app_commands

from ...services.documents import SUPPORTED_EXTENSIONS, DocumentError, is_supported_file, parse_document
from ...storage import ContextConflictError
from ..common import guild_key, sanitize_context_name, truncate
from ..interactions import is_admin
from .chat import context_autocomplete

if TYPE_CHECKING:
    from ..client import NanoGPTDiscordBot

logger = logging.getLogger("nanogpt_bot")

MAX_CONTEXT_FILE_BYTES = 10 * 1024 * 1024
SCOPE_CHOICES = [
    app_commands.Choice(name="Personal (only you)", value="user"),
    app_commands.Choice(name="Server (shared)", value="server"),
]


def _scope_owner(interaction: discord.Interaction, scope: app_commands.Choice[str] | None) -> str | None:
    if scope is not None and scope.value == "server":
        return None
    return str(interaction.user.id)


def _scope_label(owner: str | None) -> str:
    return "personal" if owner else "server"


def register(bot: "NanoGPTDiscordBot") -> None:
    group = app_commands.Group(name="context", description="Manage document contexts for AI conversations")

    async def _deny_server_write(interaction: discord.Interaction, owner: str | None) -> bool:
        if owner is not None:
            return False
        if interaction.guild_id is None:
            await interaction.response.send_message("Server contexts can only be managed inside a server.", ephemeral=True)
            return True
        if not is_admin(interaction, bot.settings):
            await interaction.response.send_message(
                "Only administrators can manage server contexts. Use the personal scope instead.",
                ephemeral=True,
            )
            return True
        return False

    @group.command(name="add", description="Upload a document as a reusable context")
    @app_commands.describe(
        file="Document to upload (PDF, TXT, MD, ...)",
        name="Name for this context (defaults to the file name)",
        scope="Personal (default) or shared with the whole server",
    )
    @app_commands.choices(scope=SCOPE_CHOICES)
    async def context_add(
        interaction: discord.Interaction,
        file: discord.Attachment,
        name: str | None = None,
        scope: app_commands.Choice[str] | None = None,
    ) -> None:
        owner = _scope_owner(interaction, scope)
        if await _deny_server_write(interaction, owner):
            return
        if not is_supported_file(file.filename):
            await interaction.response.send_message(
                f"Unsupported file type. Supported: {', '.join(SUPPORTED_EXTENSIONS)}",
                ephemeral=True,
            )
            return
        if file.size > MAX_CONTEXT_FILE_BYTES:
            await interaction.response.send_message("File is too large (max 10 MB).", ephemeral=True)
            return

        context_name = sanitize_context_name(name or PurePath(file.filename).stem)
        if not context_name:
            await interaction.response.send_message("Context name cannot be empty.", ephemeral=True)
            return

        await interaction.response.defer(ephemeral=True, thinking=True)
        try:
            document = await parse_document(await file.read(), file.filename)
        except DocumentError as exc:
            await interaction.edit_original_response(content=str(exc))
            return

        gkey = guild_key(interaction.guild_id)
        try:
            await bot.store.add_context(
                gkey,
                context_name,
                document.content,
                document.filename,
                document.file_type,
                owner,
            )
        except ContextConflictError as exc:
            await interaction.edit_original_response(
                content=(
                    f'A {exc.scope} context named "{context_name}" already exists. '
                    f"Remove it with /context remove first, or choose another name."
                )
            )
            return

        label = _scope_label(owner)
        chars = len(document.content)
        logger.info("Context added guild=%s scope=%s name=%s chars=%s", gkey, label, context_name, chars)
        await interaction.edit_original_response(
            content=f'Saved {label} context "{context_name}" ({chars:,} characters from `{file.filename}`).'
        )

    @group.command(name="list", description="List saved contexts")
    @app_commands.describe(scope="Personal (default) or server contexts")
    @app_commands.choices(scope=SCOPE_CHOICES)
    async def context_list(
        interaction: discord.Interaction,
        scope: app_commands.Choice[str] | None = None,
    ) -> None:
        owner = _scope_owner(interaction, scope)
        await interaction.response.defer(ephemeral=True, thinking=True)
        records = await bot.store.list_contexts(guild_key(interaction.guild_id), owner)
        if not records:
            await interaction.edit_original_response(content=f"No {_scope_label(owner)} contexts saved yet.")
            return
        lines = [
            f"**{record.name}** `{record.source_filename or record.file_type}` ({len(record.content):,} chars)"
            for record in records
        ]
        embed = discord.Embed(
            title=f"{_scope_label(owner).capitalize()} Contexts",
            description="\n".join(lines)[:4000],
            timestamp=discord.utils.utcnow(),
        )
        embed.set_footer(text=f"{len(records)} context(s)")
        await interaction.edit_original_response(embed=embed)

    @group.command(name="view", description="View a context's content")
    @app_commands.describe(name="Context name (personal contexts take priority)")
    @app_commands.autocomplete(name=context_autocomplete)
    async def context_view(interaction: discord.Interaction, name: str) -> None:
        await interaction.response.defer(ephemeral=True, thinking=True)
        record = await bot.store.get_context(guild_key(interaction.guild_id), name, str(interaction.user.id))
        if record is None:
            await interaction.edit_original_response(content=f'Context "{name}" not found.')
            return
        embed = discord.Embed(
            title=f"{record.name} ({record.scope})",
            description=truncate(record.content, 3900),
            timestamp=record.created_at,
        )
        embed.set_footer(text=f"{record.source_filename or record.file_type} | {len(record.content):,} chars")
        await interaction.edit_original_response(embed=embed)

    @group.command(name="remove", description="Remove a saved context")
    @app_commands.describe(name="Context name", scope="Personal (default) or server context")
    @app_commands.choices(scope=SCOPE_CHOICES)
    @app_commands.autocomplete(name=context_autocomplete)
    async def context_remove(
        interaction: discord.Interaction,
        name: str,
        scope: app_commands.Choice[str] | None = None,
    ) -> None:
        owner = _scope_owner(interaction, scope)
        if await _deny_server_write(interaction, owner):
            return
        await interaction.response.defer(ephemeral=True, thinking=True)
        removed = await bot.store.remove_context(guild_key(interaction.guild_id), name, owner)
        if not removed:
            await interaction.edit_original_response(content=f'No {_scope_label(owner)} context named "{name}".')
            return
        await interaction.edit_original_response(content=f'Removed {_scope_label(owner)} context "{name}".')

    bot.tree.add_command(group)
