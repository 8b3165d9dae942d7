from __future__ import annotations

import logging

import discord
from discord import app_commands
from discord.ext import commands

from ..config import Settings
from ..services.model_cache import ModelListCache
from ..services.nanogpt_client import NanoGPTClient, NanoGPTError
from ..storage import BotStore, StoreUnavailableError
from .commands import register_all
from .interactions import reply_text

logger = logging.getLogger("nanogpt_bot")

DEFAULT_IMAGE_MODELS = (
    "hidream",
    "flux-schnell",
    "flux-dev",
    "flux-pro",
    "flux-kontext",
    "recraft-v3",
    "gpt-4o-image",
    "gpt-image-1",
)


class NanoGPTDiscordBot(commands.Bot):
    def __init__(
        self,
        settings: Settings,
        store: BotStore,
        api: NanoGPTClient,
    ) -> None:
        intents = discord.Intents.default()
        super().__init__(command_prefix=commands.when_mentioned, intents=intents)

        self.settings = settings
        self.store = store
        self.api = api
        self.model_cache = ModelListCache(api.get_models, ttl_seconds=settings.model_cache_ttl_seconds)
        self.image_model_cache = ModelListCache(
            api.get_image_models,
            ttl_seconds=settings.model_cache_ttl_seconds,
            fallback=DEFAULT_IMAGE_MODELS,
        )
        self.tree.error(self._on_app_command_error)
        register_all(self)

    async def setup_hook(self) -> None:
        await self.store.init()
        await self.api.start()
        if self.settings.dev_guild_id is not None:
            guild = discord.Object(id=self.settings.dev_guild_id)
            self.tree.copy_global_to(guild=guild)
            synced = await self.tree.sync(guild=guild)
            logger.info("Synced %s commands to dev guild %s", len(synced), self.settings.dev_guild_id)
        else:
            synced = await self.tree.sync()
            logger.info("Synced %s global commands", len(synced))

    async def close(self) -> None:
        await self.api.close()
        await super().close()

    async def on_ready(self) -> None:
        if self.user:
            logger.info("Connected as %s (%s)", self.user, self.user.id)

    async def _on_app_command_error(
        self,
        interaction: discord.Interaction,
        error: app_commands.AppCommandError,
    ) -> None:
        original = getattr(error, "original", error)
        command_name = interaction.command.qualified_name if interaction.command else "unknown"
        if isinstance(original, StoreUnavailableError):
            logger.exception("Store failure in /%s", command_name, exc_info=original)
            message = "Something went wrong while reading or saving data. Please try again later."
        elif isinstance(original, NanoGPTError):
            logger.error("NanoGPT failure in /%s: %s", command_name, original)
            message = f"An error occurred: {original}"
        else:
            logger.exception("Command /%s failed", command_name, exc_info=original)
            message = "Command failed."
        try:
            await reply_text(interaction, message)
        except discord.HTTPException as exc:
            logger.warning("Could not report error for /%s: %s", command_name, exc)
