from __future__ import annotations

import base64
import logging

import discord

from ..config import Settings
from ..features import FeatureCheck, check_feature
from ..segmenter import segment_response
from .common import VALID_IMAGE_TYPES, numbered_footers

logger = logging.getLogger("nanogpt_bot")


def is_admin(interaction: discord.Interaction, settings: Settings) -> bool:
    if str(interaction.user.id) in settings.admin_user_ids:
        return True
    user = interaction.user
    if isinstance(user, discord.Member):
        return bool(user.guild_permissions.administrator)
    return False


def feature_check(interaction: discord.Interaction, settings: Settings, feature: str) -> FeatureCheck:
    return check_feature(
        settings,
        feature,
        str(interaction.user.id),
        is_admin=is_admin(interaction, settings),
    )


async def attachment_to_data_url(attachment: discord.Attachment) -> str | None:
    content_type = (attachment.content_type or "").split(";")[0].strip().lower()
    if content_type not in VALID_IMAGE_TYPES:
        return None
    try:
        data = await attachment.read()
    except discord.HTTPException as exc:
        logger.warning("Failed to download attachment %s: %s", attachment.filename, exc)
        return None
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{content_type};base64,{encoded}"


async def send_segmented_reply(
    interaction: discord.Interaction,
    text: str,
    footer: str,
    max_length: int,
) -> None:
    """Edit the deferred reply with the first chunk and follow up with the rest."""
    chunks = segment_response(text, max_length)
    footers = numbered_footers(footer, len(chunks))
    for index, (chunk, chunk_footer) in enumerate(zip(chunks, footers)):
        embed = discord.Embed(description=chunk)
        embed.set_footer(text=chunk_footer)
        if index == 0:
            embed.timestamp = discord.utils.utcnow()
            await interaction.edit_original_response(content=None, embed=embed)
        else:
            await interaction.followup.send(embed=embed)


async def reply_text(interaction: discord.Interaction, content: str, *, ephemeral: bool = True) -> None:
    if interaction.response.is_done():
        await interaction.edit_original_response(content=content, embed=None)
    else:
        await interaction.response.send_message(content, ephemeral=ephemeral)
