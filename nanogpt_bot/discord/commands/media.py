from __future__ import annotations

import io
from typing import TYPE_CHECKING, Any, Dict, List, Optional

import discord
from discord import app_commands

from ..common import VALID_IMAGE_TYPES, filter_choices, sanitize_filename, truncate
from ..interactions import attachment_to_data_url, feature_check

if TYPE_CHECKING:
    from ..client import NanoGPTDiscordBot

SIZE_CHOICES = [app_commands.Choice(name=size, value=size) for size in ("256x256", "512x512", "1024x1024")]
MAX_EMBEDS_PER_MESSAGE = 10


async def image_model_autocomplete(interaction: discord.Interaction, current: str) -> List[app_commands.Choice[str]]:
    bot: NanoGPTDiscordBot = interaction.client  # type: ignore[assignment]
    models = await bot.image_model_cache.get()
    return [app_commands.Choice(name=model[:100], value=model[:100]) for model in filter_choices(models, current)]


def scrape_result_embed(result: Dict[str, Any], download: bool) -> discord.Embed:
    url = str(result.get("url") or "")
    embed = discord.Embed(title=truncate(str(result.get("title") or "Untitled"), 250))
    if result.get("success"):
        markdown = str(result.get("markdown") or "")
        if download:
            embed.description = "Content attached as file."
        elif markdown:
            embed.description = truncate(markdown, 1000)
        embed.colour = discord.Colour.green()
        if url.startswith(("http://", "https://")):
            embed.url = url
    else:
        embed.description = f"Failed: {result.get('error') or 'Unknown error'}"
        embed.colour = discord.Colour.red()
    embed.set_footer(text=truncate(url, 2000))
    return embed


def register(bot: "NanoGPTDiscordBot") -> None:
    @bot.tree.command(name="imagine", description="Generate an image using AI")
    @app_commands.describe(
        prompt="The text prompt to generate an image from",
        model="Image model to use",
        size="Image size",
        guidance="How closely to follow the prompt (0-20)",
        steps="Number of denoising steps (1-100)",
        seed="Random seed for reproducible results",
        image="Input image for img2img transformation",
        strength="Img2img strength, how much to change the input image (0-1)",
    )
    @app_commands.choices(size=SIZE_CHOICES)
    @app_commands.autocomplete(model=image_model_autocomplete)
    async def imagine(
        interaction: discord.Interaction,
        prompt: str,
        model: str | None = None,
        size: app_commands.Choice[str] | None = None,
        guidance: Optional[app_commands.Range[float, 0.0, 20.0]] = None,
        steps: Optional[app_commands.Range[int, 1, 100]] = None,
        seed: int | None = None,
        image: discord.Attachment | None = None,
        strength: Optional[app_commands.Range[float, 0.0, 1.0]] = None,
    ) -> None:
        check = feature_check(interaction, bot.settings, "imagegen")
        if not check.allowed:
            await interaction.response.send_message(check.reason, ephemeral=True)
            return

        await interaction.response.defer(thinking=True)
        image_data_url = None
        if image is not None:
            image_data_url = await attachment_to_data_url(image)
            if image_data_url is None:
                await interaction.edit_original_response(
                    content=f"Invalid image format. Supported formats: {', '.join(VALID_IMAGE_TYPES)}"
                )
                return

        used_model = (model or "").strip() or bot.settings.default_image_model
        response = await bot.api.generate_image(
            prompt,
            used_model,
            size=size.value if size else None,
            image_data_url=image_data_url,
            strength=strength if image_data_url else None,
            guidance_scale=guidance,
            num_inference_steps=steps,
            seed=seed,
        )
        images = response.get("data") or []
        image_url = images[0].get("url") if images and isinstance(images[0], dict) else None
        if not image_url:
            await interaction.edit_original_response(content="No image was generated. Please try again.")
            return

        footer = [f"Model: {used_model}"]
        if size:
            footer.append(f"Size: {size.value}")
        if seed is not None:
            footer.append(f"Seed: {seed}")
        if response.get("cost") is not None:
            footer.append(f"Cost: ${float(response['cost']):.4f}")

        embed = discord.Embed(
            title="Generated Image",
            description=f"**Prompt:** {truncate(prompt, 200)}",
            timestamp=discord.utils.utcnow(),
        )
        embed.set_image(url=image_url)
        embed.set_footer(text=" | ".join(footer))
        if image is not None:
            embed.set_thumbnail(url=image.url)
        await interaction.edit_original_response(embed=embed)

    @bot.tree.command(name="scrape", description="Scrape content from web pages")
    @app_commands.describe(
        url="URL to scrape",
        url2="Additional URL to scrape",
        url3="Additional URL to scrape",
        url4="Additional URL to scrape",
        url5="Additional URL to scrape",
        stealth="Use stealth mode for tougher targets (5x cost)",
        download="Attach results as .md file(s)",
    )
    async def scrape(
        interaction: discord.Interaction,
        url: str,
        url2: str | None = None,
        url3: str | None = None,
        url4: str | None = None,
        url5: str | None = None,
        stealth: bool = False,
        download: bool = False,
    ) -> None:
        check = feature_check(interaction, bot.settings, "scrape")
        if not check.allowed:
            await interaction.response.send_message(check.reason, ephemeral=True)
            return

        urls = [item.strip() for item in (url, url2, url3, url4, url5) if item and item.strip()]
        await interaction.response.defer(thinking=True)
        response = await bot.api.scrape_urls(urls, stealth)
        results = [item for item in response.get("results") or [] if isinstance(item, dict)]

        files: List[discord.File] = []
        if download:
            for result in results:
                if result.get("success") and result.get("markdown"):
                    filename = sanitize_filename(str(result.get("title") or result.get("url") or "")) + ".md"
                    payload = io.BytesIO(str(result["markdown"]).encode("utf-8"))
                    files.append(discord.File(payload, filename=filename))

        embeds = [scrape_result_embed(result, download) for result in results]
        summary = response.get("summary") or {}
        summary_embed = discord.Embed(title="Scrape Summary", timestamp=discord.utils.utcnow())
        summary_embed.add_field(name="Requested", value=str(summary.get("requested", len(urls))), inline=True)
        summary_embed.add_field(name="Successful", value=str(summary.get("successful", 0)), inline=True)
        summary_embed.add_field(name="Failed", value=str(summary.get("failed", 0)), inline=True)
        summary_embed.add_field(name="Total Cost", value=f"${float(summary.get('totalCost') or 0):.4f}", inline=True)
        if summary.get("stealthModeUsed"):
            summary_embed.add_field(name="Mode", value="Stealth", inline=True)
        embeds.append(summary_embed)

        await interaction.edit_original_response(embeds=embeds[:MAX_EMBEDS_PER_MESSAGE], attachments=files)
