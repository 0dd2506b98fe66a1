import logging

import discord
from discord.ext import commands, tasks

from config import Config
from formatting import format_not_a_slip, format_slip_summary, split_message
from ocr import OcrError
from services.slip_processor import SlipProcessor
from validation import validate_attachment

logger = logging.getLogger("cogs.bets")

CACHE_PURGE_INTERVAL_SEC = 60


def _first_image(message: discord.Message):
    return next((a for a in message.attachments if (a.content_type or "").startswith("image/")), None)


class BetsCog(commands.Cog):
    def __init__(self, bot: commands.Bot, processor: SlipProcessor, config: Config):
        self.bot = bot
        self.processor = processor
        self.config = config
        self._cooldowns = commands.CooldownMapping.from_cooldown(
            config.rate_limit_requests, config.rate_limit_window_sec, commands.BucketType.user
        )

    async def cog_load(self):
        self.purge_expired_cache.start()

    async def cog_unload(self):
        self.purge_expired_cache.cancel()

    @tasks.loop(seconds=CACHE_PURGE_INTERVAL_SEC)
    async def purge_expired_cache(self):
        self.purge_cache_once()

    def purge_cache_once(self) -> int:
        return self.processor.results.purge_cache()

    @commands.command(name="slip")
    async def check_slip(self, ctx: commands.Context):
        if not ctx.message.attachments:
            await ctx.send("❌ Please upload a bet slip image with your command.")
            return
        await self._handle(ctx.message, ctx.message.attachments[0])

    @commands.Cog.listener()
    async def on_message(self, message: discord.Message):
        if message.author.bot or not self.config.auto_scan_images:
            return
        if message.content.startswith(self.config.command_prefix):
            return
        if self.config.channel_id and message.channel.id != self.config.channel_id:
            return
        image = _first_image(message)
        if image is not None:
            await self._handle(message, image)

    @commands.command(name="ping")
    async def ping(self, ctx: commands.Context):
        await ctx.send(f"🏓 Pong! ({self.bot.latency * 1000:.0f}ms)")

    @commands.command(name="slipstats")
    async def slip_stats(self, ctx: commands.Context):
        stats = self.processor.results.stats()
        lines = [
            "📊 **Bot Statistics**",
            f"Lookups: {stats['requests']} (cache hit rate {stats['hit_rate']})",
            f"Not found: {stats['not_found']}, errors: {stats['errors']}",
            f"Average lookup: {stats['avg_response_ms']}ms",
        ]
        for source, wins in sorted(stats["wins_by_source"].items()):
            lines.append(f"• {source}: {wins} results / {stats['calls_by_source'].get(source, 0)} calls")
        if self.processor.ocr_pool is not None:
            ocr = self.processor.ocr_pool.stats()
            lines.append(f"OCR: {ocr['processed']} images, {ocr['failed']} failed, avg {ocr['avg_seconds']}s")
        await ctx.send("\n".join(lines))

    async def _handle(self, message: discord.Message, attachment: discord.Attachment):
        retry_after = self._cooldowns.get_bucket(message).update_rate_limit()
        if retry_after:
            await message.reply(f"⏳ Slow down, try again in {retry_after:.0f}s.", mention_author=False)
            return

        check = validate_attachment(attachment.filename, attachment.content_type, attachment.size,
                                    attachment.width, attachment.height, self.config.max_image_size_mb)
        if not check.is_valid:
            await message.reply("❌ " + "\n".join(check.errors), mention_author=False)
            return
        for warning in check.warnings:
            logger.debug(f"Attachment warning for {message.author}: {warning}")

        async with message.channel.typing():
            try:
                image_bytes = await attachment.read()
                report = await self.processor.process_image(image_bytes)
            except OcrError as e:
                await message.reply(f"❌ Couldn't read that image: {e}", mention_author=False)
                return
            except discord.HTTPException as e:
                logger.warning(f"Attachment download failed: {e}")
                await message.reply("❌ Couldn't download that image, please try again.", mention_author=False)
                return

        if report.analysis.is_betting_slip:
            text = format_slip_summary(report.analysis, report.selections or None)
        else:
            text = format_not_a_slip(report.analysis)

        chunks = split_message(text)
        await message.reply(chunks[0], mention_author=False)
        for chunk in chunks[1:]:
            await message.channel.send(chunk)
