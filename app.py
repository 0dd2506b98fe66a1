import asyncio
import logging

import discord
from discord.ext import commands

from catalog import DEFAULT_VOCABULARY
from cogs.bets import BetsCog
from config import Config
from match_results import MatchResultService
from ocr import OcrPool
from parsing import SlipParser
from services.slip_processor import SlipProcessor

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s"
)
logger = logging.getLogger("BetSlipChecker")


def create_bot(config: Config) -> commands.Bot:
    intents = discord.Intents.default()
    intents.message_content = True
    bot = commands.Bot(command_prefix=config.command_prefix, intents=intents)
    bot.config = config
    return bot


def create_processor(config: Config) -> SlipProcessor:
    parser = SlipParser(
        DEFAULT_VOCABULARY.with_threshold(config.anchor_fuzzy_threshold),
        bookmaker_hints=config.router_bookmaker_hints,
        normalize_lines=config.router_enable_normalization,
    )
    ocr_pool = OcrPool(config.ocr_pool_size, config.ocr_timeout, config.ocr_confidence_threshold)
    return SlipProcessor(parser, MatchResultService.from_config(config), ocr_pool)


async def main():
    config = Config.from_env()
    if config.debug_logging:
        logging.getLogger().setLevel(logging.DEBUG)
    if not config.bot_token:
        raise SystemExit("BOT_TOKEN is not set")

    bot = create_bot(config)
    processor = create_processor(config)

    @bot.event
    async def on_ready():
        logger.info(f"Logged in as {bot.user} (ID: {bot.user.id})")
        logger.info(f"Sources: {', '.join(s.name for s in processor.results.resolver.sources)}")

    await bot.add_cog(BetsCog(bot, processor, config))
    try:
        await bot.start(config.bot_token)
    finally:
        await processor.results.aclose()
        if not bot.is_closed():
            await bot.close()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
