import asyncio
import logging
import os

import discord
from discord.ext import commands
import httpx

from issuebot.config.loader import Settings, load_settings
from issuebot.discord.dispatcher import CommandDispatcher
from issuebot.github.client import GitHubClient
from issuebot.llm.generator import build_generator
from issuebot.threads.strategies import build_strategy

if os.environ.get("DEBUG"):
    logging.basicConfig(level=logging.DEBUG)
    logging.getLogger("httpx").setLevel(logging.DEBUG)

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s: %(message)s")


def build_bot(settings: Settings, dispatcher_factory) -> commands.Bot:
    intents = discord.Intents.default()
    intents.guilds = True
    intents.guild_messages = True
    intents.guild_reactions = True
    intents.message_content = True
    activity = discord.CustomActivity(name=(settings.status_message or "Watching forum threads")[:128])
    discord_bot = commands.Bot(intents=intents, activity=activity, command_prefix=None)
    dispatcher: CommandDispatcher = dispatcher_factory(discord_bot)

    # ── Events ───────────────────────────────────────────────────────────────

    @discord_bot.event
    async def on_ready() -> None:
        logging.info(f"Logged in as {discord_bot.user} | summarizer: {settings.summarizer} | repo: {settings.github_repo}")

    @discord_bot.event
    async def on_message(new_msg: discord.Message) -> None:
        await dispatcher.on_message(new_msg)

    return discord_bot


async def main() -> None:
    settings = load_settings()
    logging.info(f"🚀 Bot starting | summarizer: {settings.summarizer} | repo: {settings.github_repo}")

    httpx_client = httpx.AsyncClient(timeout=30)
    github = GitHubClient(httpx_client, settings.github_token, settings.github_api_url)
    generator = build_generator(settings) if settings.summarizer == "ai" else None
    strategy = build_strategy(settings, github, generator)

    discord_bot = build_bot(
        settings,
        lambda client: CommandDispatcher(client, settings, github, strategy),
    )
    try:
        await discord_bot.start(settings.discord_token)
    finally:
        await httpx_client.aclose()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
