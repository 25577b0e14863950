from __future__ import annotations

from datetime import datetime
import logging

import discord

from issuebot.llm.errors import parse_error_message


async def notify_owner_error(
    discord_bot: discord.Client,
    owner_id: int,
    error: Exception,
    context: str = "",
) -> None:
    """
    DM a concise error notification to the bot owner.
    """
    msg = (
        "🤖 **Bot Error Notification**\n"
        f"⏰ Time: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}\n"
        f"📝 Context: {context}\n\nError: {parse_error_message(error)}"
    )
    try:
        user = discord_bot.get_user(owner_id) or await discord_bot.fetch_user(owner_id)
        await user.send(msg)
    except discord.HTTPException as e:
        logging.warning("Could not notify owner %s: %s", owner_id, e)
