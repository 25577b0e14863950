"""
Transient feedback in a thread: a notice that replaces the command message
and removes itself after a delay.
"""

from __future__ import annotations

import asyncio
import contextlib
from typing import Any

import discord


async def delete_quietly(message: Any) -> None:
    # The command message may already be gone (e.g. error after a successful !track).
    with contextlib.suppress(discord.NotFound):
        await message.delete()


async def replace_with_notice(thread: Any, message: Any, text: str, delay: float) -> None:
    """
    Post `text`, delete the command message, wait `delay` seconds, delete the notice.

    The wait is a plain sleep; if the process stops meanwhile the notice stays.
    """
    notice = await thread.send(text)
    await delete_quietly(message)
    await asyncio.sleep(delay)
    await delete_quietly(notice)
