"""
Recover the issue a thread is tracked in from its recent history.

The only link between a thread and an issue is a `Tracked in <issue url>`
message posted by the bot (or pasted by the owner).
"""

from __future__ import annotations

import re
from typing import Any, Protocol

import discord


TRACKED_IN_RE = re.compile(r"Tracked in (https://github\.com/.*/issues/(\d+))")


def parse_tracking_marker(text: str | None) -> int | None:
    if not text:
        return None
    m = TRACKED_IN_RE.search(text)
    return int(m.group(2)) if m else None


def has_tracking_marker(text: str | None) -> bool:
    return parse_tracking_marker(text) is not None


class TrackingStore(Protocol):
    async def find_issue_number(self, thread: discord.Thread, bot_user_id: int | None) -> int | None: ...


class HistoryTrackingStore:
    """Scans recent messages from the owner or the bot for a tracking marker."""

    def __init__(self, owner_id: int, history_limit: int = 100) -> None:
        self.owner_id = owner_id
        self.history_limit = history_limit

    async def find_issue_number(self, thread: Any, bot_user_id: int | None) -> int | None:
        # history() yields newest first; the first marker encountered wins.
        async for msg in thread.history(limit=self.history_limit):
            if msg.author.id not in (self.owner_id, bot_user_id):
                continue
            number = parse_tracking_marker(msg.content)
            if number is not None:
                return number
        return None
