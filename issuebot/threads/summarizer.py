"""
Thread transcript rendering.

Two renderings of the same filtered, chronologically ordered messages:
- plain: readable markdown used directly as the issue body
- llm:   dense one-line-per-message text used as model input
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable

import discord

from .tracking import has_tracking_marker


HISTORY_LIMIT = 100
EXCERPT_CHARS = 50
COMMAND_PREFIX = "!"

USER_MESSAGE_TYPES = (discord.MessageType.default, discord.MessageType.reply)


@dataclass(frozen=True)
class MessageFilter:
    bot_user_id: int | None
    owner_id: int
    skip_tracking_markers: bool = True
    skip_owner_commands: bool = True

    def keep(self, msg: Any) -> bool:
        if msg.author.id == self.bot_user_id:
            return False
        if msg.type not in USER_MESSAGE_TYPES:
            return False
        if self.skip_tracking_markers and has_tracking_marker(msg.content):
            return False
        if (
            self.skip_owner_commands
            and msg.author.id == self.owner_id
            and msg.content.startswith(COMMAND_PREFIX)
        ):
            return False
        return True


async def fetch_thread_messages(thread: Any, limit: int = HISTORY_LIMIT) -> list[Any]:
    """Most recent `limit` messages, oldest first. Older messages are dropped."""
    messages = [msg async for msg in thread.history(limit=limit)]
    return sorted(messages, key=lambda m: m.created_at)


def _author_name(msg: Any) -> str:
    author = msg.author
    return getattr(author, "display_name", None) or getattr(author, "name", "") or str(author.id)


def _shorten(s: str, n: int = EXCERPT_CHARS) -> str:
    s = s.strip().replace("\n", " ")
    return s if len(s) <= n else s[:n] + "…"


def _referenced_message(msg: Any, by_id: dict[int, Any]) -> Any | None:
    ref = msg.reference
    if ref is None or ref.message_id is None:
        return None
    if ref.message_id in by_id:
        return by_id[ref.message_id]
    resolved = getattr(ref, "resolved", None)
    return resolved if isinstance(resolved, discord.Message) else None


def render_plain_transcript(thread: Any, messages: Iterable[Any], msg_filter: MessageFilter) -> str:
    messages = list(messages)
    by_id = {m.id: m for m in messages}
    blocks = [f"Discord thread: {thread.jump_url}"]

    for msg in messages:
        if not msg_filter.keep(msg):
            continue
        lines = [f"**{_author_name(msg)}**"]
        if (parent := _referenced_message(msg, by_id)) is not None:
            lines.append(f"> Replying to {_author_name(parent)}: {_shorten(parent.content)}")
        if msg.content:
            lines.append(msg.content)
        lines += [f"[Attachment: {a.filename}]" for a in msg.attachments]
        blocks.append("\n".join(lines))

    return "\n\n".join(blocks)


def render_llm_transcript(thread: Any, messages: Iterable[Any], msg_filter: MessageFilter) -> str:
    parts = [f"Thread title: {thread.name}"]
    for msg in messages:
        if not msg_filter.keep(msg):
            continue
        ref_id = msg.reference.message_id if msg.reference else None
        reply_info = f" (replies to {ref_id})" if ref_id else ""
        parts.append(f"Message ID {msg.id}{reply_info} {_author_name(msg)}: {msg.content}")
    return "\n\n".join(parts) + "\n"
