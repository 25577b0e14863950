"""
`!track` / `!update` handling for forum threads.

Per message: authorize → validate context → (rename) → acknowledge → process
→ reply, with one error boundary around everything after validation.
"""

from __future__ import annotations

import logging
from typing import Any

import discord

from issuebot.github.client import GitHubClient
from issuebot.threads.strategies import SummaryStrategy
from issuebot.threads.summarizer import fetch_thread_messages
from issuebot.threads.tracking import HistoryTrackingStore, TrackingStore

from .errors import notify_owner_error
from .notices import delete_quietly, replace_with_notice


TRACK_PREFIX = "!track"
UPDATE_PREFIX = "!update"
TRACKED_TAG_NAME = "tracked"
MAX_APPLIED_TAGS = 5
MAX_THREAD_NAME = 100

FORUM_ONLY_REPLY = "This command must be used inside a forum thread."
ALREADY_TRACKED_NOTICE = "Issue already exists for this thread."
NOT_TRACKED_NOTICE = "No tracked issue found in this thread."
UPDATED_NOTICE = "Issue updated."
ERROR_NOTICE = "Error processing request."

THREAD_TYPES = (
    discord.ChannelType.public_thread,
    discord.ChannelType.private_thread,
    discord.ChannelType.news_thread,
)


def is_forum_thread(channel: Any) -> bool:
    if getattr(channel, "type", None) not in THREAD_TYPES:
        return False
    parent = getattr(channel, "parent", None)
    return parent is not None and parent.type == discord.ChannelType.forum


def find_tracked_tag(forum: Any) -> Any | None:
    for tag in getattr(forum, "available_tags", None) or ():
        if tag.name.lower() == TRACKED_TAG_NAME:
            return tag
    return None


class CommandDispatcher:
    def __init__(
        self,
        discord_bot: discord.Client,
        settings: Any,
        github: GitHubClient,
        strategy: SummaryStrategy,
        tracking: TrackingStore | None = None,
    ) -> None:
        self.discord_bot = discord_bot
        self.settings = settings
        self.github = github
        self.strategy = strategy
        self.tracking = tracking or HistoryTrackingStore(settings.owner_id, settings.history_limit)

    @property
    def bot_user_id(self) -> int | None:
        user = self.discord_bot.user
        return user.id if user else None

    async def on_message(self, message: discord.Message) -> None:
        if message.author.id != self.settings.owner_id:
            return

        content = message.content
        is_track = content.startswith(TRACK_PREFIX)
        is_update = content.startswith(UPDATE_PREFIX)
        if not is_track and not is_update:
            return

        thread = message.channel
        if not is_forum_thread(thread):
            await message.channel.send(FORUM_ONLY_REPLY)
            return

        try:
            if self.strategy.renames_thread:
                prefix = TRACK_PREFIX if is_track else UPDATE_PREFIX
                thread = await self._maybe_rename(thread, content[len(prefix):])

            await message.add_reaction(self.settings.ack_emoji)

            # Checked independently on purpose; the prefixes cannot both match.
            if is_track:
                logging.info(f"!track {thread.name}")
                await self.process_track(thread, message)

            if is_update:
                logging.info(f"!update {thread.name}")
                await self.process_update(thread, message)
        except Exception as e:
            logging.exception(f"Error processing command in thread '{thread.name}'")
            if self.settings.notify_owner_on_error:
                await notify_owner_error(
                    self.discord_bot, self.settings.owner_id, e, f"{content.split()[0]} in {thread.jump_url}"
                )
            await replace_with_notice(thread, message, ERROR_NOTICE, self.strategy.notice_delay)

    # ── Commands ─────────────────────────────────────────────────────────────

    async def process_track(self, thread: Any, message: Any) -> None:
        bot_id = self.bot_user_id
        if await self.tracking.find_issue_number(thread, bot_id) is not None:
            await replace_with_notice(thread, message, ALREADY_TRACKED_NOTICE, self.strategy.notice_delay)
            return

        messages = await fetch_thread_messages(thread, self.settings.history_limit)
        msg_filter = self.strategy.message_filter(bot_id, self.settings.owner_id)
        draft = await self.strategy.build_new(thread, messages, msg_filter)

        issue = await self.github.create_issue(
            self.settings.repo_owner, self.settings.repo_name, draft.title, draft.body, draft.labels
        )
        logging.info(f"Created issue #{issue.number} for thread '{thread.name}' | labels: {draft.labels}")

        await thread.send(f"Tracked in {issue.html_url}")
        await delete_quietly(message)
        await self._apply_tracked_tag(thread)

    async def process_update(self, thread: Any, message: Any) -> None:
        bot_id = self.bot_user_id
        number = await self.tracking.find_issue_number(thread, bot_id)
        if number is None:
            await replace_with_notice(thread, message, NOT_TRACKED_NOTICE, self.strategy.notice_delay)
            return

        messages = await fetch_thread_messages(thread, self.settings.history_limit)
        msg_filter = self.strategy.message_filter(bot_id, self.settings.owner_id)
        draft = await self.strategy.build_update(thread, messages, msg_filter, number)

        await self.github.update_issue(
            self.settings.repo_owner, self.settings.repo_name, number, draft.title, draft.body, draft.labels
        )
        logging.info(f"Updated issue #{number} for thread '{thread.name}'")

        await replace_with_notice(thread, message, UPDATED_NOTICE, self.strategy.notice_delay)

    # ── Thread helpers ───────────────────────────────────────────────────────

    async def _maybe_rename(self, thread: Any, rest: str) -> Any:
        new_name = rest.strip()[:MAX_THREAD_NAME]
        if not new_name or new_name == thread.name:
            return thread
        logging.info(f"Renaming thread '{thread.name}' -> '{new_name}'")
        return await thread.edit(name=new_name)

    async def _apply_tracked_tag(self, thread: Any) -> None:
        tag = find_tracked_tag(thread.parent)
        if tag is None:
            logging.warning(f"Forum '{thread.parent.name}' has no '{TRACKED_TAG_NAME}' tag, skipping")
            return
        applied = list(thread.applied_tags)
        if any(t.id == tag.id for t in applied):
            return
        await thread.edit(applied_tags=(applied + [tag])[-MAX_APPLIED_TAGS:])
