"""
In-memory stand-ins for the discord.py objects, GitHub client and model
provider used by the test modules.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from itertools import count
from types import SimpleNamespace
from typing import Any

import discord

from issuebot.github.client import Issue


OWNER_ID = 1000
BOT_ID = 2000
USER_ID = 3000
OTHER_ID = 4000

_ids = count(10_000)
_epoch = datetime(2025, 1, 1, tzinfo=timezone.utc)


def not_found() -> discord.NotFound:
    return discord.NotFound(SimpleNamespace(status=404, reason="Not Found"), "Unknown Message")


@dataclass
class FakeAuthor:
    id: int
    display_name: str = ""

    def __post_init__(self) -> None:
        self.display_name = self.display_name or f"user{self.id}"
        self.name = self.display_name

    def __str__(self) -> str:
        return self.display_name


@dataclass
class FakeAttachment:
    filename: str


@dataclass
class FakeReference:
    message_id: int | None
    resolved: Any = None


@dataclass
class FakeTag:
    id: int
    name: str


class FakeMessage:
    def __init__(
        self,
        author: FakeAuthor,
        content: str = "",
        *,
        channel: Any = None,
        attachments: list[FakeAttachment] | None = None,
        reference: FakeReference | None = None,
        type: discord.MessageType = discord.MessageType.default,
        created_at: datetime | None = None,
    ) -> None:
        self.id = next(_ids)
        self.author = author
        self.content = content
        self.channel = channel
        self.attachments = attachments or []
        self.reference = reference
        self.type = type
        self.created_at = created_at or _epoch + timedelta(seconds=self.id)
        self.reactions: list[str] = []
        self.deleted = False

    async def add_reaction(self, emoji: str) -> None:
        self.reactions.append(emoji)

    async def delete(self) -> None:
        if self.deleted:
            raise not_found()
        self.deleted = True


class FakeForum:
    def __init__(self, name: str = "bug-reports", tags: list[FakeTag] | None = None,
                 type: discord.ChannelType = discord.ChannelType.forum) -> None:
        self.name = name
        self.type = type
        self.available_tags = tags if tags is not None else [FakeTag(1, "Open"), FakeTag(2, "Tracked")]


class FakeTextChannel:
    type = discord.ChannelType.text

    def __init__(self) -> None:
        self.sent: list[str] = []

    async def send(self, content: str) -> FakeMessage:
        self.sent.append(content)
        return FakeMessage(FakeAuthor(BOT_ID), content, channel=self)


class FakeThread:
    def __init__(self, name: str = "Crash on save", parent: Any = None,
                 type: discord.ChannelType = discord.ChannelType.public_thread) -> None:
        self.name = name
        self.parent = parent if parent is not None else FakeForum()
        self.type = type
        self.jump_url = "https://discord.com/channels/1/555"
        self.applied_tags: list[FakeTag] = []
        self.messages: list[FakeMessage] = []
        self.sent: list[FakeMessage] = []
        self.history_limits: list[int] = []

    def add(self, author: FakeAuthor, content: str = "", **kwargs: Any) -> FakeMessage:
        msg = FakeMessage(author, content, channel=self, **kwargs)
        self.messages.append(msg)
        return msg

    async def history(self, limit: int = 100):
        self.history_limits.append(limit)
        live = [m for m in self.messages if not m.deleted]
        for msg in list(reversed(live))[:limit]:
            yield msg

    async def send(self, content: str) -> FakeMessage:
        msg = self.add(FakeAuthor(BOT_ID, "IssueBot"), content)
        self.sent.append(msg)
        return msg

    async def edit(self, *, name: str | None = None, applied_tags: list[FakeTag] | None = None) -> "FakeThread":
        if name is not None:
            self.name = name
        if applied_tags is not None:
            self.applied_tags = list(applied_tags)
        return self


class FakeDiscordBot:
    def __init__(self) -> None:
        self.user = FakeAuthor(BOT_ID, "IssueBot")
        self.dms: list[str] = []

    def get_user(self, user_id: int) -> Any:
        async def send(content: str) -> None:
            self.dms.append(content)
        return SimpleNamespace(id=user_id, send=send)

    async def fetch_user(self, user_id: int) -> Any:
        return self.get_user(user_id)


@dataclass
class FakeGitHub:
    existing: dict[int, Issue] = field(default_factory=dict)
    created: list[dict[str, Any]] = field(default_factory=list)
    updated: list[dict[str, Any]] = field(default_factory=list)
    fetched: list[int] = field(default_factory=list)
    fail_with: Exception | None = None
    next_number: int = 42

    async def create_issue(self, owner, repo, title, body, labels) -> Issue:
        if self.fail_with:
            raise self.fail_with
        self.created.append(dict(owner=owner, repo=repo, title=title, body=body, labels=labels))
        number = self.next_number
        self.next_number += 1
        return Issue(number, f"https://github.com/{owner}/{repo}/issues/{number}", title, body)

    async def update_issue(self, owner, repo, number, title, body, labels) -> Issue:
        if self.fail_with:
            raise self.fail_with
        self.updated.append(dict(owner=owner, repo=repo, number=number, title=title, body=body, labels=labels))
        return Issue(number, f"https://github.com/{owner}/{repo}/issues/{number}", title, body)

    async def get_issue(self, owner, repo, number) -> Issue:
        self.fetched.append(number)
        return self.existing[number]


class FakeProvider:
    """Returns canned outputs in order and records every request."""

    def __init__(self, *outputs: str) -> None:
        self.outputs = list(outputs)
        self.calls: list[dict[str, Any]] = []

    async def complete(self, system, inputs, schema, temperature) -> str:
        self.calls.append(dict(system=system, inputs=inputs, schema=schema, temperature=temperature))
        return self.outputs.pop(0)
