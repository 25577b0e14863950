import json
import unittest

import discord

from fakes import (
    BOT_ID,
    OTHER_ID,
    OWNER_ID,
    USER_ID,
    FakeAuthor,
    FakeDiscordBot,
    FakeForum,
    FakeGitHub,
    FakeMessage,
    FakeProvider,
    FakeTag,
    FakeTextChannel,
    FakeThread,
)
from issuebot.config.loader import Settings
from issuebot.discord.dispatcher import (
    ALREADY_TRACKED_NOTICE,
    ERROR_NOTICE,
    FORUM_ONLY_REPLY,
    NOT_TRACKED_NOTICE,
    UPDATED_NOTICE,
    CommandDispatcher,
    is_forum_thread,
)
from issuebot.github.client import GitHubError, Issue
from issuebot.llm.generator import SummaryGenerator
from issuebot.threads.strategies import AIStrategy, PlainStrategy


OWNER = FakeAuthor(OWNER_ID, "owner")
ALICE = FakeAuthor(USER_ID, "alice")
BOB = FakeAuthor(OTHER_ID, "bob")


def make_settings(**overrides) -> Settings:
    values = dict(
        discord_token="discord-token",
        github_token="gh-token",
        github_repo="org/repo",
        owner_id=OWNER_ID,
        notice_delay_seconds=0,
    )
    values.update(overrides)
    return Settings(**values)


class DispatcherCase(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.discord_bot = FakeDiscordBot()
        self.github = FakeGitHub()
        self.thread = FakeThread(name="Crash on save", parent=FakeForum("bug-reports"))
        self.thread.add(ALICE, "The editor crashes when I save")
        self.thread.add(BOB, "Same here on Firefox")

    def make_dispatcher(self, strategy, **settings) -> CommandDispatcher:
        return CommandDispatcher(self.discord_bot, make_settings(**settings), self.github, strategy)

    def command(self, content: str, author: FakeAuthor = OWNER) -> FakeMessage:
        return self.thread.add(author, content)

    def sent_texts(self) -> list[str]:
        return [m.content for m in self.thread.sent]


class TestContextChecks(DispatcherCase):
    async def test_non_owner_is_ignored(self):
        dispatcher = self.make_dispatcher(PlainStrategy(notice_delay=0))
        msg = self.command("!track", author=ALICE)

        await dispatcher.on_message(msg)

        self.assertEqual(msg.reactions, [])
        self.assertEqual(self.github.created, [])
        self.assertEqual(self.thread.sent, [])

    async def test_other_messages_are_ignored(self):
        dispatcher = self.make_dispatcher(PlainStrategy(notice_delay=0))
        msg = self.command("please !track this")

        await dispatcher.on_message(msg)

        self.assertEqual(msg.reactions, [])
        self.assertEqual(self.thread.sent, [])

    async def test_outside_thread_gets_plain_reply(self):
        dispatcher = self.make_dispatcher(PlainStrategy(notice_delay=0))
        channel = FakeTextChannel()
        msg = FakeMessage(OWNER, "!track", channel=channel)

        await dispatcher.on_message(msg)

        self.assertEqual(channel.sent, [FORUM_ONLY_REPLY])
        self.assertEqual(msg.reactions, [])
        self.assertFalse(msg.deleted)

    async def test_thread_outside_forum_gets_plain_reply(self):
        dispatcher = self.make_dispatcher(PlainStrategy(notice_delay=0))
        self.thread.parent = FakeForum("general", type=discord.ChannelType.text)
        msg = self.command("!update")

        await dispatcher.on_message(msg)

        self.assertEqual(self.sent_texts(), [FORUM_ONLY_REPLY])
        self.assertEqual(msg.reactions, [])

    def test_is_forum_thread(self):
        self.assertTrue(is_forum_thread(FakeThread()))
        self.assertFalse(is_forum_thread(FakeTextChannel()))
        self.assertFalse(is_forum_thread(FakeThread(parent=FakeForum(type=discord.ChannelType.text))))


class TestPlainTrack(DispatcherCase):
    async def test_track_creates_issue_and_posts_marker(self):
        dispatcher = self.make_dispatcher(PlainStrategy(notice_delay=0))
        msg = self.command("!track")

        await dispatcher.on_message(msg)

        self.assertEqual(msg.reactions, ["🧠"])
        self.assertEqual(len(self.github.created), 1)
        created = self.github.created[0]
        self.assertEqual((created["owner"], created["repo"]), ("org", "repo"))
        self.assertEqual(created["title"], "Crash on save")
        self.assertEqual(created["labels"], ["discord", "bug"])
        self.assertIn("The editor crashes when I save", created["body"])
        self.assertIn("Same here on Firefox", created["body"])
        self.assertNotIn("!track", created["body"])
        self.assertNotIn("Tracked in", created["body"])
        self.assertEqual(self.sent_texts(), ["Tracked in https://github.com/org/repo/issues/42"])
        self.assertTrue(msg.deleted)
        self.assertEqual([t.name for t in self.thread.applied_tags], ["Tracked"])

    async def test_track_with_title_renames_thread(self):
        dispatcher = self.make_dispatcher(PlainStrategy(notice_delay=0))
        msg = self.command("!track   Editor crashes on save  ")

        await dispatcher.on_message(msg)

        self.assertEqual(self.thread.name, "Editor crashes on save")
        self.assertEqual(self.github.created[0]["title"], "Editor crashes on save")

    async def test_feature_channel_uses_feature_label(self):
        self.thread.parent = FakeForum("Feature-Requests")
        dispatcher = self.make_dispatcher(PlainStrategy(notice_delay=0))

        await dispatcher.on_message(self.command("!track"))

        self.assertEqual(self.github.created[0]["labels"], ["discord", "enhancement"])

    async def test_second_track_reports_already_exists(self):
        dispatcher = self.make_dispatcher(PlainStrategy(notice_delay=0))
        await dispatcher.on_message(self.command("!track"))

        second = self.command("!track")
        await dispatcher.on_message(second)

        self.assertEqual(len(self.github.created), 1)
        self.assertEqual(self.sent_texts()[-1], ALREADY_TRACKED_NOTICE)
        self.assertTrue(second.deleted)
        self.assertTrue(self.thread.sent[-1].deleted)

    async def test_forum_without_tracked_tag(self):
        self.thread.parent = FakeForum("bug-reports", tags=[])
        dispatcher = self.make_dispatcher(PlainStrategy(notice_delay=0))

        await dispatcher.on_message(self.command("!track"))

        self.assertEqual(len(self.github.created), 1)
        self.assertEqual(self.thread.applied_tags, [])

    async def test_existing_tags_are_kept(self):
        self.thread.applied_tags = [FakeTag(1, "Open")]
        dispatcher = self.make_dispatcher(PlainStrategy(notice_delay=0))

        await dispatcher.on_message(self.command("!track"))

        self.assertEqual([t.name for t in self.thread.applied_tags], ["Open", "Tracked"])


class TestPlainUpdate(DispatcherCase):
    async def test_update_without_marker_makes_no_write(self):
        dispatcher = self.make_dispatcher(PlainStrategy(notice_delay=0))
        msg = self.command("!update")

        await dispatcher.on_message(msg)

        self.assertEqual(self.github.updated, [])
        self.assertEqual(self.github.created, [])
        self.assertEqual(self.sent_texts(), [NOT_TRACKED_NOTICE])
        self.assertTrue(msg.deleted)
        self.assertTrue(self.thread.sent[0].deleted)

    async def test_update_uses_marker_from_bot(self):
        self.thread.add(FakeAuthor(BOT_ID), "Tracked in https://github.com/org/repo/issues/42")
        self.thread.add(ALICE, "It also happens on autosave")
        dispatcher = self.make_dispatcher(PlainStrategy(notice_delay=0))
        msg = self.command("!update")

        await dispatcher.on_message(msg)

        self.assertEqual(self.github.created, [])
        self.assertEqual(len(self.github.updated), 1)
        updated = self.github.updated[0]
        self.assertEqual(updated["number"], 42)
        self.assertIn("It also happens on autosave", updated["body"])
        self.assertEqual(self.sent_texts(), [UPDATED_NOTICE])
        self.assertTrue(msg.deleted)


class TestErrorBoundary(DispatcherCase):
    async def test_remote_failure_becomes_generic_notice(self):
        self.github.fail_with = GitHubError(502, "Bad gateway")
        dispatcher = self.make_dispatcher(PlainStrategy(notice_delay=0))
        msg = self.command("!track")

        with self.assertLogs(level="ERROR"):
            await dispatcher.on_message(msg)

        self.assertEqual(self.sent_texts(), [ERROR_NOTICE])
        self.assertTrue(msg.deleted)
        self.assertTrue(self.thread.sent[0].deleted)
        self.assertEqual(len(self.discord_bot.dms), 1)
        self.assertIn("GitHubError", self.discord_bot.dms[0])

    async def test_owner_notification_can_be_disabled(self):
        self.github.fail_with = GitHubError(500, "boom")
        dispatcher = self.make_dispatcher(PlainStrategy(notice_delay=0), notify_owner_on_error=False)

        with self.assertLogs(level="ERROR"):
            await dispatcher.on_message(self.command("!track"))

        self.assertEqual(self.sent_texts(), [ERROR_NOTICE])
        self.assertEqual(self.discord_bot.dms, [])


class TestAITrack(DispatcherCase):
    def make_ai(self, *outputs: str) -> tuple[CommandDispatcher, FakeProvider]:
        provider = FakeProvider(*outputs)
        strategy = AIStrategy(
            generator=SummaryGenerator(provider),
            github=self.github,
            repo_owner="org",
            repo_name="repo",
            notice_delay=0,
        )
        return self.make_dispatcher(strategy), provider

    async def test_track_formats_bug_report(self):
        dispatcher, provider = self.make_ai(json.dumps({
            "title": "Editor crashes on save",
            "description": "Saving crashes the editor.",
            "replicationSteps": "Press save",
            "extensionVersion": None,
            "browsersUsed": "Firefox",
        }))
        msg = self.command("!track ignored title")

        await dispatcher.on_message(msg)

        created = self.github.created[0]
        self.assertEqual(created["title"], "Editor crashes on save")
        self.assertEqual(created["labels"], ["discord", "auto-generated", "bug"])
        self.assertEqual(
            created["body"],
            "### Description\n\nSaving crashes the editor.\n\n"
            "### How to replicate the issue\n\nPress save\n\n"
            "### Browser(s) used\n\nFirefox\n\n"
            f"Tracked in {self.thread.jump_url}",
        )
        self.assertEqual(self.thread.name, "Crash on save")
        transcript = provider.calls[0]["inputs"][0]
        self.assertTrue(transcript.startswith("Thread title: Crash on save"))
        self.assertIn("alice: The editor crashes when I save", transcript)
        self.assertEqual(self.sent_texts(), ["Tracked in https://github.com/org/repo/issues/42"])
        self.assertTrue(msg.deleted)

    async def test_feature_channel_uses_feature_schema(self):
        self.thread.parent = FakeForum("feature-requests")
        dispatcher, provider = self.make_ai(json.dumps({"title": "Dark mode", "description": "Add it."}))

        await dispatcher.on_message(self.command("!track"))

        created = self.github.created[0]
        self.assertEqual(created["body"], f"Add it.\n\nTracked in {self.thread.jump_url}")
        self.assertEqual(created["labels"], ["discord", "auto-generated", "enhancement"])
        self.assertNotIn("replicationSteps", provider.calls[0]["schema"]["properties"])

    async def test_invalid_model_output_fails_command(self):
        dispatcher, _ = self.make_ai("I could not summarize this.")
        msg = self.command("!track")

        with self.assertLogs(level="WARNING"):
            await dispatcher.on_message(msg)

        self.assertEqual(self.github.created, [])
        self.assertEqual(self.sent_texts(), [ERROR_NOTICE])
        self.assertTrue(msg.deleted)

    async def test_update_starts_from_existing_issue(self):
        self.github.existing[42] = Issue(
            42, "https://github.com/org/repo/issues/42", "Old title",
            "Old body\n\nTracked in https://discord.com/channels/1/555",
        )
        self.thread.add(FakeAuthor(BOT_ID), "Tracked in https://github.com/org/repo/issues/42")
        dispatcher, provider = self.make_ai(json.dumps({
            "title": "Old title",
            "description": "Old body, now with autosave.",
            "replicationSteps": None,
            "extensionVersion": "2.0",
            "browsersUsed": None,
        }))
        msg = self.command("!update")

        await dispatcher.on_message(msg)

        self.assertEqual(self.github.fetched, [42])
        self.assertEqual(
            provider.calls[0]["inputs"][0],
            "GitHub Issue:\n\nOld title\nOld body\n\nTracked in https://discord.com/channels/1/555",
        )
        updated = self.github.updated[0]
        self.assertEqual(updated["number"], 42)
        self.assertEqual(
            updated["body"],
            "### Description\n\nOld body, now with autosave.\n\n### Extension version\n\n2.0\n\n"
            f"Tracked in {self.thread.jump_url}",
        )
        self.assertEqual(updated["labels"], ["discord", "auto-generated", "bug"])
        self.assertEqual(self.sent_texts(), [UPDATED_NOTICE])


if __name__ == "__main__":
    unittest.main()
