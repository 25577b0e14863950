import unittest

from fakes import BOT_ID, OTHER_ID, OWNER_ID, USER_ID, FakeAuthor, FakeThread
from issuebot.threads.tracking import HistoryTrackingStore, parse_tracking_marker


class TestParseTrackingMarker(unittest.TestCase):
    def test_extracts_issue_number(self):
        self.assertEqual(parse_tracking_marker("Tracked in https://github.com/org/repo/issues/42"), 42)

    def test_marker_inside_longer_text(self):
        text = "Some body\n\nTracked in https://github.com/org/repo/issues/1234 thanks"
        self.assertEqual(parse_tracking_marker(text), 1234)

    def test_no_marker(self):
        self.assertIsNone(parse_tracking_marker("Tracked in https://discord.com/channels/1/2"))
        self.assertIsNone(parse_tracking_marker("https://github.com/org/repo/issues/42"))
        self.assertIsNone(parse_tracking_marker(""))
        self.assertIsNone(parse_tracking_marker(None))


class TestHistoryTrackingStore(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.store = HistoryTrackingStore(OWNER_ID)

    async def test_marker_from_bot(self):
        thread = FakeThread()
        thread.add(FakeAuthor(USER_ID), "hello")
        thread.add(FakeAuthor(BOT_ID), "Tracked in https://github.com/org/repo/issues/42")

        self.assertEqual(await self.store.find_issue_number(thread, BOT_ID), 42)

    async def test_marker_from_owner(self):
        thread = FakeThread()
        thread.add(FakeAuthor(OWNER_ID), "Tracked in https://github.com/org/repo/issues/9")

        self.assertEqual(await self.store.find_issue_number(thread, BOT_ID), 9)

    async def test_ignores_markers_from_other_users(self):
        thread = FakeThread()
        thread.add(FakeAuthor(OTHER_ID), "Tracked in https://github.com/org/repo/issues/42")

        self.assertIsNone(await self.store.find_issue_number(thread, BOT_ID))

    async def test_no_marker(self):
        thread = FakeThread()
        thread.add(FakeAuthor(USER_ID), "just talk")

        self.assertIsNone(await self.store.find_issue_number(thread, BOT_ID))

    async def test_first_encountered_in_history_order_wins(self):
        thread = FakeThread()
        thread.add(FakeAuthor(BOT_ID), "Tracked in https://github.com/org/repo/issues/1")
        thread.add(FakeAuthor(BOT_ID), "Tracked in https://github.com/org/repo/issues/2")

        # history() yields newest first
        self.assertEqual(await self.store.find_issue_number(thread, BOT_ID), 2)

    async def test_scan_uses_history_limit(self):
        thread = FakeThread()
        store = HistoryTrackingStore(OWNER_ID, history_limit=100)
        await store.find_issue_number(thread, BOT_ID)

        self.assertEqual(thread.history_limits, [100])


if __name__ == "__main__":
    unittest.main()
