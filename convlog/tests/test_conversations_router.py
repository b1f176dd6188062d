import json
import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from fastapi import HTTPException

from convlog import config
from convlog.parsers.registry import scan_conversations
from convlog.routers import conversations as conversations_router


def _records() -> list[dict]:
    return [
        {"type": "summary", "summary": "Refactor parser", "leafUuid": "m3"},
        {
            "type": "user",
            "uuid": "m1",
            "parentUuid": None,
            "timestamp": "2026-02-16T10:00:00Z",
            "message": {"role": "user", "content": "Refactor the parser"},
        },
        {
            "type": "assistant",
            "uuid": "m2",
            "parentUuid": "m1",
            "timestamp": "2026-02-16T10:00:02Z",
            "costUSD": 0.02,
            "durationMs": 2000,
            "message": {"model": "claude-sonnet", "content": [{"type": "text", "text": "First try"}]},
        },
        {
            "type": "assistant",
            "uuid": "m3",
            "parentUuid": "m1",
            "timestamp": "2026-02-16T10:00:04Z",
            "message": {
                "model": "claude-sonnet",
                "content": [{"type": "tool_use", "id": "t1", "name": "Edit", "input": {"file_path": "parser.py"}}],
            },
        },
        {"type": "progress", "data": {}},
    ]


class ConversationsRouterTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(tmpdir.cleanup)
        self.data_dir = Path(tmpdir.name)
        (self.data_dir / "session-1.jsonl").write_text(
            "\n".join(json.dumps(r) for r in _records()), encoding="utf-8"
        )
        (self.data_dir / "notes.txt").write_text("ignored", encoding="utf-8")
        patcher = patch.object(config, "DATA_DIR", self.data_dir)
        patcher.start()
        self.addCleanup(patcher.stop)

    async def test_list_conversations(self) -> None:
        items = await conversations_router.list_conversations(limit=10)

        self.assertEqual(len(items), 1)
        self.assertEqual(items[0].id, "session-1")
        self.assertEqual(items[0].lineCount, 5)
        self.assertEqual(items[0].messageCount, 3)
        self.assertEqual(items[0].parseErrorCount, 1)

    async def test_get_conversation_is_validated(self) -> None:
        conversation = await conversations_router.get_conversation("session-1")

        self.assertEqual([m.uuid for m in conversation.messages], ["m1", "m2", "m3"])
        self.assertEqual(conversation.parseErrors[0].error, "Unknown entry type")

    async def test_stats_tree_and_branch(self) -> None:
        stats = await conversations_router.get_conversation_stats("session-1")
        tree = await conversations_router.get_conversation_tree("session-1")
        active = await conversations_router.get_conversation_branch("session-1")
        other = await conversations_router.get_conversation_branch("session-1", leaf="m2")

        self.assertEqual(stats.branches, 1)
        self.assertEqual(stats.toolUsageCount, 1)
        self.assertEqual(stats.conversationDurationMs, 4000)
        self.assertEqual([c.message.uuid for c in tree[0].children], ["m2", "m3"])
        self.assertEqual([m.uuid for m in active], ["m1", "m3"])
        self.assertEqual([m.uuid for m in other], ["m1", "m2"])

    async def test_unknown_conversation_is_404(self) -> None:
        with self.assertRaises(HTTPException) as ctx:
            await conversations_router.get_conversation("missing")

        self.assertEqual(ctx.exception.status_code, 404)

    async def test_unknown_leaf_is_404(self) -> None:
        with self.assertRaises(HTTPException) as ctx:
            await conversations_router.get_conversation_branch("session-1", leaf="nope")

        self.assertEqual(ctx.exception.status_code, 404)

    async def test_path_like_ids_are_rejected(self) -> None:
        for bad_id in ("../session-1", ".hidden", "a/b"):
            with self.assertRaises(HTTPException) as ctx:
                await conversations_router.get_conversation(bad_id)
            self.assertEqual(ctx.exception.status_code, 400)

    async def test_missing_data_dir_lists_nothing(self) -> None:
        with patch.object(config, "DATA_DIR", self.data_dir / "absent"):
            items = await conversations_router.list_conversations(limit=10)

        self.assertEqual(items, [])


class ScanConversationsTests(unittest.IsolatedAsyncioTestCase):
    async def test_scan_parses_newest_logs_first(self) -> None:
        tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(tmpdir.cleanup)
        directory = Path(tmpdir.name)
        older = directory / "older.jsonl"
        newer = directory / "newer.jsonl"
        older.write_text(json.dumps(_records()[1]), encoding="utf-8")
        newer.write_text("\n".join(json.dumps(r) for r in _records()), encoding="utf-8")
        os.utime(older, (1_700_000_000, 1_700_000_000))
        os.utime(newer, (1_700_000_100, 1_700_000_100))

        everything = await scan_conversations(directory)
        newest_only = await scan_conversations(directory, max_files=1)

        self.assertEqual([Path(c.filePath).name for c in everything], ["newer.jsonl", "older.jsonl"])
        self.assertEqual([Path(c.filePath).name for c in newest_only], ["newer.jsonl"])

    async def test_scan_missing_directory_is_empty(self) -> None:
        self.assertEqual(await scan_conversations(Path("/nonexistent/convlog/logs")), [])


if __name__ == "__main__":
    unittest.main()
