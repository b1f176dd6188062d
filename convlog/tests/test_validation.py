import json
import tempfile
import unittest
from pathlib import Path

from convlog.models import ParseError, ParsedConversation, Summary, UserMessage
from convlog.parsers.validation import parse_and_validate_conversation, validate_conversation


def _message(uuid: str, parent: str | None) -> UserMessage:
    return UserMessage.model_validate(
        {
            "type": "user",
            "uuid": uuid,
            "parentUuid": parent,
            "timestamp": "2026-02-16T10:00:00Z",
            "message": {"role": "user", "content": uuid},
        }
    )


def _conversation(messages: list[UserMessage], summaries: int = 0) -> ParsedConversation:
    return ParsedConversation(
        summaries=[Summary(summary=f"s{i}", leafUuid="x") for i in range(summaries)],
        messages=messages,
        filePath="conversation.jsonl",
        lineCount=len(messages) + summaries,
    )


class StructuralValidationTests(unittest.TestCase):
    def test_clean_conversation_has_no_errors(self) -> None:
        conversation = _conversation([_message("a", None), _message("b", "a"), _message("c", "b")])

        result = validate_conversation(conversation)

        self.assertEqual(result.parseErrors, [])
        self.assertEqual(len(result.messages), 3)

    def test_duplicate_reported_for_second_occurrence_only(self) -> None:
        conversation = _conversation([_message("a", None), _message("b", "a"), _message("a", None)], summaries=1)

        result = validate_conversation(conversation)

        self.assertEqual(len(result.parseErrors), 1)
        self.assertEqual(result.parseErrors[0].error, "Duplicate UUID: a")
        # index 2, one summary, 1-based
        self.assertEqual(result.parseErrors[0].line, 4)

    def test_each_later_duplicate_is_reported(self) -> None:
        conversation = _conversation([_message("a", None), _message("a", None), _message("a", None)])

        result = validate_conversation(conversation)

        self.assertEqual([e.line for e in result.parseErrors], [2, 3])

    def test_forward_parent_reference_is_not_an_orphan(self) -> None:
        conversation = _conversation([_message("b", "a"), _message("a", None)])

        result = validate_conversation(conversation)

        self.assertEqual(result.parseErrors, [])

    def test_orphan_flagged_once_per_message(self) -> None:
        conversation = _conversation(
            [_message("root", None), _message("x", "ghost"), _message("y", "ghost")]
        )

        result = validate_conversation(conversation)

        self.assertEqual(
            [e.error for e in result.parseErrors],
            [
                "Orphaned message: parent UUID ghost not found",
                "Orphaned message: parent UUID ghost not found",
            ],
        )
        self.assertEqual([e.line for e in result.parseErrors], [2, 3])

    def test_empty_parent_uuid_is_an_orphan(self) -> None:
        result = validate_conversation(_conversation([_message("root", None), _message("x", "")]))

        self.assertEqual([e.error for e in result.parseErrors], ["Orphaned message: parent UUID  not found"])
        self.assertEqual(result.parseErrors[0].line, 2)

    def test_duplicates_are_listed_before_orphans(self) -> None:
        conversation = _conversation([_message("x", "ghost"), _message("a", None), _message("a", None)])

        result = validate_conversation(conversation)

        self.assertEqual(
            [e.error for e in result.parseErrors],
            ["Duplicate UUID: a", "Orphaned message: parent UUID ghost not found"],
        )

    def test_errors_append_without_mutating_input(self) -> None:
        existing = ParseError(line=7, error="Unknown entry type", content="{}")
        conversation = _conversation([_message("x", "ghost")]).model_copy(update={"parseErrors": [existing]})

        result = validate_conversation(conversation)

        self.assertEqual(conversation.parseErrors, [existing])
        self.assertEqual(result.parseErrors[0], existing)
        self.assertEqual(len(result.parseErrors), 2)
        self.assertEqual(result.messages, conversation.messages)


class ParseAndValidateTests(unittest.IsolatedAsyncioTestCase):
    async def test_parse_and_validate_file(self) -> None:
        tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(tmpdir.cleanup)
        path = Path(tmpdir.name) / "conversation.jsonl"
        records = [
            {"type": "summary", "summary": "s", "leafUuid": "b"},
            {"type": "user", "uuid": "a", "parentUuid": None, "timestamp": "", "message": {"role": "user", "content": "hi"}},
            {"type": "user", "uuid": "b", "parentUuid": "missing", "timestamp": "", "message": {"role": "user", "content": "?"}},
            {"type": "user", "uuid": "a", "parentUuid": None, "timestamp": "", "message": {"role": "user", "content": "again"}},
        ]
        path.write_text("\n".join(json.dumps(r) for r in records) + "\n", encoding="utf-8")

        result = await parse_and_validate_conversation(path)

        self.assertEqual(len(result.messages), 3)
        self.assertEqual(
            [e.error for e in result.parseErrors],
            ["Duplicate UUID: a", "Orphaned message: parent UUID missing not found"],
        )


if __name__ == "__main__":
    unittest.main()
