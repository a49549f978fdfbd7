"""Tests for the assistant add-task directive parser."""
import pytest

from core.commands import parse_add_task


class TestParseAddTask:
    def test_directive_at_start(self):
        parsed = parse_add_task("[ADD_TASK:study:high] Added 'study' to your high priority list! 🚀")

        assert parsed.command.text == "study"
        assert parsed.command.priority == "high"
        assert parsed.display_text == "Added 'study' to your high priority list! 🚀"

    def test_priority_is_case_insensitive(self):
        parsed = parse_add_task("[add_task:Read notes:LOW]")

        assert parsed.command.priority == "low"
        assert parsed.command.text == "Read notes"
        assert parsed.display_text == ""

    def test_text_may_contain_colons(self):
        parsed = parse_add_task("Sure! [ADD_TASK:Exam at 10:30:medium] Good luck")

        assert parsed.command.text == "Exam at 10:30"
        assert parsed.display_text == "Sure!  Good luck"

    @pytest.mark.parametrize("reply", [
        "Just keep going!",
        "[ADD_TASK:study:urgent]",
        "[ADD_TASK:study]",
    ])
    def test_no_command(self, reply):
        parsed = parse_add_task(reply)

        assert parsed.command is None
        assert parsed.display_text == reply

    def test_empty_task_text_ignored(self):
        parsed = parse_add_task("[ADD_TASK::high] Nothing to add")

        assert parsed.command is None
        assert parsed.display_text == "Nothing to add"

    def test_only_first_directive_used(self):
        parsed = parse_add_task("[ADD_TASK:a:high] [ADD_TASK:b:low]")

        assert parsed.command.text == "a"
        assert parsed.display_text == "[ADD_TASK:b:low]"

    def test_none_reply(self):
        parsed = parse_add_task(None)

        assert parsed.command is None
        assert parsed.display_text == ""
