"""Tests for the study assistant with a mocked completion client."""
import json
from unittest.mock import AsyncMock, Mock

import openai
import pytest

from config import AIConfig
from core.models import Task
from services.ai_service import (
    NOT_CONFIGURED_MESSAGE,
    RESOURCES_FAILED,
    SCHEDULE_FAILED,
    CompletionError,
    MessageKind,
    OpenAICompletionClient,
    ScheduleFormatError,
    StudyAssistant,
    create_study_assistant,
    parse_schedule,
)


class TestSendMessage:
    @pytest.mark.asyncio
    async def test_plain_reply(self, assistant, completion_client):
        reply = await assistant.send_message("How do I focus?")

        assert reply.text == "Keep going! 💪"
        assert reply.command is None
        assert reply.kind == MessageKind.TEXT
        prompt = completion_client.complete.await_args.args[0]
        assert "User says: How do I focus?" in prompt

    @pytest.mark.asyncio
    async def test_add_task_directive(self, assistant, completion_client):
        completion_client.complete.return_value = "[ADD_TASK:study calculus:high] On it! 🚀"

        reply = await assistant.send_message("add study calculus high priority")

        assert reply.command.text == "study calculus"
        assert reply.command.priority == "high"
        assert reply.text == "On it! 🚀"
        assert reply.to_dict()["command"] == {"type": "add_task", "text": "study calculus", "priority": "high"}
        assert assistant.stats.commands_parsed == 1

    @pytest.mark.asyncio
    async def test_directive_only_gets_confirmation_text(self, assistant, completion_client):
        completion_client.complete.return_value = "[ADD_TASK:read:low]"

        reply = await assistant.send_message("add read")

        assert reply.text == "Added 'read' to your low priority list! 🚀"

    @pytest.mark.asyncio
    async def test_provider_failure_becomes_message(self, assistant, completion_client):
        completion_client.complete.side_effect = CompletionError("rate limit reached")

        reply = await assistant.send_message("hello")

        assert reply.is_error is True
        assert reply.text.startswith("Connection Error: rate limit reached.")
        assert assistant.stats.failed_requests == 1

    @pytest.mark.asyncio
    async def test_not_configured(self):
        reply = await StudyAssistant().send_message("hello")

        assert reply.text == NOT_CONFIGURED_MESSAGE
        assert reply.is_error is True


class TestSchedule:
    @pytest.mark.asyncio
    async def test_schedule_from_pending_tasks(self, assistant, completion_client):
        slots = [
            {"time": "10:00 AM - 10:30 AM", "task": "Essay", "type": "work", "priority": "High"},
            {"time": "10:30 AM - 10:35 AM", "task": "Break", "type": "break"},
        ]
        completion_client.complete.return_value = "```json\n" + json.dumps(slots) + "\n```"
        tasks = [
            Task(id=1, text="Essay", priority="high"),
            Task(id=2, text="Done already", completed=True),
        ]

        reply = await assistant.generate_schedule(tasks, "10am to noon")

        assert reply.kind == MessageKind.SCHEDULE
        assert reply.data[0]["priority"] == "high"
        assert "priority" not in reply.data[1]
        prompt = completion_client.complete.await_args.args[0]
        assert "Essay" in prompt
        assert "Done already" not in prompt
        assert "10am to noon" in prompt

    @pytest.mark.asyncio
    async def test_invalid_schedule(self, assistant, completion_client):
        completion_client.complete.return_value = "Sorry, here is a poem instead."

        reply = await assistant.generate_schedule([Task(id=1, text="Essay")])

        assert reply.text == SCHEDULE_FAILED
        assert reply.is_error is True

    def test_parse_schedule_rejects_non_list(self):
        with pytest.raises(ScheduleFormatError):
            parse_schedule('{"time": "now"}')

    def test_parse_schedule_rejects_incomplete_entry(self):
        with pytest.raises(ScheduleFormatError):
            parse_schedule('[{"time": "10:00", "task": "x"}]')


class TestResources:
    @pytest.mark.asyncio
    async def test_resources(self, assistant, completion_client):
        completion_client.complete.return_value = "- 📚 *Calculus* by Spivak"

        reply = await assistant.suggest_resources("calculus")

        assert reply.text == "- 📚 *Calculus* by Spivak"
        assert '"calculus"' in completion_client.complete.await_args.args[0]

    @pytest.mark.asyncio
    async def test_resources_failure(self, assistant, completion_client):
        completion_client.complete.side_effect = CompletionError("timeout")

        reply = await assistant.suggest_resources("biology")

        assert reply.text == RESOURCES_FAILED


class TestOpenAIClient:
    @pytest.mark.asyncio
    async def test_completion_content_is_stripped(self):
        client = OpenAICompletionClient(AIConfig(openai_api_key="sk-test"))
        response = Mock()
        response.choices = [Mock(message=Mock(content="  Hello there  "))]
        client.client = Mock()
        client.client.chat.completions.create = AsyncMock(return_value=response)

        assert await client.complete("hi") == "Hello there"
        kwargs = client.client.chat.completions.create.await_args.kwargs
        assert kwargs["messages"] == [{"role": "user", "content": "hi"}]
        assert kwargs["model"] == "gpt-4o-mini"

    @pytest.mark.asyncio
    async def test_api_error_wrapped(self):
        client = OpenAICompletionClient(AIConfig(openai_api_key="sk-test"))
        client.client = Mock()
        client.client.chat.completions.create = AsyncMock(
            side_effect=openai.APIConnectionError(request=Mock())
        )

        with pytest.raises(CompletionError):
            await client.complete("hi")

    def test_factory_without_key(self):
        assert create_study_assistant(AIConfig(openai_api_key=None)).enabled is False

    def test_factory_with_key(self):
        assert create_study_assistant(AIConfig(openai_api_key="sk-test")).enabled is True
