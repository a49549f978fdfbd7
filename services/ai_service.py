#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
StudySync v1.0 - Study Assistant
Chat assistant that can add tasks, plan schedules and suggest resources

The language model is an opaque text-completion collaborator. Every failure
is turned into a user-visible reply instead of an exception.

Version: 1.0.0
"""

import json
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional
import logging

import openai
from openai import AsyncOpenAI

from config import config, AIConfig
from core.commands import AddTaskCommand, parse_add_task
from core.models import Task

logger = logging.getLogger(__name__)

# ===== EXCEPTIONS =====

class AssistantError(Exception):
    """Base assistant failure"""
    pass

class CompletionError(AssistantError):
    """The completion provider failed"""
    pass

class ScheduleFormatError(AssistantError):
    """The schedule reply was not the expected JSON"""
    pass

# ===== ENUMS =====

class PromptTemplate(Enum):
    CHAT = "chat"
    SCHEDULE = "schedule"
    RESOURCES = "resources"

class MessageKind(Enum):
    TEXT = "text"
    SCHEDULE = "schedule"
    ERROR = "error"

# ===== DATA CLASSES =====

@dataclass
class ChatMessage:
    """Assistant reply as shown in the chat"""
    text: str
    kind: MessageKind = MessageKind.TEXT
    command: Optional[AddTaskCommand] = None
    data: Optional[List[Dict[str, Any]]] = None
    id: int = field(default_factory=lambda: int(time.time() * 1000))
    sender: str = "ai"
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())

    @property
    def is_error(self) -> bool:
        return self.kind == MessageKind.ERROR

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "sender": self.sender,
            "kind": self.kind.value,
            "isSchedule": self.kind == MessageKind.SCHEDULE,
            "command": self.command.to_dict() if self.command else None,
            "data": self.data,
            "timestamp": self.timestamp,
        }

@dataclass
class AssistantStats:
    total_requests: int = 0
    failed_requests: int = 0
    commands_parsed: int = 0

    @property
    def success_rate(self) -> float:
        if self.total_requests == 0:
            return 100.0
        return (self.total_requests - self.failed_requests) / self.total_requests * 100

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_requests": self.total_requests,
            "failed_requests": self.failed_requests,
            "commands_parsed": self.commands_parsed,
            "success_rate": round(self.success_rate, 2),
        }

# ===== PROMPTS =====

class PromptManager:
    """Prompt templates"""

    def __init__(self):
        self.templates: Dict[PromptTemplate, str] = self._load_templates()

    def _load_templates(self) -> Dict[PromptTemplate, str]:
        return {
            PromptTemplate.CHAT: (
                "You are a helpful, motivating study assistant named StudySync AI.\n"
                "If the user asks to add a task, start your response with the command: "
                "[ADD_TASK:task_text:priority].\n"
                "Priority can be 'high', 'medium', or 'low'. Default to 'medium' if not specified.\n"
                "Example: User \"add study high priority\" -> Response "
                "\"[ADD_TASK:study:high] Added 'study' to your high priority list! 🚀\"\n"
                "Keep normal responses concise (under 50 words) and encouraging. User says: {message}"
            ),
            PromptTemplate.SCHEDULE: (
                "Create a study schedule for these tasks: {tasks_json}.\n"
                "User availability: {availability}.\n"
                "Sort tasks by priority (High > Medium > Low) and deadline.\n"
                "Fit them into the availability window. Allocate realistic time slots "
                "(e.g., 25-45 mins) with 5-10 min breaks.\n"
                "Return ONLY a valid JSON array with this structure (no markdown, no code blocks):\n"
                "[\n"
                "    {{ \"time\": \"10:00 AM - 10:30 AM\", \"task\": \"Task Name\", \"type\": \"work\", \"priority\": \"high\" }},\n"
                "    {{ \"time\": \"10:30 AM - 10:35 AM\", \"task\": \"Break\", \"type\": \"break\" }}\n"
                "]"
            ),
            PromptTemplate.RESOURCES: (
                "Suggest 3-5 high-quality study resources for: \"{subject}\".\n"
                "Include a mix of:\n"
                "1. 📚 Books (Title & Author)\n"
                "2. 📺 YouTube Channels/Videos\n"
                "3. 🌐 Websites/Courses\n"
                "Format as a concise markdown list with emojis."
            ),
        }

    def get_prompt(self, template: PromptTemplate, **kwargs) -> str:
        return self.templates[template].format(**kwargs)

# ===== COMPLETION CLIENTS =====

class TextCompletionClient(ABC):
    """complete(prompt) -> text"""

    @abstractmethod
    async def complete(self, prompt: str) -> str:
        pass

class OpenAICompletionClient(TextCompletionClient):
    """Chat completions through the OpenAI API"""

    def __init__(self, ai_config: Optional[AIConfig] = None):
        self.ai_config = ai_config or config.ai
        self.client = AsyncOpenAI(
            api_key=self.ai_config.openai_api_key,
            timeout=self.ai_config.request_timeout,
        )

    async def complete(self, prompt: str) -> str:
        try:
            response = await self.client.chat.completions.create(
                model=self.ai_config.openai_model,
                messages=[{"role": "user", "content": prompt}],
                max_tokens=self.ai_config.openai_max_tokens,
                temperature=self.ai_config.temperature,
            )
        except openai.RateLimitError as e:
            raise CompletionError(f"rate limit reached ({e})")
        except openai.APIError as e:
            raise CompletionError(str(e))

        content = response.choices[0].message.content if response.choices else None
        return (content or "").strip()

# ===== ASSISTANT =====

NOT_CONFIGURED_MESSAGE = "The study assistant is not configured. Set OPENAI_API_KEY to enable it."
SCHEDULE_INTRO = "Here is your optimized schedule based on your availability:"
SCHEDULE_FAILED = "I couldn't generate a schedule right now. Please try again."
RESOURCES_FAILED = "I couldn't find resources right now. Please try again."
EMPTY_REPLY = "I'm thinking..."

class StudyAssistant:
    """Chat, schedule planning and resource suggestions"""

    def __init__(self, client: Optional[TextCompletionClient] = None):
        self.client = client
        self.prompt_manager = PromptManager()
        self.stats = AssistantStats()
        logger.info(f"Study assistant initialized - completion client: {'✅' if client else '❌'}")

    @property
    def enabled(self) -> bool:
        return self.client is not None

    async def _complete(self, prompt: str) -> str:
        self.stats.total_requests += 1
        try:
            return await self.client.complete(prompt)
        except Exception:
            self.stats.failed_requests += 1
            raise

    async def send_message(self, message: str) -> ChatMessage:
        """Reply to a chat message; an ADD_TASK directive becomes reply.command"""
        if not self.enabled:
            return ChatMessage(text=NOT_CONFIGURED_MESSAGE, kind=MessageKind.ERROR)

        prompt = self.prompt_manager.get_prompt(PromptTemplate.CHAT, message=message)
        try:
            reply = await self._complete(prompt)
        except Exception as e:
            logger.error(f"❌ Assistant chat failed: {e}")
            return ChatMessage(
                text=f"Connection Error: {e}. Please check your internet or API key quota.",
                kind=MessageKind.ERROR,
            )

        parsed = parse_add_task(reply or EMPTY_REPLY)
        text = parsed.display_text
        if parsed.command:
            self.stats.commands_parsed += 1
            logger.info(f"🤖 Assistant requested task: '{parsed.command.text}' ({parsed.command.priority})")
            if not text:
                text = f"Added '{parsed.command.text}' to your {parsed.command.priority} priority list! 🚀"
        return ChatMessage(text=text, command=parsed.command)

    async def generate_schedule(self, tasks: List[Task], availability: str = "today") -> ChatMessage:
        """Plan the incomplete tasks into time slots"""
        if not self.enabled:
            return ChatMessage(text=NOT_CONFIGURED_MESSAGE, kind=MessageKind.ERROR)

        tasks_json = json.dumps([
            {"text": t.text, "priority": t.priority, "deadline": t.deadline}
            for t in tasks if not t.completed
        ])
        prompt = self.prompt_manager.get_prompt(
            PromptTemplate.SCHEDULE, tasks_json=tasks_json, availability=availability or "today"
        )

        try:
            reply = await self._complete(prompt)
            schedule = parse_schedule(reply or "[]")
        except Exception as e:
            logger.error(f"❌ Schedule generation failed: {e}")
            return ChatMessage(text=SCHEDULE_FAILED, kind=MessageKind.ERROR)

        return ChatMessage(text=SCHEDULE_INTRO, kind=MessageKind.SCHEDULE, data=schedule)

    async def suggest_resources(self, subject: str) -> ChatMessage:
        if not self.enabled:
            return ChatMessage(text=NOT_CONFIGURED_MESSAGE, kind=MessageKind.ERROR)

        prompt = self.prompt_manager.get_prompt(PromptTemplate.RESOURCES, subject=subject)
        try:
            reply = await self._complete(prompt)
        except Exception as e:
            logger.error(f"❌ Resource suggestion failed: {e}")
            return ChatMessage(text=RESOURCES_FAILED, kind=MessageKind.ERROR)

        return ChatMessage(text=reply or "No resources found.")

    def get_stats(self) -> Dict[str, Any]:
        data = self.stats.to_dict()
        data["enabled"] = self.enabled
        return data

def parse_schedule(text: str) -> List[Dict[str, Any]]:
    """JSON array of {time, task, type, priority?}, tolerating Markdown code fences"""
    cleaned = text.replace("```json", "").replace("```", "").strip()
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise ScheduleFormatError(f"Schedule is not valid JSON: {e}")

    if not isinstance(data, list):
        raise ScheduleFormatError("Schedule must be a JSON array")

    slots = []
    for item in data:
        if not isinstance(item, dict) or not all(k in item for k in ("time", "task", "type")):
            raise ScheduleFormatError(f"Malformed schedule entry: {item!r}")
        slot = {"time": str(item["time"]), "task": str(item["task"]), "type": str(item["type"])}
        if item.get("priority"):
            slot["priority"] = str(item["priority"]).lower()
        slots.append(slot)
    return slots

def create_study_assistant(ai_config: Optional[AIConfig] = None) -> StudyAssistant:
    """Assistant backed by OpenAI when a key is configured"""
    ai_config = ai_config or config.ai
    client = OpenAICompletionClient(ai_config) if ai_config.enabled else None
    return StudyAssistant(client)

__all__ = [
    'AssistantError',
    'CompletionError',
    'ScheduleFormatError',
    'PromptTemplate',
    'MessageKind',
    'ChatMessage',
    'AssistantStats',
    'PromptManager',
    'TextCompletionClient',
    'OpenAICompletionClient',
    'StudyAssistant',
    'parse_schedule',
    'create_study_assistant',
    'NOT_CONFIGURED_MESSAGE',
    'SCHEDULE_FAILED',
    'RESOURCES_FAILED',
]
