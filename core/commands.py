#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
StudySync v1.0 - Assistant Command Parser
Inline directives embedded in assistant replies

Grammar:
    [ADD_TASK:<text>:<high|medium|low>]

The directive may appear anywhere in the reply. The priority token is
case-insensitive; the task text is matched non-greedily so it may itself
contain colons.

Version: 1.0.0
"""

import re
import logging
from dataclasses import dataclass
from typing import Optional

from core.models import TaskPriority

logger = logging.getLogger(__name__)

ADD_TASK_PATTERN = re.compile(r"\[ADD_TASK:(.*?):(high|medium|low)\]", re.IGNORECASE)

@dataclass(frozen=True)
class AddTaskCommand:
    text: str
    priority: str

    def to_dict(self):
        return {"type": "add_task", "text": self.text, "priority": self.priority}

@dataclass(frozen=True)
class ParsedReply:
    """Reply text for display plus the directive it carried, if any"""
    command: Optional[AddTaskCommand]
    display_text: str

def parse_add_task(text: str) -> ParsedReply:
    """Extract the first ADD_TASK directive and strip it from the display text"""
    text = text or ""
    match = ADD_TASK_PATTERN.search(text)
    if not match:
        return ParsedReply(command=None, display_text=text.strip())

    task_text = match.group(1).strip()
    priority = TaskPriority(match.group(2).lower()).value
    display_text = (text[:match.start()] + text[match.end():]).strip()

    if not task_text:
        logger.warning("⚠️ ADD_TASK directive with empty text ignored")
        return ParsedReply(command=None, display_text=display_text)

    return ParsedReply(command=AddTaskCommand(text=task_text, priority=priority), display_text=display_text)

__all__ = ['ADD_TASK_PATTERN', 'AddTaskCommand', 'ParsedReply', 'parse_add_task']
