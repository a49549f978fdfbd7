#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
StudySync v1.0 - Pomodoro Timer
Focus / break countdown driven by a single asyncio ticker task

Version: 1.0.0
"""

import asyncio
import inspect
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional

from config import config, TimerConfig
from core.models import Preferences

logger = logging.getLogger(__name__)

class TimerMode(Enum):
    FOCUS = "focus"
    SHORT_BREAK = "shortBreak"
    LONG_BREAK = "longBreak"

@dataclass(frozen=True)
class TimerFinished:
    """Emitted once when a countdown reaches zero.

    play_sound / notify mirror the preferences at that moment; the actual
    playback and notification delivery belong to the listener.
    """
    mode: TimerMode
    play_sound: bool
    notify: bool
    message: str = "Timer Finished! Take a break."

class PomodoroTimer:
    """Countdown with focus and break modes.

    Only one ticker task exists at a time. reset() and set_mode() replace the
    countdown instead of pausing it.
    """

    def __init__(self, timer_config: Optional[TimerConfig] = None,
                 preferences_provider: Optional[Callable[[], Preferences]] = None):
        self.timer_config = timer_config or config.timer
        self.preferences_provider = preferences_provider or Preferences
        self.mode = TimerMode.FOCUS
        self.time_left = self.duration_for(self.mode)
        self.is_active = False
        self._ticker: Optional[asyncio.Task] = None
        self._finish_listeners: List[Callable] = []

    def duration_for(self, mode: TimerMode) -> int:
        """Full duration of a mode in seconds"""
        minutes = {
            TimerMode.FOCUS: self.timer_config.focus_minutes,
            TimerMode.SHORT_BREAK: self.timer_config.short_break_minutes,
            TimerMode.LONG_BREAK: self.timer_config.long_break_minutes,
        }[mode]
        return minutes * 60

    def add_finish_listener(self, listener: Callable) -> None:
        self._finish_listeners.append(listener)

    # ===== CONTROLS =====

    def toggle(self) -> bool:
        """Start or pause; returns the new active flag"""
        if self.is_active:
            self._stop_ticker()
            self.is_active = False
            logger.info(f"⏸️ Timer paused at {self.time_left}s ({self.mode.value})")
        elif self.time_left > 0:
            self.is_active = True
            self._start_ticker()
            logger.info(f"⏰ Timer started: {self.mode.value} ({self.time_left}s left)")
        return self.is_active

    def reset(self) -> None:
        self._stop_ticker()
        self.is_active = False
        self.time_left = self.duration_for(self.mode)

    def set_mode(self, mode) -> None:
        self.mode = TimerMode(mode)
        self.reset()

    async def tick(self) -> None:
        """Advance the countdown by one step"""
        if not self.is_active:
            return
        if self.time_left > 0:
            self.time_left -= 1
        if self.time_left == 0:
            await self._finish()

    # ===== INTERNALS =====

    def _start_ticker(self) -> None:
        self._stop_ticker()
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop, timer will advance on explicit ticks only")
            return
        self._ticker = loop.create_task(self._ticker_worker())

    def _stop_ticker(self) -> None:
        if self._ticker is not None:
            if not self._ticker.done() and self._ticker is not asyncio.current_task():
                self._ticker.cancel()
            self._ticker = None

    async def _ticker_worker(self) -> None:
        try:
            while self.is_active and self.time_left > 0:
                await asyncio.sleep(self.timer_config.tick_seconds)
                await self.tick()
        except asyncio.CancelledError:
            logger.debug("⏹️ Timer ticker cancelled")
            raise

    async def _finish(self) -> None:
        self.is_active = False
        self._stop_ticker()

        preferences = self.preferences_provider()
        event = TimerFinished(
            mode=self.mode,
            play_sound=preferences.sound,
            notify=preferences.notifications,
        )
        logger.info(f"🔔 Timer finished: {self.mode.value}")

        for listener in list(self._finish_listeners):
            try:
                result = listener(event)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error(f"❌ Timer finish listener failed: {e}")

    async def cleanup(self) -> None:
        """Cancel the ticker on shutdown"""
        ticker = self._ticker
        self._stop_ticker()
        self.is_active = False
        if ticker is not None:
            try:
                await ticker
            except asyncio.CancelledError:
                pass
        logger.info("🧹 Timer cleaned up")

    def to_dict(self) -> Dict:
        return {
            "mode": self.mode.value,
            "timeLeft": self.time_left,
            "isActive": self.is_active,
            "duration": self.duration_for(self.mode),
        }

__all__ = ['TimerMode', 'TimerFinished', 'PomodoroTimer']
