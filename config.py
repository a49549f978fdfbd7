#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
StudySync v1.0 - Configuration
Centralised configuration built from environment variables, with validation

Version: 1.0.0
"""

import os
import sys
import logging
from pathlib import Path
from typing import Optional, Dict, Any
from dataclasses import dataclass
from enum import Enum

import pytz

class Environment(Enum):
    """Runtime environments"""
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TESTING = "testing"

class LogLevel(Enum):
    """Logging levels"""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

@dataclass
class StorageConfig:
    """Local key/value storage"""
    data_dir: Path
    namespace_prefix: str = "studysync"
    guest_namespace: str = "studysync-guest"
    identity_key: str = "studysync-user"

@dataclass
class RemoteConfig:
    """Hosted backend used for multi-device sync"""
    supabase_url: Optional[str] = None
    supabase_anon_key: Optional[str] = None
    table: str = "user_data"
    request_timeout: int = 15

    @property
    def enabled(self) -> bool:
        return bool(self.supabase_url and self.supabase_anon_key)

@dataclass
class AIConfig:
    """Text-completion assistant"""
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o-mini"
    openai_max_tokens: int = 600
    request_timeout: int = 30
    temperature: float = 0.7

    @property
    def enabled(self) -> bool:
        return bool(self.openai_api_key)

@dataclass
class SyncConfig:
    """Debounced upstream saves"""
    debounce_seconds: float = 2.0
    saved_reset_seconds: float = 2.0
    flush_on_exit: bool = False

@dataclass
class TimerConfig:
    """Pomodoro durations in minutes"""
    focus_minutes: int = 25
    short_break_minutes: int = 5
    long_break_minutes: int = 15
    tick_seconds: float = 1.0

@dataclass
class ServerConfig:
    """HTTP server for the web front end"""
    host: str = "0.0.0.0"
    port: int = 8080
    debug_mode: bool = False
    allowed_origins: tuple = ("*",)

class StudySyncConfig:
    """Main configuration object"""

    def __init__(self):
        self.environment = Environment(os.getenv('ENVIRONMENT', 'development'))
        self._load_config()
        self._validate_config()
        self._ensure_directories()

    def _load_config(self):
        """Read the configuration from environment variables"""

        # Directories
        self.data_dir = Path(os.getenv('DATA_DIR', 'data'))
        self.log_dir = Path(os.getenv('LOG_DIR', 'logs'))

        self.storage = StorageConfig(
            data_dir=self.data_dir,
            namespace_prefix=os.getenv('STORAGE_PREFIX', 'studysync'),
        )
        self.storage.guest_namespace = f"{self.storage.namespace_prefix}-guest"
        self.storage.identity_key = f"{self.storage.namespace_prefix}-user"

        self.remote = RemoteConfig(
            supabase_url=(os.getenv('SUPABASE_URL') or '').rstrip('/') or None,
            supabase_anon_key=os.getenv('SUPABASE_ANON_KEY'),
            table=os.getenv('SUPABASE_TABLE', 'user_data'),
            request_timeout=int(os.getenv('REMOTE_TIMEOUT', 15)),
        )

        self.ai = AIConfig(
            openai_api_key=os.getenv('OPENAI_API_KEY'),
            openai_model=os.getenv('OPENAI_MODEL', 'gpt-4o-mini'),
            openai_max_tokens=int(os.getenv('OPENAI_MAX_TOKENS', 600)),
            request_timeout=int(os.getenv('AI_TIMEOUT', 30)),
        )

        self.sync = SyncConfig(
            debounce_seconds=float(os.getenv('SYNC_DEBOUNCE_SECONDS', 2.0)),
            saved_reset_seconds=float(os.getenv('SYNC_SAVED_RESET_SECONDS', 2.0)),
            flush_on_exit=os.getenv('SYNC_FLUSH_ON_EXIT', 'false').lower() == 'true',
        )

        self.timer = TimerConfig(
            focus_minutes=int(os.getenv('TIMER_FOCUS_MINUTES', 25)),
            short_break_minutes=int(os.getenv('TIMER_SHORT_BREAK_MINUTES', 5)),
            long_break_minutes=int(os.getenv('TIMER_LONG_BREAK_MINUTES', 15)),
        )

        self.server = ServerConfig(
            host=os.getenv('HOST', '0.0.0.0'),
            port=int(os.getenv('PORT', 8080)),
            debug_mode=os.getenv('DEBUG_MODE', 'false').lower() == 'true',
            allowed_origins=tuple(
                origin.strip() for origin in os.getenv('ALLOWED_ORIGINS', '*').split(',') if origin.strip()
            ),
        )

        # Calendar days (streaks, check-ins) are computed in this timezone
        self.timezone_name = os.getenv('TIMEZONE', 'UTC')

        # Logging
        self.log_level = LogLevel(os.getenv('LOG_LEVEL', 'INFO').upper())
        self.log_to_file = os.getenv('LOG_TO_FILE', 'false').lower() == 'true'
        self.log_format = os.getenv(
            'LOG_FORMAT',
            '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
        )

        self.features = {
            'remote_sync': self.remote.enabled,
            'assistant': self.ai.enabled,
            'flush_on_exit': self.sync.flush_on_exit,
        }

    def _validate_config(self):
        """Validate the loaded values"""
        errors = []

        if not 1024 <= self.server.port <= 65535:
            errors.append(f"Port {self.server.port} is outside the allowed range (1024-65535)")

        if self.sync.debounce_seconds <= 0:
            errors.append("SYNC_DEBOUNCE_SECONDS must be positive")

        if self.sync.saved_reset_seconds < 0:
            errors.append("SYNC_SAVED_RESET_SECONDS must not be negative")

        for name in ('focus_minutes', 'short_break_minutes', 'long_break_minutes'):
            if getattr(self.timer, name) <= 0:
                errors.append(f"Timer setting {name} must be positive")

        if self.timezone_name not in pytz.all_timezones_set:
            errors.append(f"Unknown TIMEZONE: {self.timezone_name}")

        if bool(self.remote.supabase_url) != bool(self.remote.supabase_anon_key):
            logging.warning("⚠️ Only one of SUPABASE_URL / SUPABASE_ANON_KEY is set - remote sync disabled")

        if errors:
            raise ValueError("Configuration errors:\n" + "\n".join(f"• {error}" for error in errors))

    def _ensure_directories(self):
        """Create the directories the app writes to"""
        directories = [self.data_dir]
        if self.log_to_file:
            directories.append(self.log_dir)

        for directory in directories:
            directory.mkdir(parents=True, exist_ok=True)

    @property
    def timezone(self):
        return pytz.timezone(self.timezone_name)

    def get_logging_config(self) -> Dict[str, Any]:
        """dictConfig-compatible logging configuration"""
        handlers = ['console']
        if self.log_to_file:
            handlers.append('file')

        handler_defs = {
            'console': {
                'class': 'logging.StreamHandler',
                'level': self.log_level.value,
                'formatter': 'default',
                'stream': sys.stdout
            }
        }
        if self.log_to_file:
            handler_defs['file'] = {
                'class': 'logging.handlers.RotatingFileHandler',
                'level': self.log_level.value,
                'formatter': 'default',
                'filename': str(self.log_dir / f"studysync_{self.environment.value}.log"),
                'maxBytes': 10485760,  # 10MB
                'backupCount': 5,
                'encoding': 'utf-8'
            }

        return {
            'version': 1,
            'disable_existing_loggers': False,
            'formatters': {
                'default': {
                    'format': self.log_format,
                    'datefmt': '%Y-%m-%d %H:%M:%S'
                }
            },
            'handlers': handler_defs,
            'loggers': {
                '': {
                    'level': self.log_level.value,
                    'handlers': handlers,
                    'propagate': False
                },
                'aiohttp': {
                    'level': 'WARNING',
                    'handlers': handlers,
                    'propagate': False
                },
                'httpx': {
                    'level': 'WARNING',
                    'handlers': handlers,
                    'propagate': False
                },
                'openai': {
                    'level': 'WARNING',
                    'handlers': handlers,
                    'propagate': False
                },
                'uvicorn.access': {
                    'level': 'WARNING',
                    'handlers': handlers,
                    'propagate': False
                }
            }
        }

    def get_feature_status(self) -> Dict[str, bool]:
        """Feature flags derived from the configuration"""
        return self.features.copy()

    def to_dict(self) -> Dict[str, Any]:
        """Serialise the configuration with secrets masked"""
        return {
            'environment': self.environment.value,
            'server': {
                'host': self.server.host,
                'port': self.server.port,
                'debug_mode': self.server.debug_mode
            },
            'remote': {
                'url': self.remote.supabase_url,
                'anon_key': (self.remote.supabase_anon_key[:6] + "...") if self.remote.supabase_anon_key else None,
                'table': self.remote.table
            },
            'sync': {
                'debounce_seconds': self.sync.debounce_seconds,
                'flush_on_exit': self.sync.flush_on_exit
            },
            'features': self.features,
            'timezone': self.timezone_name,
            'data_dir': str(self.data_dir),
            'log_level': self.log_level.value
        }

# Global configuration instance
config = StudySyncConfig()

__all__ = [
    'config',
    'StudySyncConfig',
    'Environment',
    'LogLevel',
    'StorageConfig',
    'RemoteConfig',
    'AIConfig',
    'SyncConfig',
    'TimerConfig',
    'ServerConfig'
]
