#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
StudySync v1.0 - Key/Value Storage
Durable per-user storage of named JSON blobs

Every value lives under a namespaced key (``<namespace>-<name>``). Reads never
raise: a missing, unreadable or malformed value yields the caller's default.

Version: 1.0.0
"""

import json
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, TypeVar
from urllib.parse import quote, unquote
import copy
import logging

from config import config
from core.models import Identity, ValidationError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# ===== EXCEPTIONS =====

class StorageError(Exception):
    """Base storage failure"""
    pass

class StorageWriteError(StorageError):
    """A value could not be persisted"""
    pass

# ===== STATS =====

@dataclass
class StorageStats:
    load_count: int = 0
    save_count: int = 0
    error_count: int = 0
    last_save: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'load_count': self.load_count,
            'save_count': self.save_count,
            'error_count': self.error_count,
            'last_save': self.last_save,
        }

# ===== INTERFACE =====

class KeyValueStore(ABC):
    """Persistence capability injected into the session"""

    def __init__(self):
        self.stats = StorageStats()

    @abstractmethod
    def _read(self, key: str) -> Any:
        """Raw value for key; KeyError when absent"""
        pass

    @abstractmethod
    def _write(self, key: str, value: Any) -> None:
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        pass

    @abstractmethod
    def keys(self) -> List[str]:
        pass

    def load(self, key: str, default: Any = None) -> Any:
        """Stored value, or default when missing or unreadable"""
        self.stats.load_count += 1
        try:
            return self._read(key)
        except KeyError:
            return default
        except (OSError, ValueError) as e:
            self.stats.error_count += 1
            logger.warning(f"⚠️ Could not read '{key}', using default: {e}")
            return default

    def save(self, key: str, value: Any) -> None:
        try:
            json.dumps(value)
        except (TypeError, ValueError) as e:
            raise StorageWriteError(f"Value for '{key}' is not JSON serialisable: {e}")

        try:
            self._write(key, value)
        except OSError as e:
            self.stats.error_count += 1
            logger.error(f"❌ Failed to save '{key}': {e}")
            raise StorageWriteError(f"Failed to save '{key}': {e}")

        self.stats.save_count += 1
        self.stats.last_save = datetime.now().isoformat()

    def delete_prefix(self, prefix: str) -> int:
        removed = 0
        for key in self.keys():
            if key.startswith(prefix) and self.delete(key):
                removed += 1
        return removed

# ===== IMPLEMENTATIONS =====

class JsonFileStore(KeyValueStore):
    """One JSON file per key inside a data directory, written atomically"""

    def __init__(self, data_dir: Optional[Path] = None):
        super().__init__()
        self.data_dir = Path(data_dir or config.storage.data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.file_lock = threading.RLock()

    def _path(self, key: str) -> Path:
        return self.data_dir / f"{quote(key, safe='')}.json"

    def _read(self, key: str) -> Any:
        path = self._path(key)
        with self.file_lock:
            if not path.exists():
                raise KeyError(key)
            with open(path, 'r', encoding='utf-8') as f:
                return json.load(f)

    def _write(self, key: str, value: Any) -> None:
        path = self._path(key)
        temp_file = path.with_suffix('.tmp')
        with self.file_lock:
            try:
                with open(temp_file, 'w', encoding='utf-8') as f:
                    json.dump(value, f, ensure_ascii=False, indent=2)
                temp_file.replace(path)
            except OSError:
                if temp_file.exists():
                    temp_file.unlink()
                raise

    def delete(self, key: str) -> bool:
        path = self._path(key)
        with self.file_lock:
            if path.exists():
                path.unlink()
                return True
        return False

    def keys(self) -> List[str]:
        with self.file_lock:
            return sorted(unquote(p.stem) for p in self.data_dir.glob("*.json"))

class MemoryStore(KeyValueStore):
    """In-process store; values are deep-copied in and out"""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        super().__init__()
        self.data: Dict[str, Any] = copy.deepcopy(initial or {})

    def _read(self, key: str) -> Any:
        return copy.deepcopy(self.data[key])

    def _write(self, key: str, value: Any) -> None:
        self.data[key] = copy.deepcopy(value)

    def delete(self, key: str) -> bool:
        if key not in self.data:
            return False
        del self.data[key]
        return True

    def keys(self) -> List[str]:
        return sorted(self.data.keys())

# ===== NAMESPACES =====

def namespace_for(identity: Optional[Identity], prefix: Optional[str] = None) -> str:
    """Per-user key namespace, or the guest namespace when nobody is signed in"""
    prefix = prefix or config.storage.namespace_prefix
    if identity is None:
        return f"{prefix}-guest"
    return f"{prefix}-{identity.id}"

def scoped_key(namespace: str, name: str) -> str:
    return f"{namespace}-{name}"

def load_record(store: KeyValueStore, key: str, decoder: Callable[[Any], T],
                default: Callable[[], T]) -> T:
    """Load and decode a stored value, falling back to default() on any shape mismatch"""
    raw = store.load(key, None)
    if raw is None:
        return default()
    try:
        return decoder(raw)
    except (ValidationError, TypeError, ValueError, KeyError) as e:
        store.stats.error_count += 1
        logger.warning(f"⚠️ Stored value for '{key}' is malformed, using default: {e}")
        return default()

__all__ = [
    'StorageError',
    'StorageWriteError',
    'StorageStats',
    'KeyValueStore',
    'JsonFileStore',
    'MemoryStore',
    'namespace_for',
    'scoped_key',
    'load_record',
]
