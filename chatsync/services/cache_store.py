"""Local warm-start cache for the merged message list and the user's own profile.

Everything here fails soft: a broken or missing cache yields an empty list
(or ``None``) and a failed write is logged, never raised. The cache is an
optimisation for instant display, not a source of truth.
"""
from __future__ import annotations

import json
import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Iterable

from pydantic import TypeAdapter

from ..schemas import LocalProfile, Message

logger = logging.getLogger(__name__)

_MESSAGE_LIST = TypeAdapter(list[Message])


class CacheError(RuntimeError):
    """Raised by a key-value backend that cannot read or write a key."""


class KeyValueStore(ABC):
    """String-keyed blob persistence."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        ...


class MemoryKeyValueStore(KeyValueStore):
    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value


class JsonFileKeyValueStore(KeyValueStore):
    """One UTF-8 file per key inside ``directory``, replaced atomically on write."""

    def __init__(self, directory: Path | str) -> None:
        self.directory = Path(directory).expanduser()

    def _path(self, key: str) -> Path:
        safe = "".join(ch if ch.isalnum() or ch in "-_." else "_" for ch in key)
        return self.directory / f"{safe}.json"

    def get(self, key: str) -> str | None:
        try:
            return self._path(key).read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise CacheError(f"Cannot read cache key {key}") from exc

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as handle:
                handle.write(value)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_path, path)
        except OSError as exc:
            raise CacheError(f"Cannot write cache key {key}") from exc


def _dumps(payload: Any) -> str:
    # Stable key order and separators keep load-then-save byte-identical.
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


class LocalCacheStore:
    def __init__(
        self,
        backend: KeyValueStore,
        *,
        history_key: str = "chat_history",
        profile_key: str = "my_profile",
    ) -> None:
        self.backend = backend
        self.history_key = history_key
        self.profile_key = profile_key

    def load_messages(self) -> list[Message]:
        try:
            raw = self.backend.get(self.history_key)
            if not raw:
                return []
            return _MESSAGE_LIST.validate_python(json.loads(raw))
        except Exception:
            logger.exception("Failed to load cached messages from %s", self.history_key)
            return []

    def save_messages(self, messages: Iterable[Message]) -> None:
        try:
            payload = [message.model_dump(mode="json") for message in messages]
            self.backend.set(self.history_key, _dumps(payload))
        except Exception:
            logger.exception("Failed to persist cached messages to %s", self.history_key)

    def load_profile(self) -> LocalProfile | None:
        try:
            raw = self.backend.get(self.profile_key)
            if not raw:
                return None
            return LocalProfile.model_validate_json(raw)
        except Exception:
            logger.exception("Failed to load cached profile from %s", self.profile_key)
            return None

    def save_profile(self, profile: LocalProfile) -> None:
        try:
            self.backend.set(self.profile_key, _dumps(profile.model_dump(mode="json")))
        except Exception:
            logger.exception("Failed to persist cached profile to %s", self.profile_key)


__all__ = [
    "CacheError",
    "JsonFileKeyValueStore",
    "KeyValueStore",
    "LocalCacheStore",
    "MemoryKeyValueStore",
]
