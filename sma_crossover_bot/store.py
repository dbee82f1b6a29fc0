#!/usr/bin/env python3
"""State stores holding one BotState record per bot instance."""

from __future__ import annotations

import json
import os
import re
import tempfile
import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Protocol

from .errors import StateAlreadyExists, StateNotFound
from .state import BotState


class StateStore(Protocol):
    """Keyed storage with atomic read-modify-write per record."""

    def exists(self, bot_id: str) -> bool:
        ...

    def create(self, bot_id: str, state: BotState) -> None:
        ...

    def load(self, bot_id: str) -> BotState:
        ...

    def transaction(self, bot_id: str):
        """Yield a private copy of the record; commit it only if the block succeeds."""


class _TransactionalStore:
    """Shared transaction logic; subclasses provide raw read/write of serialized records."""

    def __init__(self) -> None:
        self._lock = threading.RLock()

    def _read(self, bot_id: str) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    def _write(self, bot_id: str, payload: Dict[str, Any]) -> None:
        raise NotImplementedError

    def exists(self, bot_id: str) -> bool:
        with self._lock:
            return self._read(bot_id) is not None

    def create(self, bot_id: str, state: BotState) -> None:
        with self._lock:
            if self._read(bot_id) is not None:
                raise StateAlreadyExists(f"Bot state '{bot_id}' already exists")
            self._write(bot_id, state.to_dict())

    def load(self, bot_id: str) -> BotState:
        with self._lock:
            payload = self._read(bot_id)
            if payload is None:
                raise StateNotFound(f"Bot state '{bot_id}' does not exist")
            return BotState.from_dict(payload)

    @contextmanager
    def transaction(self, bot_id: str) -> Iterator[BotState]:
        with self._lock:
            state = self.load(bot_id)
            yield state
            self._write(bot_id, state.to_dict())


class MemoryStateStore(_TransactionalStore):
    """Keeps serialized records in a dict so callers never share live objects."""

    def __init__(self) -> None:
        super().__init__()
        self._records: Dict[str, Dict[str, Any]] = {}

    def _read(self, bot_id: str) -> Optional[Dict[str, Any]]:
        payload = self._records.get(bot_id)
        return json.loads(json.dumps(payload)) if payload is not None else None

    def _write(self, bot_id: str, payload: Dict[str, Any]) -> None:
        self._records[bot_id] = json.loads(json.dumps(payload))

    def ids(self) -> List[str]:
        return sorted(self._records)


_SAFE_ID = re.compile(r"^[A-Za-z0-9._-]+$")


class JsonFileStateStore(_TransactionalStore):
    """One ``<bot_id>.json`` file per bot; commits replace the file atomically."""

    def __init__(self, directory: str) -> None:
        super().__init__()
        self.directory = directory
        os.makedirs(self.directory, exist_ok=True)

    def path_for(self, bot_id: str) -> str:
        if not _SAFE_ID.match(bot_id):
            raise ValueError(f"Bot id '{bot_id}' contains unsupported characters")
        return os.path.join(self.directory, f"{bot_id}.json")

    def _read(self, bot_id: str) -> Optional[Dict[str, Any]]:
        path = self.path_for(bot_id)
        if not os.path.exists(path):
            return None
        with open(path, "r", encoding="utf-8") as handle:
            payload = json.load(handle)
        if not isinstance(payload, dict):
            raise ValueError(f"State file {path} must contain a JSON object")
        return payload

    def _write(self, bot_id: str, payload: Dict[str, Any]) -> None:
        path = self.path_for(bot_id)
        fd, tmp_path = tempfile.mkstemp(prefix=f".{bot_id}.", suffix=".tmp", dir=self.directory)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(payload, handle, indent=2, sort_keys=True)
            os.replace(tmp_path, path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise
