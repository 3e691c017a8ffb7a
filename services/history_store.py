# history_store.py
"""
Key-value blob store used to persist exercise history between sessions.
Durable storage is left to the deployment; the in-memory store is the default.
"""

import json
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional


class HistoryStore(ABC):
    """Interface: load and save one JSON-serializable blob per key"""

    @abstractmethod
    def load(self, key: str) -> Optional[Any]:
        pass

    @abstractmethod
    def save(self, key: str, value: Any):
        pass


class InMemoryHistoryStore(HistoryStore):
    """
    Keeps serialized JSON strings in a dict, so callers get the same
    copy-on-read behavior a real blob store would give them.
    """

    def __init__(self):
        self._blobs: Dict[str, str] = {}

    def load(self, key: str) -> Optional[Any]:
        blob = self._blobs.get(key)
        if blob is None:
            return None
        return json.loads(blob)

    def save(self, key: str, value: Any):
        self._blobs[key] = json.dumps(value)
