"""
Realtime data store abstraction (chat rooms and live message status).

Paths are slash-separated, e.g. ``chats/<conversationId>/messages/<messageId>``.
"""

from __future__ import annotations

import copy
import time
from dataclasses import dataclass, field
from typing import Any, Protocol

import firebase_admin
from firebase_admin import db as firebase_db

# Placeholder the realtime store replaces with its own clock on write.
SERVER_TIMESTAMP = {".sv": "timestamp"}


class RealtimeClient(Protocol):
    def set(self, path: str, value: Any) -> None:
        ...

    def update(self, path: str, values: dict) -> None:
        """Multi-path update; keys are paths relative to ``path``."""
        ...

    def get(self, path: str) -> Any:
        ...


def _split(path: str) -> list[str]:
    return [part for part in path.split("/") if part]


def _resolve(value: Any) -> Any:
    if value == SERVER_TIMESTAMP:
        return int(time.time() * 1000)
    if isinstance(value, dict):
        return {k: _resolve(v) for k, v in value.items()}
    return copy.deepcopy(value)


@dataclass
class InMemoryRealtimeClient:
    """Nested-dict stand-in for the realtime database."""

    data: dict = field(default_factory=dict)

    def _parent(self, parts: list[str]) -> dict:
        node = self.data
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = {}
                node[part] = child
            node = child
        return node

    def set(self, path: str, value: Any) -> None:
        parts = _split(path)
        if not parts:
            self.data = _resolve(value) if value is not None else {}
            return
        parent = self._parent(parts)
        if value is None:
            parent.pop(parts[-1], None)
        else:
            parent[parts[-1]] = _resolve(value)

    def update(self, path: str, values: dict) -> None:
        base = path.rstrip("/")
        for key, value in values.items():
            self.set(f"{base}/{key}", value)

    def get(self, path: str) -> Any:
        node: Any = self.data
        for part in _split(path):
            if not isinstance(node, dict) or part not in node:
                return None
            node = node[part]
        return copy.deepcopy(node)


class FirebaseRealtimeClient:
    def __init__(self, app: firebase_admin.App):
        self.app = app

    def set(self, path: str, value: Any) -> None:
        firebase_db.reference(path, app=self.app).set(value)

    def update(self, path: str, values: dict) -> None:
        firebase_db.reference(path, app=self.app).update(values)

    def get(self, path: str) -> Any:
        return firebase_db.reference(path, app=self.app).get()
