"""
Broadcast queue: the admin API enqueues broadcast ids, the fan-out worker drains them.

Redis lists back the production queue; an in-process deque covers tests and
single-process deployments.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Optional, Protocol

import redis
from redis import exceptions as redis_exceptions

logger = logging.getLogger(__name__)


class JobQueue(Protocol):
    def enqueue(self, broadcast_id: str) -> None:
        ...

    def dequeue(
        self, *, block: bool = True, timeout: Optional[int] = None
    ) -> Optional[str]:
        ...

    def size(self) -> int:
        ...


@dataclass
class InMemoryJobQueue:
    items: deque = field(default_factory=deque)

    def enqueue(self, broadcast_id: str) -> None:
        self.items.append(broadcast_id)

    def dequeue(
        self, *, block: bool = True, timeout: Optional[int] = None
    ) -> Optional[str]:
        return self.items.popleft() if self.items else None

    def size(self) -> int:
        return len(self.items)


@dataclass
class RedisJobQueue:
    url: str
    queue_key: str = "nwu:broadcasts"

    def __post_init__(self):
        self._connect()

    def _connect(self) -> None:
        self.client = redis.Redis.from_url(self.url, decode_responses=True)

    def enqueue(self, broadcast_id: str) -> None:
        self.client.rpush(self.queue_key, broadcast_id)

    def dequeue(
        self, *, block: bool = True, timeout: Optional[int] = None
    ) -> Optional[str]:
        try:
            if not block:
                return self.client.lpop(self.queue_key)
            popped = self.client.blpop([self.queue_key], timeout=timeout or 0)
            return popped[1] if popped else None
        except redis_exceptions.ConnectionError:
            # Managed Redis drops idle connections; the caller polls again.
            logger.warning("Redis connection lost; reconnecting")
            self._connect()
            return None

    def size(self) -> int:
        return int(self.client.llen(self.queue_key))
