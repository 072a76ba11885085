"""
Session store for admin logins.

Supports an in-memory fallback for tests/local runs and a Redis-backed
implementation for production.
"""

from __future__ import annotations

import secrets
import time
from dataclasses import dataclass, field
from typing import Protocol

import redis
from redis import exceptions as redis_exceptions


def new_token() -> str:
    return secrets.token_urlsafe(32)


class SessionStore(Protocol):
    """Minimal interface for issuing and checking session tokens."""

    def create(self, subject: str) -> str:
        ...

    def is_valid(self, token: str) -> bool:
        ...

    def delete(self, token: str) -> None:
        ...


@dataclass
class InMemorySessionStore:
    """Token -> (subject, expiry) map for testing/dev."""

    ttl_seconds: int = 60 * 60 * 12
    sessions: dict[str, tuple[str, float]] = field(default_factory=dict)

    def create(self, subject: str) -> str:
        token = new_token()
        self.sessions[token] = (subject, time.time() + self.ttl_seconds)
        return token

    def is_valid(self, token: str) -> bool:
        entry = self.sessions.get(token)
        if not entry:
            return False
        if entry[1] < time.time():
            self.sessions.pop(token, None)
            return False
        return True

    def delete(self, token: str) -> None:
        self.sessions.pop(token, None)


@dataclass
class RedisSessionStore:
    """Redis-backed sessions using keys with a TTL."""

    url: str
    ttl_seconds: int = 60 * 60 * 12
    key_prefix: str = "ecovibe:session:"

    def __post_init__(self):
        self.client = redis.Redis.from_url(self.url)

    def _key(self, token: str) -> str:
        return f"{self.key_prefix}{token}"

    def create(self, subject: str) -> str:
        token = new_token()
        self.client.set(self._key(token), subject, ex=self.ttl_seconds)
        return token

    def is_valid(self, token: str) -> bool:
        try:
            return bool(self.client.exists(self._key(token)))
        except redis_exceptions.ConnectionError:
            # Connection resets can happen on managed Redis. Treat as logged
            # out and reconnect for the next request.
            self.client = redis.Redis.from_url(self.url)
            return False

    def delete(self, token: str) -> None:
        self.client.delete(self._key(token))
