"""Redis-backed storage port."""

from __future__ import annotations

import logging

import redis

from ..errors import PersistenceError

logger = logging.getLogger("commandbox")


class RedisStoragePort:
    """Read and write command store blobs as plain Redis string values."""

    def __init__(self, redis_client: redis.Redis, *, ttl_seconds: int | None = None) -> None:
        self.redis = redis_client
        self.ttl_seconds = ttl_seconds

    @classmethod
    def from_url(cls, redis_url: str, *, ttl_seconds: int | None = None) -> "RedisStoragePort":
        return cls(redis.Redis.from_url(redis_url), ttl_seconds=ttl_seconds)

    def read(self, key: str) -> str | None:
        try:
            raw = self.redis.get(key)
        except redis.RedisError as exc:
            raise PersistenceError(f"Redis read failed for {key}: {exc}", key=key, operation="read") from exc
        if raw is None:
            return None
        if isinstance(raw, bytes):
            try:
                raw = raw.decode("utf-8")
            except UnicodeDecodeError as exc:
                raise PersistenceError(f"Redis value for {key} is not valid UTF-8", key=key, operation="read") from exc
        return str(raw)

    def write(self, key: str, blob: str) -> None:
        try:
            if self.ttl_seconds:
                self.redis.set(key, blob, ex=self.ttl_seconds)
            else:
                self.redis.set(key, blob)
        except redis.RedisError as exc:
            raise PersistenceError(f"Redis write failed for {key}: {exc}", key=key, operation="write") from exc


__all__ = ["RedisStoragePort"]
