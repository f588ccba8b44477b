"""Redis implementation of PhraseStore.

It's the default implementation and satisfies the PhraseStore protocol.

Key layout (``<p>`` is the configured key prefix):
    <p>:next_id                  counter used to assign record ids
    <p>:record:<id>              hash holding one record
    <p>:user:<uid>:phrases       hash phrase -> id of the active record
    <p>:user:<uid>:active        set of active record ids
    <p>:user:<uid>:updated       sorted set id -> update_time (active only)

A user never holds more than the quota of active records, so prefix and
top-N queries load the user's active set and filter in Python.
"""

import functools
import logging
from typing import Any, Callable, TypeVar

import redis

from phrase_completion.config import get_redis_client, settings
from phrase_completion.entities import (
    PHRASE_PREFIX_LENGTH,
    PhraseRecord,
    RecordState,
    SourceType,
)
from phrase_completion.exceptions import (
    DuplicatePhraseError,
    RecordNotFoundError,
    StoreUnavailableError,
)
from phrase_completion.scoring import eviction_key, store_order_key

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def _store_call(fn: F) -> F:
    """Translate Redis connectivity failures into StoreUnavailableError."""

    @functools.wraps(fn)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return fn(*args, **kwargs)
        except (redis.exceptions.ConnectionError, redis.exceptions.TimeoutError) as e:
            logger.error("Redis call %s failed: %s", fn.__name__, e)
            raise StoreUnavailableError() from e

    return wrapper  # type: ignore[return-value]


class RedisPhraseRepository:
    """Redis implementation of the phrase store.

    This class satisfies the PhraseStore protocol through structural
    typing - no explicit inheritance needed.

    Atomic operations use WATCH/MULTI transactions:
    - increment_usage watches the record hash
    - insert watches the user's phrase index, so two concurrent inserts of
      the same phrase cannot both become active
    """

    def __init__(
        self,
        redis_client: redis.Redis | None = None,
        key_prefix: str | None = None,
    ) -> None:
        """Initialize the Redis phrase repository.

        Args:
            redis_client: Redis client instance (decode_responses=True). If None, creates default.
            key_prefix: Namespace for all keys. Defaults to settings.
        """
        self._client = redis_client or get_redis_client()
        self._prefix = key_prefix or settings.phrase_key_prefix

    @classmethod
    def create(cls, key_prefix: str | None = None) -> "RedisPhraseRepository":
        """Factory method to create RedisPhraseRepository with defaults.

        Args:
            key_prefix: Key namespace. If None, uses settings.

        Returns:
            Configured RedisPhraseRepository
        """
        return cls(key_prefix=key_prefix)

    # Keys

    def _next_id_key(self) -> str:
        return f"{self._prefix}:next_id"

    def _record_key(self, record_id: int | str) -> str:
        return f"{self._prefix}:record:{record_id}"

    def _phrases_key(self, user_id: str) -> str:
        return f"{self._prefix}:user:{user_id}:phrases"

    def _active_key(self, user_id: str) -> str:
        return f"{self._prefix}:user:{user_id}:active"

    def _updated_key(self, user_id: str) -> str:
        return f"{self._prefix}:user:{user_id}:updated"

    # Serialization

    @staticmethod
    def _to_mapping(record: PhraseRecord) -> dict[str, str | int]:
        return {
            "id": record.id,
            "user_id": record.user_id,
            "phrase": record.phrase,
            "phrase_prefix": record.phrase_prefix,
            "frequency": record.frequency,
            "last_used_at": record.last_used_at,
            "source_type": record.source_type.value,
            "category": record.category or "",
            "create_time": record.create_time,
            "update_time": record.update_time,
            "state": record.state.value,
            "delete_time": "" if record.delete_time is None else record.delete_time,
        }

    @staticmethod
    def _to_record(data: dict[str, str]) -> PhraseRecord:
        return PhraseRecord(
            id=int(data["id"]),
            user_id=data["user_id"],
            phrase=data["phrase"],
            phrase_prefix=data["phrase_prefix"],
            frequency=int(data["frequency"]),
            last_used_at=int(data["last_used_at"]),
            source_type=SourceType(data["source_type"]),
            category=data.get("category") or None,
            create_time=int(data["create_time"]),
            update_time=int(data["update_time"]),
            state=RecordState(data["state"]),
            delete_time=int(data["delete_time"]) if data.get("delete_time") else None,
        )

    def _load(self, record_ids: list[str] | list[int]) -> list[PhraseRecord]:
        """Load records by id, dropping missing and retired ones."""
        if not record_ids:
            return []
        pipe = self._client.pipeline(transaction=False)
        for record_id in record_ids:
            pipe.hgetall(self._record_key(record_id))
        records = []
        for data in pipe.execute():
            if not data:
                continue
            record = self._to_record(data)
            if record.is_active:
                records.append(record)
        return records

    def _load_active(self, user_id: str) -> list[PhraseRecord]:
        return self._load(list(self._client.smembers(self._active_key(user_id))))

    # PhraseStore

    @_store_call
    def find_by_user_and_exact_phrase(self, user_id: str, phrase: str) -> PhraseRecord | None:
        record_id = self._client.hget(self._phrases_key(user_id), phrase)
        if record_id is None:
            return None
        records = self._load([record_id])
        return records[0] if records else None

    @_store_call
    def find_by_user_and_prefix(self, user_id: str, prefix: str, limit: int) -> list[PhraseRecord]:
        # phrase_prefix narrows the candidates before the full-string match
        head = prefix[:PHRASE_PREFIX_LENGTH]
        matches = [
            r
            for r in self._load_active(user_id)
            if r.phrase_prefix.startswith(head) and r.phrase.startswith(prefix)
        ]
        matches.sort(key=store_order_key)
        return matches[:limit]

    @_store_call
    def count_active(self, user_id: str) -> int:
        return int(self._client.scard(self._active_key(user_id)))

    @_store_call
    def find_eviction_candidates(self, user_id: str, count: int) -> list[PhraseRecord]:
        if count <= 0:
            return []
        candidates = self._load_active(user_id)
        candidates.sort(key=eviction_key)
        return candidates[:count]

    @_store_call
    def retire(self, user_id: str, record_ids: list[int], deleted_at: int) -> int:
        owned = [r for r in self._load(record_ids) if r.user_id == user_id]
        if not owned:
            return 0

        phrases_key = self._phrases_key(user_id)
        pipe = self._client.pipeline(transaction=True)
        for record in owned:
            retired = record.retired(deleted_at)
            pipe.hset(
                self._record_key(record.id),
                mapping={
                    "state": retired.state.value,
                    "delete_time": deleted_at,
                    "update_time": retired.update_time,
                },
            )
            pipe.hdel(phrases_key, record.phrase)
            pipe.srem(self._active_key(user_id), record.id)
            pipe.zrem(self._updated_key(user_id), record.id)
        pipe.execute()
        return len(owned)

    @_store_call
    def increment_usage(self, record_id: int, last_used_at: int) -> PhraseRecord:
        key = self._record_key(record_id)

        def _bump(pipe: redis.client.Pipeline) -> PhraseRecord:
            data = pipe.hgetall(key)
            if not data or data.get("state") != RecordState.ACTIVE.value:
                raise RecordNotFoundError(record_id)
            updated = self._to_record(data).used_again(last_used_at)
            pipe.multi()
            pipe.hincrby(key, "frequency", 1)
            pipe.hset(
                key,
                mapping={
                    "last_used_at": updated.last_used_at,
                    "update_time": updated.update_time,
                },
            )
            pipe.zadd(self._updated_key(updated.user_id), {str(record_id): updated.update_time})
            return updated

        return self._client.transaction(_bump, key, value_from_callable=True)

    @_store_call
    def insert(self, record: PhraseRecord) -> PhraseRecord:
        stored = record.with_id(int(self._client.incr(self._next_id_key())))
        phrases_key = self._phrases_key(record.user_id)

        def _insert(pipe: redis.client.Pipeline) -> PhraseRecord:
            existing = pipe.hget(phrases_key, record.phrase)
            if existing is not None:
                raise DuplicatePhraseError(record.user_id, record.phrase, int(existing))
            pipe.multi()
            pipe.hset(self._record_key(stored.id), mapping=self._to_mapping(stored))
            pipe.hset(phrases_key, record.phrase, stored.id)
            pipe.sadd(self._active_key(record.user_id), stored.id)
            pipe.zadd(self._updated_key(record.user_id), {str(stored.id): stored.update_time})
            return stored

        return self._client.transaction(_insert, phrases_key, value_from_callable=True)

    @_store_call
    def find_updated_since(self, user_id: str, since: int) -> list[PhraseRecord]:
        record_ids = self._client.zrangebyscore(self._updated_key(user_id), f"({since}", "+inf")
        records = [r for r in self._load(list(record_ids)) if r.update_time > since]
        records.sort(key=lambda r: (r.update_time, r.id))
        return records

    def health_check(self) -> bool:
        """Check if Redis is accessible.

        Returns:
            True if healthy, False otherwise
        """
        try:
            return bool(self._client.ping())
        except redis.exceptions.RedisError:
            return False

    @_store_call
    def get_stats(self) -> dict:
        last_id = self._client.get(self._next_id_key())
        return {
            "backend": "redis",
            "key_prefix": self._prefix,
            "records_created": int(last_id) if last_id else 0,
        }

    @property
    def client(self) -> redis.Redis:
        """Get the Redis client."""
        return self._client
