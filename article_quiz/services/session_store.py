import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from pydantic import ValidationError
from redis.asyncio import Redis
from redis.exceptions import LockError

from ..domain.errors import SessionBusyError
from ..schemas.session_schemas import SessionSnapshot

logger = logging.getLogger(__name__)

REDIS_PREFIX = "quiz:session:"


class SessionStore:
    """
    Keeps live quiz sessions in Redis between HTTP requests.

    Every request rebuilds its session from the snapshot, so requests that
    change a session hold ``lock(session_id)`` across restore, mutation and
    save.
    """

    def __init__(
        self,
        redis: Redis,
        ttl_seconds: int = 6 * 60 * 60,
        lock_timeout: float = 60.0,
        lock_wait: float = 10.0,
    ) -> None:
        self.redis = redis
        self.ttl_seconds = ttl_seconds
        self.lock_timeout = lock_timeout
        self.lock_wait = lock_wait

    def k_session(self, session_id: str) -> str:
        return f"{REDIS_PREFIX}{session_id}"

    def k_lock(self, session_id: str) -> str:
        return f"{REDIS_PREFIX}{session_id}:lock"

    @asynccontextmanager
    async def lock(self, session_id: str) -> AsyncIterator[None]:
        lock = self.redis.lock(
            self.k_lock(session_id),
            timeout=self.lock_timeout,
            blocking_timeout=self.lock_wait,
        )
        try:
            acquired = await lock.acquire()
        except LockError as exc:
            raise SessionBusyError(f"session {session_id} is busy") from exc
        if not acquired:
            raise SessionBusyError(f"session {session_id} is busy")
        try:
            yield
        finally:
            try:
                await lock.release()
            except LockError:
                # the lock expired while held; whoever holds it now keeps it
                logger.warning("Lock on session %s expired before release", session_id)

    async def save(self, snapshot: SessionSnapshot) -> None:
        await self.redis.set(self.k_session(snapshot.id), snapshot.model_dump_json(), ex=self.ttl_seconds)

    async def load(self, session_id: str) -> Optional[SessionSnapshot]:
        raw = await self.redis.get(self.k_session(session_id))
        if raw is None:
            return None
        try:
            return SessionSnapshot.model_validate_json(raw)
        except ValidationError as exc:
            # a snapshot we cannot read is as good as an expired one
            logger.warning("Dropping unreadable session snapshot %s: %s", session_id, exc)
            await self.redis.delete(self.k_session(session_id))
            return None

    async def delete(self, session_id: str) -> None:
        await self.redis.delete(self.k_session(session_id))
