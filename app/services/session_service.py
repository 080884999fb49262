"""
Session Service

Server-side sessions kept in Redis. The browser only holds a signed
token naming the session id; the capability flags live here.
"""

import json
import logging
from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from typing import Optional

from redis.asyncio import Redis

from app.core.config import settings
from app.core.security import create_session_token, new_session_id, verify_session_token
from app.db.redis import session_key

logger = logging.getLogger(__name__)


@dataclass
class SessionData:
    user_id: Optional[str] = None
    is_admin: bool = False
    is_moderator: bool = False
    issued_at: Optional[str] = None


class SessionStore:
    """
    Create, read and destroy sessions.

    Sessions expire a fixed SESSION_TTL_HOURS after issuance; reading a
    session does not extend it.
    """

    def __init__(self, redis: Redis, ttl_seconds: int = settings.SESSION_TTL_SECONDS):
        self.redis = redis
        self.ttl_seconds = ttl_seconds

    async def create(self, data: SessionData) -> str:
        """
        Persist a new session and return the signed cookie value.
        """
        session_id = new_session_id()
        data.issued_at = datetime.now(timezone.utc).isoformat()
        await self.redis.set(session_key(session_id), json.dumps(asdict(data)), ex=self.ttl_seconds)
        logger.debug(f"Session created for user {data.user_id} (admin={data.is_admin})")
        return create_session_token(session_id)

    async def resolve(self, token: Optional[str]) -> Optional[tuple]:
        """
        Return ``(session_id, SessionData)`` for a valid token, else None.
        """
        if not token:
            return None
        session_id = verify_session_token(token)
        if not session_id:
            return None
        raw = await self.redis.get(session_key(session_id))
        if raw is None:
            return None
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        try:
            payload = json.loads(raw)
        except ValueError:
            logger.warning(f"Discarding unreadable session {session_id[:8]}...")
            await self.destroy(session_id)
            return None
        return session_id, SessionData(**payload)

    async def destroy(self, session_id: Optional[str]) -> None:
        if session_id:
            await self.redis.delete(session_key(session_id))
