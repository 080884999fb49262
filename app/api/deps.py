from fastapi import Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession
from redis.asyncio import Redis
from uuid import UUID
import logging

from app.core.auth_context import AuthContext
from app.core.config import settings
from app.core.exceptions import AuthenticationError
from app.core.permissions import Action, ensure_allowed
from app.db.database import get_db
from app.db.redis import get_redis
from app.repositories.user_repo import UserRepository
from app.services.attachment_service import AttachmentService
from app.services.session_service import SessionStore
from app.storage import get_storage

logger = logging.getLogger(__name__)


# =====================================================
# Collaborators
# =====================================================
async def get_session_store(redis: Redis = Depends(get_redis)) -> SessionStore:
    return SessionStore(redis)


def get_attachment_service() -> AttachmentService:
    return AttachmentService(get_storage())


# =====================================================
# Session cookie
# =====================================================
def set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        max_age=settings.SESSION_TTL_SECONDS,
        httponly=True,
        secure=settings.SESSION_COOKIE_SECURE,
        samesite=settings.SESSION_COOKIE_SAMESITE,
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(
        key=settings.SESSION_COOKIE_NAME,
        httponly=True,
        secure=settings.SESSION_COOKIE_SECURE,
        samesite=settings.SESSION_COOKIE_SAMESITE,
    )


# =====================================================
# Auth gate
# =====================================================
async def get_auth_context(
    request: Request,
    db: AsyncSession = Depends(get_db),
    sessions: SessionStore = Depends(get_session_store),
) -> AuthContext:
    """
    Resolve the request's session cookie to an AuthContext.

    A missing, forged, expired or logged-out session yields an
    anonymous context; endpoints that need an identity reject it.
    """
    token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    resolved = await sessions.resolve(token)
    if resolved is None:
        return AuthContext.anonymous()

    session_id, data = resolved
    if data.user_id:
        try:
            user = await UserRepository(db).get_by_id(UUID(data.user_id))
        except ValueError:
            user = None
        if user is not None:
            return AuthContext.for_user(
                user,
                is_admin=data.is_admin,
                is_moderator=data.is_moderator,
                session_id=session_id,
            )
        logger.warning(f"Session {session_id[:8]}... names a missing user {data.user_id}")

    return AuthContext(
        is_admin=data.is_admin,
        is_moderator=False,
        session_id=session_id,
    )


async def require_identity(actor: AuthContext = Depends(get_auth_context)) -> AuthContext:
    """Reject anonymous callers with 401."""
    if actor.is_anonymous:
        raise AuthenticationError("Unauthorized")
    return actor


async def require_moderator(actor: AuthContext = Depends(get_auth_context)) -> AuthContext:
    """Namespace gate: isAdmin or isModerator."""
    ensure_allowed(actor, Action.MODERATE)
    return actor


async def require_admin(actor: AuthContext = Depends(get_auth_context)) -> AuthContext:
    """Namespace gate: isAdmin only."""
    ensure_allowed(actor, Action.ADMINISTER)
    return actor
