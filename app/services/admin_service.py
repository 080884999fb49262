"""
Admin Service

User administration: listing, suspension, deletion and moderator
promotion/demotion. Every operation requires the isAdmin flag.
"""

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth_context import AuthContext
from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.core.permissions import Action, ensure_allowed
from app.models import User, UserRole
from app.repositories.user_repo import UserRepository
from app.schemas.admin import ModeratorUpdateRequest

logger = logging.getLogger(__name__)

MANAGED_ROLES = (UserRole.STUDENT.value, UserRole.MODERATOR.value)


class AdminService:
    """
    Service class for admin-only operations.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.user_repo = UserRepository(db)

    async def _get_user(self, user_id: UUID) -> User:
        user = await self.user_repo.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def list_users(self, actor: AuthContext) -> List[User]:
        """Students and moderators, newest first."""
        ensure_allowed(actor, Action.ADMINISTER)
        return await self.user_repo.list_by_roles(MANAGED_ROLES)

    async def list_moderators(self, actor: AuthContext) -> List[User]:
        ensure_allowed(actor, Action.ADMINISTER)
        return await self.user_repo.list_by_roles([UserRole.MODERATOR.value])

    async def delete_user(self, actor: AuthContext, user_id: UUID) -> None:
        ensure_allowed(actor, Action.ADMINISTER)
        if not await self.user_repo.delete(user_id):
            raise NotFoundError("User not found")
        logger.info(f"User deleted by admin: {user_id}")

    async def set_suspended(self, actor: AuthContext, user_id: UUID, suspend: bool) -> User:
        ensure_allowed(actor, Action.ADMINISTER)
        user = await self._get_user(user_id)
        user.suspended = bool(suspend)
        user = await self.user_repo.save(user)
        logger.info(f"User {user_id} {'suspended' if suspend else 'unsuspended'}")
        return user

    async def add_moderator(self, actor: AuthContext, email: str, password: Optional[str] = None) -> User:
        """
        Promote an existing user, or create a new moderator account
        when no user has this email (a password is then required).
        """
        ensure_allowed(actor, Action.ADMINISTER)
        email = (email or "").strip().lower()
        if not email:
            raise ValidationError("Email required")

        user = await self.user_repo.get_by_email(email)
        if user is not None:
            if user.role == UserRole.MODERATOR.value:
                raise ValidationError("User is already a moderator")
            user.role = UserRole.MODERATOR.value
            if password:
                user.set_password(password)
            user = await self.user_repo.save(user)
            logger.info(f"User promoted to moderator: {user.id}")
            return user

        if not password:
            raise ValidationError("Password required to create new moderator")

        try:
            user = await self.user_repo.create_user(
                password=password,
                name=email.split("@")[0],
                email=email,
                institution_name="N/A",
                class_name="N/A",
                role=UserRole.MODERATOR.value,
                badges=[],
                bookmarks=[],
            )
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("Email already registered.")
        logger.info(f"Moderator added: {user.id}")
        return user

    async def remove_moderator(self, actor: AuthContext, user_id: UUID) -> User:
        ensure_allowed(actor, Action.ADMINISTER)
        user = await self._get_user(user_id)
        if user.role != UserRole.MODERATOR.value:
            raise ValidationError("User is not a moderator")
        user.role = UserRole.STUDENT.value
        user = await self.user_repo.save(user)
        logger.info(f"Moderator privileges removed: {user_id}")
        return user

    async def update_moderator(self, actor: AuthContext, user_id: UUID, data: ModeratorUpdateRequest) -> User:
        ensure_allowed(actor, Action.ADMINISTER)
        user = await self.user_repo.get_by_id(user_id)
        if user is None or user.role != UserRole.MODERATOR.value:
            raise NotFoundError("Moderator not found")

        if data.email is not None:
            email = data.email.strip().lower()
            existing = await self.user_repo.get_by_email(email)
            if existing is not None and existing.id != user.id:
                raise ConflictError("Email already registered.")
            user.email = email
        if data.name is not None:
            user.name = data.name
        if data.institution_name is not None:
            user.institution_name = data.institution_name
        if data.class_name is not None:
            user.class_name = data.class_name
        if data.password:
            user.set_password(data.password)

        user = await self.user_repo.save(user)
        logger.info(f"Moderator updated: {user_id}")
        return user
