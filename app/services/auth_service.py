import logging
from typing import Optional, Tuple

from fastapi import UploadFile
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth_context import AuthContext, ConfiguredAdmin, Credential, StoredUser
from app.core.config import settings
from app.core.exceptions import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from app.core.permissions import Action, ensure_allowed
from app.core.security import credentials_match
from app.models import User, UserRole
from app.repositories.user_repo import UserRepository
from app.schemas.auth import ProfileUpdateRequest
from app.services.attachment_service import AttachmentService
from app.services.session_service import SessionData, SessionStore

logger = logging.getLogger(__name__)

ADMIN_DISPLAY_NAME = "Admin"


class AuthService:
    """
    Service class for registration, login and profile operations.
    """

    def __init__(
        self,
        db: AsyncSession,
        sessions: Optional[SessionStore] = None,
        attachments: Optional[AttachmentService] = None,
    ):
        self.db = db
        self.user_repo = UserRepository(db)
        self.sessions = sessions
        self.attachments = attachments

    # ============================================================
    # User Registration
    # ============================================================
    async def register(
        self,
        *,
        name: Optional[str],
        email: Optional[str],
        password: Optional[str],
        institution_name: Optional[str],
        class_name: Optional[str],
        avatar: Optional[UploadFile] = None,
    ) -> Tuple[User, str]:
        """
        Register a new student and open a session for them.

        Returns:
            (user, session cookie value)

        Raises:
            ValidationError: If a required field is missing
            ConflictError: If email already exists
        """
        ensure_allowed(AuthContext.anonymous(), Action.REGISTER)

        if not all(v and str(v).strip() for v in (name, email, password, institution_name, class_name)):
            raise ValidationError("All fields are required.")

        email = email.strip().lower()
        if await self.user_repo.get_by_email(email):
            raise ConflictError("Email already registered.")

        avatar_url = None
        if avatar is not None and avatar.filename:
            avatar_url = await self.attachments.upload(avatar, "avatars")

        try:
            user = await self.user_repo.create_user(
                password=password,
                name=" ".join(name.split()),
                email=email,
                institution_name=institution_name.strip(),
                class_name=class_name.strip(),
                role=UserRole.STUDENT.value,
                avatar=avatar_url,
                badges=[],
                bookmarks=[],
            )
        except IntegrityError:
            # Lost a race with a concurrent registration for the same email
            await self.db.rollback()
            raise ConflictError("Email already registered.")

        logger.info(f"User registered: {user.id} ({user.email})")

        token = await self.sessions.create(SessionData(user_id=str(user.id)))
        return user, token

    # ============================================================
    # Credential check
    # ============================================================
    async def verify_credentials(self, email: str, password: str) -> Credential:
        """
        Resolve a login attempt to one credential variant.

        The configured administrator pair is checked first; only if it
        does not match is the stored user's password hash consulted.

        Raises:
            AuthenticationError: unknown email or wrong password
            PermissionDeniedError: the account is suspended
        """
        ensure_allowed(AuthContext.anonymous(), Action.LOGIN)

        email = (email or "").strip()
        if credentials_match(email, password, settings.ADMIN_EMAIL, settings.ADMIN_PASSWORD):
            admin_user = await self.user_repo.get_by_email(email.lower())
            return ConfiguredAdmin(email=email, user=admin_user)

        user = await self.user_repo.get_by_email(email.lower())
        if user is None:
            raise AuthenticationError("Invalid credentials")
        if user.suspended:
            logger.warning(f"Login refused for suspended user {user.id}")
            raise PermissionDeniedError("Your account is suspended. Please contact support.")
        if not user.check_password(password):
            logger.warning(f"Failed login for {email}")
            raise AuthenticationError("Invalid credentials")
        return StoredUser(user=user)

    # ============================================================
    # Login / Logout
    # ============================================================
    async def login(
        self,
        email: str,
        password: str,
        previous_session_id: Optional[str] = None,
    ) -> Tuple[Optional[User], str]:
        """
        Authenticate and open a fresh session.

        Returns:
            (user or None for a flag-only admin session, session cookie value)
        """
        credential = await self.verify_credentials(email, password)

        if isinstance(credential, ConfiguredAdmin):
            user = credential.user
            data = SessionData(
                user_id=str(user.id) if user else None,
                is_admin=True,
            )
        else:
            user = credential.user
            data = SessionData(
                user_id=str(user.id),
                is_moderator=user.role == UserRole.MODERATOR.value,
            )

        await self.sessions.destroy(previous_session_id)
        token = await self.sessions.create(data)
        logger.info(f"Login: {email} (admin={data.is_admin}, moderator={data.is_moderator})")
        return user, token

    async def admin_login(self, email: str, password: str, previous_session_id: Optional[str] = None) -> str:
        """
        Fixed-credential login for the admin panel. Stored users are not consulted.
        """
        if not credentials_match(email, password, settings.ADMIN_EMAIL, settings.ADMIN_PASSWORD):
            raise AuthenticationError("Invalid admin credentials")
        await self.sessions.destroy(previous_session_id)
        logger.info("Admin panel login")
        return await self.sessions.create(SessionData(is_admin=True))

    async def logout(self, actor: AuthContext) -> None:
        await self.sessions.destroy(actor.session_id)
        logger.info(f"Logout: user {actor.user_id} (admin={actor.is_admin})")

    # ============================================================
    # Current user and profile
    # ============================================================
    async def get_current_user(self, actor: AuthContext) -> User:
        if actor.user_id is None:
            raise AuthenticationError("Not logged in")
        user = await self.user_repo.get_by_id(actor.user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def update_profile(self, actor: AuthContext, data: ProfileUpdateRequest) -> User:
        ensure_allowed(actor, Action.UPDATE_PROFILE)
        user = await self.get_current_user(actor)

        if not data.name or not data.institution_name:
            raise ValidationError("Institution Name and Name are required.")
        is_admin_user = user.role == UserRole.ADMIN.value
        if not is_admin_user and not data.class_name:
            raise ValidationError("Class is required.")

        user.name = data.name
        user.institution_name = data.institution_name
        user.class_name = data.class_name or "-"
        user.group_name = data.group_name
        user.bio = data.bio

        user = await self.user_repo.save(user)
        logger.info(f"Profile updated: {user.id}")
        return user

    async def update_avatar(self, actor: AuthContext, avatar: Optional[UploadFile]) -> User:
        ensure_allowed(actor, Action.UPDATE_PROFILE)
        if avatar is None or not avatar.filename:
            raise ValidationError("No file uploaded")
        user = await self.get_current_user(actor)

        previous = user.avatar
        user.avatar = await self.attachments.upload(avatar, "avatars")
        user = await self.user_repo.save(user)

        if previous:
            await self.attachments.discard(previous)
        logger.info(f"Avatar updated: {user.id}")
        return user

    # ============================================================
    # Admin bootstrap
    # ============================================================
    async def ensure_admin_user(self) -> Optional[User]:
        """
        Make sure the configured administrator has a stored user record.
        Admin answers are attributed to this record.
        """
        if not settings.admin_configured:
            return None

        email = settings.ADMIN_EMAIL.strip().lower()
        admin_user = await self.user_repo.get_by_email(email)
        if admin_user is not None:
            # Keep the stored hash in step with a rotated ADMIN_PASSWORD
            if not admin_user.check_password(settings.ADMIN_PASSWORD):
                admin_user.set_password(settings.ADMIN_PASSWORD)
                admin_user = await self.user_repo.save(admin_user)
                logger.info("Stored admin password re-synced with configuration")
            return admin_user

        try:
            admin_user = await self.user_repo.create_user(
                password=settings.ADMIN_PASSWORD,
                name=ADMIN_DISPLAY_NAME,
                email=email,
                institution_name="Other",
                class_name="-",
                role=UserRole.ADMIN.value,
                bio="",
                avatar="",
                badges=[],
                bookmarks=[],
            )
        except IntegrityError:
            await self.db.rollback()
            return await self.user_repo.get_by_email(email)

        logger.info("Admin user created in DB")
        return admin_user
