"""
Request identity.

The auth gate resolves every request to exactly one ``AuthContext``
and passes it explicitly to services and policy checks.
"""

from dataclasses import dataclass
from typing import Optional, Union
from uuid import UUID

from app.models.user import User, UserRole


@dataclass(frozen=True)
class AuthContext:
    """
    The resolved actor of a request.

    ``role`` and ``class_name`` are copied from the stored user record
    when the session names one.
    """
    user_id: Optional[UUID] = None
    is_admin: bool = False
    is_moderator: bool = False
    role: Optional[str] = None
    class_name: Optional[str] = None
    session_id: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None or self.is_admin

    @property
    def is_anonymous(self) -> bool:
        return not self.is_authenticated

    @property
    def acts_as_admin(self) -> bool:
        return self.is_admin or self.role == UserRole.ADMIN.value

    @property
    def acts_as_moderator(self) -> bool:
        return self.is_moderator or self.role == UserRole.MODERATOR.value

    @classmethod
    def anonymous(cls) -> "AuthContext":
        return cls()

    @classmethod
    def for_user(
        cls,
        user: User,
        *,
        is_admin: bool = False,
        is_moderator: bool = False,
        session_id: Optional[str] = None,
    ) -> "AuthContext":
        return cls(
            user_id=user.id,
            is_admin=is_admin,
            is_moderator=is_moderator,
            role=user.role,
            class_name=user.class_name,
            session_id=session_id,
        )


# ============================================================
# Credentials
# ============================================================

@dataclass(frozen=True)
class ConfiguredAdmin:
    """Login matched the fixed administrator credential pair."""
    email: str
    user: Optional[User] = None


@dataclass(frozen=True)
class StoredUser:
    """Login matched a stored user's password hash."""
    user: User


Credential = Union[ConfiguredAdmin, StoredUser]
