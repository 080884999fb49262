from enum import Enum

from sqlalchemy import Column, String, Boolean, JSON, Text

from app.core.security import get_password_hash, verify_password
from .base import BaseModel


class UserRole(str, Enum):
    STUDENT = "student"
    TEACHER = "teacher"
    ADMIN = "admin"
    MODERATOR = "moderator"


class User(BaseModel):
    __tablename__ = "users"

    name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    institution_name = Column(String(255), nullable=False)
    class_name = Column("class", String(50), nullable=False)
    group_name = Column("group", String(100), nullable=True)
    role = Column(String(20), default=UserRole.STUDENT.value, nullable=False, index=True)

    # Profile
    bio = Column(Text, nullable=True)
    avatar = Column(String(500), nullable=True)
    badges = Column(JSON, default=list, nullable=False)
    bookmarks = Column(JSON, default=list, nullable=False)  # question ids

    is_verified_teacher = Column(Boolean, default=False, nullable=False)
    applied_for_paid = Column(Boolean, default=False, nullable=False)
    suspended = Column(Boolean, default=False, nullable=False)

    def set_password(self, plain_password: str) -> None:
        """Hash and store a new password. The only place the hash changes."""
        self.password_hash = get_password_hash(plain_password)

    def check_password(self, plain_password: str) -> bool:
        return verify_password(plain_password, self.password_hash)

    @property
    def profile(self) -> dict:
        return {
            "bio": self.bio or "",
            "avatar": self.avatar or "",
            "badges": list(self.badges or []),
            "bookmarks": list(self.bookmarks or []),
        }
