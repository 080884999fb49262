from app.models.base import Base
from app.models.user import User, UserRole
from app.models.question import Question
from app.models.answer import Answer
from app.models.school_class import SchoolClass
from app.models.resource import Resource
from app.models.book import Book

__all__ = [
    "Base",
    "User",
    "UserRole",
    "Question",
    "Answer",
    "SchoolClass",
    "Resource",
    "Book",
]
