from app.repositories.base import BaseRepository
from app.repositories.user_repo import UserRepository
from app.repositories.question_repo import QuestionRepository, AnswerRepository
from app.repositories.catalog_repo import (
    SchoolClassRepository,
    ResourceRepository,
    BookRepository,
)

__all__ = [
    "BaseRepository",
    "UserRepository",
    "QuestionRepository",
    "AnswerRepository",
    "SchoolClassRepository",
    "ResourceRepository",
    "BookRepository",
]
