"""
Question Repository

Data access layer for Question and Answer models.
"""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.repositories.base import BaseRepository
from app.models import Question, Answer


class QuestionRepository(BaseRepository[Question]):
    """
    Repository for Question model.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(Question, db)

    async def list_filtered(
        self,
        class_name: Optional[str] = None,
        subject: Optional[str] = None,
    ) -> List[Question]:
        """
        Get questions, newest first, optionally filtered by class and tag.
        """
        stmt = select(Question)

        if class_name:
            stmt = stmt.where(Question.class_name == class_name)

        stmt = stmt.order_by(Question.created_at.desc())

        result = await self.db.execute(stmt)
        questions = list(result.scalars().all())

        # Tags live in a JSON list; containment is checked here so the
        # query stays portable across database backends.
        if subject:
            questions = [q for q in questions if subject in (q.subject or [])]

        return questions


class AnswerRepository(BaseRepository[Answer]):
    """
    Repository for Answer model.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(Answer, db)

    async def list_by_question(self, question_id: UUID) -> List[Answer]:
        result = await self.db.execute(
            select(Answer)
            .where(Answer.question_id == question_id)
            .order_by(Answer.created_at)
        )
        return list(result.scalars().all())
