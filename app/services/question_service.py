"""
Question Service

Business logic for questions and answers: posting with attachments,
voting, reporting and cascading deletion.
"""

import json
import logging
from typing import List, Optional, Sequence
from uuid import UUID

from fastapi import UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth_context import AuthContext
from app.core.exceptions import NotFoundError, UpstreamError, ValidationError
from app.core.permissions import Action, ensure_allowed
from app.core.voting import add_report, cast_vote
from app.models import Answer, Question, User
from app.repositories.question_repo import AnswerRepository, QuestionRepository
from app.services.attachment_service import AttachmentService, DeletionResult
from app.services.auth_service import AuthService

logger = logging.getLogger(__name__)

QUESTION_FOLDER = "questions"
ANSWER_FOLDER = "answers"


def parse_subject_tags(raw: Optional[str]) -> List[str]:
    """
    Subject tags arrive as a JSON-encoded list in a form field.
    A plain string is treated as a comma-separated list.
    """
    if raw is None or not str(raw).strip():
        return []
    try:
        value = json.loads(raw)
    except ValueError:
        value = str(raw).split(",")
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        raise ValidationError("subject must be a list of tags")
    tags = []
    for tag in value:
        tag = str(tag).strip()
        if tag and tag not in tags:
            tags.append(tag)
    return tags


class QuestionService:
    """
    Service class for question and answer operations.
    """

    def __init__(self, db: AsyncSession, attachments: AttachmentService):
        self.db = db
        self.question_repo = QuestionRepository(db)
        self.answer_repo = AnswerRepository(db)
        self.attachments = attachments

    # ============================================================
    # HELPERS
    # ============================================================

    async def get_question(self, question_id: UUID) -> Question:
        question = await self.question_repo.get_by_id(question_id)
        if question is None:
            raise NotFoundError("Question not found")
        return question

    async def get_answer(self, answer_id: UUID) -> Answer:
        answer = await self.answer_repo.get_by_id(answer_id)
        if answer is None:
            raise NotFoundError("Answer not found")
        return answer

    async def _commit(self, action: str) -> None:
        try:
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to {action}: {e}")
            raise UpstreamError(f"Failed to {action}", str(e))

    async def _answer_author_id(self, actor: AuthContext) -> UUID:
        """
        Admin sessions opened through the admin panel carry no user id;
        their answers are owned by the stored admin record.
        """
        if actor.user_id is not None:
            return actor.user_id
        admin_user = await AuthService(self.db).ensure_admin_user()
        if admin_user is None:
            raise UpstreamError("Administrator account is not configured")
        return admin_user.id

    # ============================================================
    # READ OPERATIONS
    # ============================================================

    async def list_questions(
        self,
        class_name: Optional[str] = None,
        subject: Optional[str] = None,
    ) -> List[Question]:
        return await self.question_repo.list_filtered(class_name=class_name, subject=subject)

    async def list_answers(self, question_id: UUID) -> List[Answer]:
        return await self.answer_repo.list_by_question(question_id)

    # ============================================================
    # CREATE OPERATIONS
    # ============================================================

    async def create_question(
        self,
        actor: AuthContext,
        *,
        title: Optional[str],
        description: Optional[str],
        class_name: Optional[str],
        subject: Optional[str],
        group_name: Optional[str] = None,
        files: Optional[Sequence[UploadFile]] = None,
    ) -> Question:
        """
        Post a question. Attachments are uploaded first; if the record
        cannot be stored afterwards the uploads are left in storage.
        """
        ensure_allowed(actor, Action.POST_QUESTION)

        if not title or not title.strip() or not description or not description.strip() or not class_name:
            raise ValidationError("Title, description and class are required.")
        tags = parse_subject_tags(subject)
        if not tags:
            raise ValidationError("At least one subject is required.")

        references = await self.attachments.upload_many(files, QUESTION_FOLDER)

        question = Question(
            title=title.strip(),
            description=description.strip(),
            class_name=class_name.strip(),
            group_name=group_name,
            subject=tags,
            files=references,
            author_id=actor.user_id,
            votes=[],
            reports=[],
        )
        self.db.add(question)
        await self._commit("save question")
        await self.db.refresh(question)

        logger.info(f"Question posted: {question.id} by {actor.user_id} ({len(references)} files)")
        return question

    async def create_answer(
        self,
        actor: AuthContext,
        question_id: UUID,
        *,
        content: Optional[str],
        files: Optional[Sequence[UploadFile]] = None,
    ) -> Answer:
        question = await self.get_question(question_id)
        ensure_allowed(actor, Action.POST_ANSWER, question)

        if not content or not content.strip():
            raise ValidationError("Answer content is required.")

        author_id = await self._answer_author_id(actor)
        references = await self.attachments.upload_many(files, ANSWER_FOLDER)

        answer = Answer(
            question_id=question.id,
            author_id=author_id,
            content=content.strip(),
            files=references,
            votes=[],
            reports=[],
        )
        question.answers.append(answer)
        await self._commit("save answer")
        await self.db.refresh(answer)

        logger.info(f"Answer posted: {answer.id} on question {question.id} by {author_id}")
        return answer

    # ============================================================
    # VOTES AND REPORTS
    # ============================================================
    # Votes are read, changed in memory and written back. Two requests
    # for the same (user, target) racing each other resolve to whichever
    # write the database applies last.

    async def vote_question(self, actor: AuthContext, question_id: UUID, value) -> Question:
        ensure_allowed(actor, Action.VOTE)
        question = await self.get_question(question_id)
        question.votes = cast_vote(question.votes, actor.user_id, value)
        await self._commit("record vote")
        return question

    async def vote_answer(self, actor: AuthContext, question_id: UUID, answer_id: UUID, value) -> Answer:
        ensure_allowed(actor, Action.VOTE)
        answer = await self._answer_of(question_id, answer_id)
        answer.votes = cast_vote(answer.votes, actor.user_id, value)
        await self._commit("record vote")
        return answer

    async def report_question(self, actor: AuthContext, question_id: UUID, reason: Optional[str]) -> Question:
        ensure_allowed(actor, Action.REPORT)
        question = await self.get_question(question_id)
        question.reports = add_report(question.reports, self._reporter(actor), reason)
        await self._commit("record report")
        logger.info(f"Question {question_id} reported by {self._reporter(actor)}")
        return question

    async def report_answer(self, actor: AuthContext, question_id: UUID, answer_id: UUID, reason: Optional[str]) -> Answer:
        ensure_allowed(actor, Action.REPORT)
        answer = await self._answer_of(question_id, answer_id)
        answer.reports = add_report(answer.reports, self._reporter(actor), reason)
        await self._commit("record report")
        logger.info(f"Answer {answer_id} reported by {self._reporter(actor)}")
        return answer

    @staticmethod
    def _reporter(actor: AuthContext) -> str:
        return str(actor.user_id) if actor.user_id is not None else "admin"

    async def _answer_of(self, question_id: UUID, answer_id: UUID) -> Answer:
        answer = await self.get_answer(answer_id)
        if answer.question_id != question_id:
            raise NotFoundError("Answer not found")
        return answer

    # ============================================================
    # DELETE OPERATIONS
    # ============================================================

    async def delete_question(self, actor: AuthContext, question_id: UUID) -> List[DeletionResult]:
        """
        Delete a question together with all of its answers.

        Attached files of the question and of every answer are removed
        from storage first, best-effort; the records are deleted even
        when some of those removals fail.

        Returns:
            One DeletionResult per attempted file removal
        """
        ensure_allowed(actor, Action.DELETE_CONTENT)
        question = await self.get_question(question_id)

        results = await self.attachments.discard_all(question.files or [])
        for answer in list(question.answers):
            results.extend(await self.attachments.discard_all(answer.files or []))
            await self.db.delete(answer)
        await self.db.delete(question)
        await self._commit("delete question")

        failed = sum(1 for r in results if not r.ok)
        logger.info(
            f"Question deleted: {question_id} by {actor.user_id} "
            f"({len(results)} files, {failed} cleanup failures)"
        )
        return results

    async def delete_answer(self, actor: AuthContext, question_id: UUID, answer_id: UUID) -> List[DeletionResult]:
        ensure_allowed(actor, Action.DELETE_CONTENT)
        answer = await self._answer_of(question_id, answer_id)

        results = await self.attachments.discard_all(answer.files or [])

        question = await self.question_repo.get_by_id(answer.question_id)
        if question is not None and answer in question.answers:
            question.answers.remove(answer)
        await self.db.delete(answer)
        await self._commit("delete answer")

        logger.info(f"Answer deleted: {answer_id} from question {answer.question_id} by {actor.user_id}")
        return results
