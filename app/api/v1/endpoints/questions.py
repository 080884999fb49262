from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_attachment_service, get_auth_context, require_identity
from app.core.auth_context import AuthContext
from app.core.voting import tally
from app.db.database import get_db
from app.schemas.auth import ErrorResponse, MessageResponse
from app.schemas.question import (
    AnswerCreatedResponse,
    AnswerListResponse,
    AnswerResponse,
    QuestionCreatedResponse,
    QuestionListResponse,
    QuestionResponse,
    ReportRequest,
    ReportResponse,
    VoteRequest,
    VoteResponse,
)
from app.services.attachment_service import AttachmentService
from app.services.question_service import QuestionService

router = APIRouter(tags=["Questions"])


def get_question_service(
    db: AsyncSession = Depends(get_db),
    attachments: AttachmentService = Depends(get_attachment_service),
) -> QuestionService:
    return QuestionService(db, attachments)


def _vote_response(target) -> VoteResponse:
    counts = tally(target.votes)
    return VoteResponse(
        message="Vote recorded",
        votes=target.votes or [],
        upvotes=counts.upvotes,
        downvotes=counts.downvotes,
    )


# =====================================================
# Questions
# =====================================================
@router.get("/", response_model=QuestionListResponse)
async def list_questions(
    class_name: Optional[str] = Query(None, alias="class"),
    subject: Optional[str] = Query(None),
    service: QuestionService = Depends(get_question_service),
):
    """List questions, newest first, optionally filtered by class and subject tag."""
    questions = await service.list_questions(class_name=class_name, subject=subject)
    return QuestionListResponse(
        questions=[QuestionResponse.model_validate(q) for q in questions]
    )


@router.post(
    "/",
    response_model=QuestionCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Missing field or invalid file"},
        401: {"model": ErrorResponse, "description": "Not logged in"},
        403: {"model": ErrorResponse, "description": "Admin cannot post questions"},
    },
)
async def create_question(
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    class_name: Optional[str] = Form(None, alias="class"),
    subject: Optional[str] = Form(None),
    group_name: Optional[str] = Form(None, alias="group"),
    files: Optional[List[UploadFile]] = File(None),
    actor: AuthContext = Depends(get_auth_context),
    service: QuestionService = Depends(get_question_service),
):
    """
    Post a question (multipart).

    `subject` is a JSON-encoded list of tags; up to five `files` may be attached.
    """
    question = await service.create_question(
        actor,
        title=title,
        description=description,
        class_name=class_name,
        subject=subject,
        group_name=group_name,
        files=files,
    )
    return QuestionCreatedResponse(
        message="Question posted",
        question=QuestionResponse.model_validate(question),
    )


@router.get(
    "/{question_id}",
    response_model=QuestionResponse,
    responses={404: {"model": ErrorResponse, "description": "Question not found"}},
)
async def get_question(
    question_id: UUID,
    service: QuestionService = Depends(get_question_service),
):
    question = await service.get_question(question_id)
    return QuestionResponse.model_validate(question)


@router.delete("/{question_id}", response_model=MessageResponse)
async def delete_question(
    question_id: UUID,
    actor: AuthContext = Depends(require_identity),
    service: QuestionService = Depends(get_question_service),
):
    """Delete a question, its answers and every attached file."""
    await service.delete_question(actor, question_id)
    return MessageResponse(message="Question and associated answers deleted successfully")


@router.post("/{question_id}/vote", response_model=VoteResponse)
async def vote_question(
    question_id: UUID,
    vote: VoteRequest,
    actor: AuthContext = Depends(get_auth_context),
    service: QuestionService = Depends(get_question_service),
):
    question = await service.vote_question(actor, question_id, vote.value)
    return _vote_response(question)


@router.post("/{question_id}/report", response_model=ReportResponse)
async def report_question(
    question_id: UUID,
    report: ReportRequest,
    actor: AuthContext = Depends(get_auth_context),
    service: QuestionService = Depends(get_question_service),
):
    question = await service.report_question(actor, question_id, report.reason)
    return ReportResponse(message="Reported", reports=len(question.reports or []))


# =====================================================
# Answers
# =====================================================
@router.get("/{question_id}/answers", response_model=AnswerListResponse)
async def list_answers(
    question_id: UUID,
    service: QuestionService = Depends(get_question_service),
):
    await service.get_question(question_id)
    answers = await service.list_answers(question_id)
    return AnswerListResponse(answers=[AnswerResponse.model_validate(a) for a in answers])


@router.post(
    "/{question_id}/answer",
    response_model=AnswerCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        403: {"model": ErrorResponse, "description": "Caller's class does not match"},
        404: {"model": ErrorResponse, "description": "Question not found"},
    },
)
async def create_answer(
    question_id: UUID,
    content: Optional[str] = Form(None),
    files: Optional[List[UploadFile]] = File(None),
    actor: AuthContext = Depends(get_auth_context),
    service: QuestionService = Depends(get_question_service),
):
    answer = await service.create_answer(actor, question_id, content=content, files=files)
    return AnswerCreatedResponse(message="Answer posted", answer=AnswerResponse.model_validate(answer))


@router.delete("/{question_id}/answers/{answer_id}", response_model=MessageResponse)
async def delete_answer(
    question_id: UUID,
    answer_id: UUID,
    actor: AuthContext = Depends(require_identity),
    service: QuestionService = Depends(get_question_service),
):
    await service.delete_answer(actor, question_id, answer_id)
    return MessageResponse(message="Answer deleted successfully")


@router.post("/{question_id}/answers/{answer_id}/vote", response_model=VoteResponse)
async def vote_answer(
    question_id: UUID,
    answer_id: UUID,
    vote: VoteRequest,
    actor: AuthContext = Depends(get_auth_context),
    service: QuestionService = Depends(get_question_service),
):
    answer = await service.vote_answer(actor, question_id, answer_id, vote.value)
    return _vote_response(answer)


@router.post("/{question_id}/answers/{answer_id}/report", response_model=ReportResponse)
async def report_answer(
    question_id: UUID,
    answer_id: UUID,
    report: ReportRequest,
    actor: AuthContext = Depends(get_auth_context),
    service: QuestionService = Depends(get_question_service),
):
    answer = await service.report_answer(actor, question_id, answer_id, report.reason)
    return ReportResponse(message="Reported", reports=len(answer.reports or []))
