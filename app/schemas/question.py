from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from datetime import datetime
from uuid import UUID


# ============================================================
# Request Schemas
# ============================================================

class VoteRequest(BaseModel):
    value: int = Field(description="1 for upvote, -1 for downvote")


class ReportRequest(BaseModel):
    reason: Optional[str] = Field(default=None, max_length=1000)


# ============================================================
# Response Schemas
# ============================================================

class AuthorSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    role: str


class VoteEntry(BaseModel):
    user: str
    value: int


class ReportEntry(BaseModel):
    user: str
    reason: str = ""


class QuestionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: UUID
    title: str
    description: str
    class_name: str = Field(alias="class")
    group_name: Optional[str] = None
    subject: List[str] = Field(default_factory=list)
    files: List[str] = Field(default_factory=list)
    author: Optional[AuthorSummary] = None
    votes: List[VoteEntry] = Field(default_factory=list)
    upvotes: int = 0
    downvotes: int = 0
    reports: List[ReportEntry] = Field(default_factory=list)
    answer_ids: List[UUID] = Field(default_factory=list)
    created_at: datetime


class AnswerResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    question_id: UUID
    author: Optional[AuthorSummary] = None
    content: str
    files: List[str] = Field(default_factory=list)
    votes: List[VoteEntry] = Field(default_factory=list)
    upvotes: int = 0
    downvotes: int = 0
    reports: List[ReportEntry] = Field(default_factory=list)
    is_verified: bool = False
    created_at: datetime


class QuestionListResponse(BaseModel):
    questions: List[QuestionResponse]


class QuestionCreatedResponse(BaseModel):
    message: str
    question: QuestionResponse


class AnswerListResponse(BaseModel):
    answers: List[AnswerResponse]


class AnswerCreatedResponse(BaseModel):
    message: str
    answer: AnswerResponse


class VoteResponse(BaseModel):
    message: str
    votes: List[VoteEntry]
    upvotes: int
    downvotes: int


class ReportResponse(BaseModel):
    message: str
    reports: int
