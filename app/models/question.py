from sqlalchemy import Column, String, Text, JSON, ForeignKey, Uuid
from sqlalchemy.orm import relationship

from app.core.voting import tally
from .base import BaseModel


class Question(BaseModel):
    __tablename__ = "questions"

    title = Column(String(300), nullable=False)
    description = Column(Text, nullable=False)
    class_name = Column("class", String(50), nullable=False, index=True)
    group_name = Column("group", String(100), nullable=True)
    subject = Column(JSON, default=list, nullable=False)  # ordered tags
    files = Column(JSON, default=list, nullable=False)  # storage references
    author_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    votes = Column(JSON, default=list, nullable=False)
    reports = Column(JSON, default=list, nullable=False)

    # Relationships
    author = relationship("User", lazy="selectin")
    answers = relationship(
        "Answer",
        back_populates="question",
        cascade="all, delete-orphan",
        order_by="Answer.created_at",
        lazy="selectin",
    )

    @property
    def answer_ids(self):
        return [answer.id for answer in self.answers]

    @property
    def upvotes(self) -> int:
        return tally(self.votes).upvotes

    @property
    def downvotes(self) -> int:
        return tally(self.votes).downvotes
