from sqlalchemy import Column, Boolean, Text, JSON, ForeignKey, Uuid
from sqlalchemy.orm import relationship

from app.core.voting import tally
from .base import BaseModel


class Answer(BaseModel):
    __tablename__ = "answers"

    question_id = Column(Uuid(as_uuid=True), ForeignKey("questions.id", ondelete="CASCADE"), nullable=False, index=True)
    author_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    content = Column(Text, nullable=False)
    files = Column(JSON, default=list, nullable=False)
    votes = Column(JSON, default=list, nullable=False)
    reports = Column(JSON, default=list, nullable=False)
    is_verified = Column(Boolean, default=False, nullable=False)

    # Relationships
    question = relationship("Question", back_populates="answers")
    author = relationship("User", lazy="selectin")

    @property
    def upvotes(self) -> int:
        return tally(self.votes).upvotes

    @property
    def downvotes(self) -> int:
        return tally(self.votes).downvotes
