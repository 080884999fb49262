from sqlalchemy import Column, String, Text, ForeignKey, Uuid
from sqlalchemy.orm import relationship

from .base import BaseModel


class Resource(BaseModel):
    __tablename__ = "resources"

    title = Column(String(300), nullable=False)
    description = Column(Text, nullable=True)
    file = Column(String(500), nullable=True)  # storage reference
    link = Column(String(500), nullable=True)
    class_name = Column("class", String(50), nullable=True, index=True)
    section = Column(String(50), nullable=True)
    group_name = Column("group", String(100), nullable=True)
    moderator_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    moderator = relationship("User", lazy="selectin")
