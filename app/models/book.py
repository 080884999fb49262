from sqlalchemy import Column, String, Text, Float, ForeignKey, Uuid
from sqlalchemy.orm import relationship

from .base import BaseModel


class Book(BaseModel):
    __tablename__ = "books"

    title = Column(String(300), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Float, nullable=True)
    image = Column(String(500), nullable=True)  # storage reference
    link = Column(String(500), nullable=True)
    class_name = Column("class", String(50), nullable=True, index=True)
    section = Column(String(50), nullable=True)
    group_name = Column("group", String(100), nullable=True)
    moderator_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    moderator = relationship("User", lazy="selectin")
