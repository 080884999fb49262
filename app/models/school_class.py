from sqlalchemy import Column, String, JSON

from .base import BaseModel


class SchoolClass(BaseModel):
    __tablename__ = "classes"

    name = Column(String(100), unique=True, nullable=False, index=True)
    sections = Column(JSON, default=list, nullable=False)
