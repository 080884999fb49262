from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from datetime import datetime
from uuid import UUID

from app.schemas.question import AuthorSummary


# ============================================================
# Classes
# ============================================================

class ClassCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    sections: List[str] = Field(default_factory=list)


class ClassUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    sections: Optional[List[str]] = None


class SectionAdd(BaseModel):
    section: str = Field(min_length=1, max_length=50)


class ClassResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    sections: List[str] = Field(default_factory=list)


class ClassListResponse(BaseModel):
    classes: List[ClassResponse]


class ClassMessageResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str
    class_: ClassResponse = Field(alias="class")


# ============================================================
# Resources and Books
# ============================================================

class CatalogItemUpdate(BaseModel):
    """Fields a moderator may change on a resource or book."""

    model_config = ConfigDict(populate_by_name=True)

    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    link: Optional[str] = None
    class_name: Optional[str] = Field(default=None, alias="class")
    section: Optional[str] = None
    group_name: Optional[str] = Field(default=None, alias="group")
    price: Optional[float] = None


class ResourceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    description: Optional[str] = None
    file: Optional[str] = None
    link: Optional[str] = None
    class_name: Optional[str] = None
    section: Optional[str] = None
    group_name: Optional[str] = None
    moderator: Optional[AuthorSummary] = None
    created_at: datetime


class BookResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    description: Optional[str] = None
    price: Optional[float] = None
    image: Optional[str] = None
    link: Optional[str] = None
    class_name: Optional[str] = None
    section: Optional[str] = None
    group_name: Optional[str] = None
    moderator: Optional[AuthorSummary] = None
    created_at: datetime


class ResourceListResponse(BaseModel):
    resources: List[ResourceResponse]


class ResourceItemResponse(BaseModel):
    resource: ResourceResponse


class BookListResponse(BaseModel):
    books: List[BookResponse]


class BookItemResponse(BaseModel):
    book: BookResponse
