"""
Catalog Service

Moderator-curated resources and books, and the class/section list.
"""

import logging
from typing import List, Optional
from uuid import UUID

from fastapi import UploadFile
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth_context import AuthContext
from app.core.exceptions import AuthenticationError, ConflictError, NotFoundError, ValidationError
from app.core.permissions import Action, ensure_allowed
from app.models import Book, Resource, SchoolClass
from app.repositories.catalog_repo import BookRepository, ResourceRepository, SchoolClassRepository
from app.schemas.catalog import CatalogItemUpdate, ClassCreate, ClassUpdate
from app.services.attachment_service import AttachmentService

logger = logging.getLogger(__name__)

RESOURCE_FOLDER = "resources"
BOOK_FOLDER = "books"


def _item_changes(data: CatalogItemUpdate, *, include_price: bool) -> dict:
    exclude = set() if include_price else {"price"}
    changes = data.model_dump(exclude_unset=True, exclude=exclude)
    if changes.get("title") is None:
        changes.pop("title", None)
    return changes


def _clean_sections(sections: Optional[List[str]]) -> List[str]:
    cleaned = []
    for section in sections or []:
        section = str(section).strip()
        if section and section not in cleaned:
            cleaned.append(section)
    return cleaned


class CatalogService:
    """
    Service class for resources, books and classes.

    Every method takes the caller's AuthContext; the moderator
    namespace check happens in the API layer and is repeated here.
    """

    def __init__(self, db: AsyncSession, attachments: Optional[AttachmentService] = None):
        self.db = db
        self.class_repo = SchoolClassRepository(db)
        self.resource_repo = ResourceRepository(db)
        self.book_repo = BookRepository(db)
        self.attachments = attachments

    @staticmethod
    def _require_moderator_identity(actor: AuthContext) -> UUID:
        """Creation needs the moderator's own user id from the session."""
        ensure_allowed(actor, Action.MODERATE)
        if actor.user_id is None:
            raise AuthenticationError("Moderator not authenticated")
        return actor.user_id

    # ============================================================
    # RESOURCES
    # ============================================================

    async def list_resources(self, actor: AuthContext) -> List[Resource]:
        ensure_allowed(actor, Action.MODERATE)
        return await self.resource_repo.list_newest()

    async def create_resource(
        self,
        actor: AuthContext,
        *,
        title: Optional[str],
        description: Optional[str] = None,
        link: Optional[str] = None,
        class_name: Optional[str] = None,
        section: Optional[str] = None,
        group_name: Optional[str] = None,
        file: Optional[UploadFile] = None,
    ) -> Resource:
        moderator_id = self._require_moderator_identity(actor)
        if not title or not title.strip():
            raise ValidationError("Title is required.")

        file_url = None
        if file is not None and file.filename:
            file_url = await self.attachments.upload(file, RESOURCE_FOLDER)

        resource = await self.resource_repo.create(
            title=title.strip(),
            description=description,
            link=link,
            class_name=class_name,
            section=section,
            group_name=group_name,
            file=file_url,
            moderator_id=moderator_id,
        )
        logger.info(f"Resource created: {resource.id} by moderator {moderator_id}")
        return resource

    async def update_resource(self, actor: AuthContext, resource_id: UUID, data: CatalogItemUpdate) -> Resource:
        ensure_allowed(actor, Action.MODERATE)
        changes = _item_changes(data, include_price=False)
        resource = await self.resource_repo.update(resource_id, **changes)
        if resource is None:
            raise NotFoundError("Resource not found")
        logger.info(f"Resource updated: {resource_id}")
        return resource

    async def delete_resource(self, actor: AuthContext, resource_id: UUID) -> None:
        ensure_allowed(actor, Action.MODERATE)
        resource = await self.resource_repo.get_by_id(resource_id)
        if resource is None:
            raise NotFoundError("Resource not found")
        await self.attachments.discard(resource.file)
        await self.resource_repo.delete(resource_id)
        logger.info(f"Resource deleted: {resource_id}")

    # ============================================================
    # BOOKS
    # ============================================================

    async def list_books(self, actor: AuthContext) -> List[Book]:
        ensure_allowed(actor, Action.MODERATE)
        return await self.book_repo.list_newest()

    async def create_book(
        self,
        actor: AuthContext,
        *,
        title: Optional[str],
        description: Optional[str] = None,
        price: Optional[float] = None,
        link: Optional[str] = None,
        class_name: Optional[str] = None,
        section: Optional[str] = None,
        group_name: Optional[str] = None,
        image: Optional[UploadFile] = None,
    ) -> Book:
        moderator_id = self._require_moderator_identity(actor)
        if not title or not title.strip():
            raise ValidationError("Title is required.")

        image_url = None
        if image is not None and image.filename:
            image_url = await self.attachments.upload(image, BOOK_FOLDER)

        book = await self.book_repo.create(
            title=title.strip(),
            description=description,
            price=price,
            link=link,
            class_name=class_name,
            section=section,
            group_name=group_name,
            image=image_url,
            moderator_id=moderator_id,
        )
        logger.info(f"Book created: {book.id} by moderator {moderator_id}")
        return book

    async def update_book(self, actor: AuthContext, book_id: UUID, data: CatalogItemUpdate) -> Book:
        ensure_allowed(actor, Action.MODERATE)
        changes = _item_changes(data, include_price=True)
        book = await self.book_repo.update(book_id, **changes)
        if book is None:
            raise NotFoundError("Book not found")
        logger.info(f"Book updated: {book_id}")
        return book

    async def delete_book(self, actor: AuthContext, book_id: UUID) -> None:
        ensure_allowed(actor, Action.MODERATE)
        book = await self.book_repo.get_by_id(book_id)
        if book is None:
            raise NotFoundError("Book not found")
        await self.attachments.discard(book.image)
        await self.book_repo.delete(book_id)
        logger.info(f"Book deleted: {book_id}")

    # ============================================================
    # CLASSES
    # ============================================================

    async def list_classes(self) -> List[SchoolClass]:
        return await self.class_repo.list_ordered(SchoolClass.name)

    async def create_class(self, actor: AuthContext, data: ClassCreate, action: Action = Action.MODERATE) -> SchoolClass:
        ensure_allowed(actor, action)
        name = data.name.strip()
        if await self.class_repo.get_by_name(name):
            raise ConflictError(f"Class {name} already exists")
        try:
            school_class = await self.class_repo.create(name=name, sections=_clean_sections(data.sections))
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError(f"Class {name} already exists")
        logger.info(f"Class created: {name}")
        return school_class

    async def update_class(self, actor: AuthContext, class_id: UUID, data: ClassUpdate) -> SchoolClass:
        ensure_allowed(actor, Action.MODERATE)
        changes = {}
        if data.name is not None:
            name = data.name.strip()
            existing = await self.class_repo.get_by_name(name)
            if existing is not None and existing.id != class_id:
                raise ConflictError(f"Class {name} already exists")
            changes["name"] = name
        if data.sections is not None:
            changes["sections"] = _clean_sections(data.sections)
        school_class = await self.class_repo.update(class_id, **changes)
        if school_class is None:
            raise NotFoundError("Class not found")
        return school_class

    async def delete_class(self, actor: AuthContext, class_id: UUID) -> None:
        ensure_allowed(actor, Action.MODERATE)
        if not await self.class_repo.delete(class_id):
            raise NotFoundError("Class not found")
        logger.info(f"Class deleted: {class_id}")

    async def add_section(self, actor: AuthContext, class_id: UUID, section: str) -> SchoolClass:
        """Add a section; adding one that already exists changes nothing."""
        ensure_allowed(actor, Action.ADMINISTER)
        school_class = await self.class_repo.get_by_id(class_id)
        if school_class is None:
            raise NotFoundError("Class not found")
        section = section.strip()
        if not section:
            raise ValidationError("Section is required.")
        if section not in (school_class.sections or []):
            school_class.sections = list(school_class.sections or []) + [section]
            school_class = await self.class_repo.save(school_class)
        return school_class
