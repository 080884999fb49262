from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_attachment_service, require_moderator
from app.core.auth_context import AuthContext
from app.db.database import get_db
from app.schemas.auth import ErrorResponse, MessageResponse
from app.schemas.catalog import (
    BookItemResponse,
    BookListResponse,
    BookResponse,
    CatalogItemUpdate,
    ClassCreate,
    ClassListResponse,
    ClassMessageResponse,
    ClassResponse,
    ClassUpdate,
    ResourceItemResponse,
    ResourceListResponse,
    ResourceResponse,
)
from app.services.attachment_service import AttachmentService
from app.services.catalog_service import CatalogService

# Every route here needs the admin or moderator flag
router = APIRouter(tags=["Moderator"], dependencies=[Depends(require_moderator)])

NOT_FOUND = {404: {"model": ErrorResponse, "description": "Not found"}}


def get_catalog_service(
    db: AsyncSession = Depends(get_db),
    attachments: AttachmentService = Depends(get_attachment_service),
) -> CatalogService:
    return CatalogService(db, attachments)


# =====================================================
# Resources
# =====================================================
@router.get("/resources", response_model=ResourceListResponse)
async def list_resources(
    actor: AuthContext = Depends(require_moderator),
    service: CatalogService = Depends(get_catalog_service),
):
    resources = await service.list_resources(actor)
    return ResourceListResponse(resources=[ResourceResponse.model_validate(r) for r in resources])


@router.post(
    "/resources",
    response_model=ResourceItemResponse,
    responses={401: {"model": ErrorResponse, "description": "Moderator not authenticated"}},
)
async def create_resource(
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    link: Optional[str] = Form(None),
    class_name: Optional[str] = Form(None, alias="class"),
    section: Optional[str] = Form(None),
    group_name: Optional[str] = Form(None, alias="group"),
    file: Optional[UploadFile] = File(None),
    actor: AuthContext = Depends(require_moderator),
    service: CatalogService = Depends(get_catalog_service),
):
    resource = await service.create_resource(
        actor,
        title=title,
        description=description,
        link=link,
        class_name=class_name,
        section=section,
        group_name=group_name,
        file=file,
    )
    return ResourceItemResponse(resource=ResourceResponse.model_validate(resource))


@router.put("/resources/{resource_id}", response_model=ResourceItemResponse, responses=NOT_FOUND)
async def update_resource(
    resource_id: UUID,
    data: CatalogItemUpdate,
    actor: AuthContext = Depends(require_moderator),
    service: CatalogService = Depends(get_catalog_service),
):
    resource = await service.update_resource(actor, resource_id, data)
    return ResourceItemResponse(resource=ResourceResponse.model_validate(resource))


@router.delete("/resources/{resource_id}", response_model=MessageResponse, responses=NOT_FOUND)
async def delete_resource(
    resource_id: UUID,
    actor: AuthContext = Depends(require_moderator),
    service: CatalogService = Depends(get_catalog_service),
):
    await service.delete_resource(actor, resource_id)
    return MessageResponse(message="Resource deleted")


# =====================================================
# Books
# =====================================================
@router.get("/books", response_model=BookListResponse)
async def list_books(
    actor: AuthContext = Depends(require_moderator),
    service: CatalogService = Depends(get_catalog_service),
):
    books = await service.list_books(actor)
    return BookListResponse(books=[BookResponse.model_validate(b) for b in books])


@router.post(
    "/books",
    response_model=BookItemResponse,
    responses={401: {"model": ErrorResponse, "description": "Moderator not authenticated"}},
)
async def create_book(
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    price: Optional[float] = Form(None),
    link: Optional[str] = Form(None),
    class_name: Optional[str] = Form(None, alias="class"),
    section: Optional[str] = Form(None),
    group_name: Optional[str] = Form(None, alias="group"),
    image: Optional[UploadFile] = File(None),
    actor: AuthContext = Depends(require_moderator),
    service: CatalogService = Depends(get_catalog_service),
):
    book = await service.create_book(
        actor,
        title=title,
        description=description,
        price=price,
        link=link,
        class_name=class_name,
        section=section,
        group_name=group_name,
        image=image,
    )
    return BookItemResponse(book=BookResponse.model_validate(book))


@router.put("/books/{book_id}", response_model=BookItemResponse, responses=NOT_FOUND)
async def update_book(
    book_id: UUID,
    data: CatalogItemUpdate,
    actor: AuthContext = Depends(require_moderator),
    service: CatalogService = Depends(get_catalog_service),
):
    book = await service.update_book(actor, book_id, data)
    return BookItemResponse(book=BookResponse.model_validate(book))


@router.delete("/books/{book_id}", response_model=MessageResponse, responses=NOT_FOUND)
async def delete_book(
    book_id: UUID,
    actor: AuthContext = Depends(require_moderator),
    service: CatalogService = Depends(get_catalog_service),
):
    await service.delete_book(actor, book_id)
    return MessageResponse(message="Book deleted")


# =====================================================
# Classes
# =====================================================
@router.get("/classes", response_model=ClassListResponse)
async def list_classes(service: CatalogService = Depends(get_catalog_service)):
    classes = await service.list_classes()
    return ClassListResponse(classes=[ClassResponse.model_validate(c) for c in classes])


@router.post("/classes", response_model=ClassMessageResponse)
async def create_class(
    data: ClassCreate,
    actor: AuthContext = Depends(require_moderator),
    service: CatalogService = Depends(get_catalog_service),
):
    school_class = await service.create_class(actor, data)
    return ClassMessageResponse(message="Class created", class_=ClassResponse.model_validate(school_class))


@router.put("/classes/{class_id}", response_model=ClassMessageResponse, responses=NOT_FOUND)
async def update_class(
    class_id: UUID,
    data: ClassUpdate,
    actor: AuthContext = Depends(require_moderator),
    service: CatalogService = Depends(get_catalog_service),
):
    school_class = await service.update_class(actor, class_id, data)
    return ClassMessageResponse(message="Class updated", class_=ClassResponse.model_validate(school_class))


@router.delete("/classes/{class_id}", response_model=MessageResponse, responses=NOT_FOUND)
async def delete_class(
    class_id: UUID,
    actor: AuthContext = Depends(require_moderator),
    service: CatalogService = Depends(get_catalog_service),
):
    await service.delete_class(actor, class_id)
    return MessageResponse(message="Class deleted")
