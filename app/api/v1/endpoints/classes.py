from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import require_admin
from app.core.auth_context import AuthContext
from app.core.permissions import Action
from app.db.database import get_db
from app.schemas.auth import ErrorResponse
from app.schemas.catalog import (
    ClassCreate,
    ClassListResponse,
    ClassMessageResponse,
    ClassResponse,
    SectionAdd,
)
from app.services.catalog_service import CatalogService

router = APIRouter(tags=["Classes"])


def get_catalog_service(db: AsyncSession = Depends(get_db)) -> CatalogService:
    return CatalogService(db)


@router.get("/", response_model=ClassListResponse)
async def list_classes(service: CatalogService = Depends(get_catalog_service)):
    """All classes with their sections, for dropdowns. No login needed."""
    classes = await service.list_classes()
    return ClassListResponse(classes=[ClassResponse.model_validate(c) for c in classes])


@router.post(
    "/",
    response_model=ClassMessageResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": ErrorResponse, "description": "Class already exists"}},
)
async def create_class(
    data: ClassCreate,
    actor: AuthContext = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
):
    school_class = await service.create_class(actor, data, action=Action.ADMINISTER)
    return ClassMessageResponse(message="Class created", class_=ClassResponse.model_validate(school_class))


@router.post(
    "/{class_id}/section",
    response_model=ClassMessageResponse,
    responses={404: {"model": ErrorResponse, "description": "Class not found"}},
)
async def add_section(
    class_id: UUID,
    data: SectionAdd,
    actor: AuthContext = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
):
    school_class = await service.add_section(actor, class_id, data.section)
    return ClassMessageResponse(message="Section added", class_=ClassResponse.model_validate(school_class))
