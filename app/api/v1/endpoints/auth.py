from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Response, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import (
    clear_session_cookie,
    get_attachment_service,
    get_auth_context,
    get_session_store,
    set_session_cookie,
)
from app.core.auth_context import AuthContext
from app.db.database import get_db
from app.schemas.auth import (
    AuthResponse,
    AvatarResponse,
    ErrorResponse,
    MessageResponse,
    ProfileUpdateRequest,
    UserLogin,
    UserResponse,
)
from app.services.attachment_service import AttachmentService
from app.services.auth_service import AuthService
from app.services.session_service import SessionStore

# ============================================================
# Router Setup
# ============================================================

router = APIRouter(tags=["Authentication"])


def get_auth_service(
    db: AsyncSession = Depends(get_db),
    sessions: SessionStore = Depends(get_session_store),
    attachments: AttachmentService = Depends(get_attachment_service),
) -> AuthService:
    return AuthService(db, sessions=sessions, attachments=attachments)


# ============================================================
# Registration Endpoint
# ============================================================

@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        201: {"description": "User created successfully"},
        400: {"model": ErrorResponse, "description": "Missing field or invalid avatar"},
        409: {"model": ErrorResponse, "description": "Email already exists"},
    }
)
async def register(
    response: Response,
    name: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    password: Optional[str] = Form(None),
    institution_name: Optional[str] = Form(None, alias="institutionName"),
    class_name: Optional[str] = Form(None, alias="class"),
    avatar: Optional[UploadFile] = File(None),
    service: AuthService = Depends(get_auth_service),
):
    """
    Register a new student account (multipart form, optional avatar)
    and log it in.
    """
    user, token = await service.register(
        name=name,
        email=email,
        password=password,
        institution_name=institution_name,
        class_name=class_name,
        avatar=avatar,
    )
    set_session_cookie(response, token)
    return AuthResponse(message="Registration successful", user=UserResponse.model_validate(user))


# ============================================================
# Login / Logout
# ============================================================

@router.post(
    "/login",
    response_model=AuthResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Invalid credentials"},
        403: {"model": ErrorResponse, "description": "Account suspended"},
    }
)
async def login(
    login_data: UserLogin,
    response: Response,
    actor: AuthContext = Depends(get_auth_context),
    service: AuthService = Depends(get_auth_service),
):
    """
    Log in with email and password.

    The configured administrator pair is accepted here as well and
    grants the admin flag.
    """
    user, token = await service.login(
        login_data.email,
        login_data.password,
        previous_session_id=actor.session_id,
    )
    set_session_cookie(response, token)
    return AuthResponse(
        message="Login successful",
        user=UserResponse.model_validate(user) if user else None,
    )


@router.post("/logout", response_model=MessageResponse)
async def logout(
    response: Response,
    actor: AuthContext = Depends(get_auth_context),
    service: AuthService = Depends(get_auth_service),
):
    await service.logout(actor)
    clear_session_cookie(response)
    return MessageResponse(message="Logged out")


# ============================================================
# Current User
# ============================================================

@router.get(
    "/me",
    response_model=AuthResponse,
    responses={401: {"model": ErrorResponse, "description": "Not logged in"}},
)
async def me(
    actor: AuthContext = Depends(get_auth_context),
    service: AuthService = Depends(get_auth_service),
):
    user = await service.get_current_user(actor)
    return AuthResponse(message="ok", user=UserResponse.model_validate(user))


@router.put("/profile", response_model=AuthResponse)
async def update_profile(
    data: ProfileUpdateRequest,
    actor: AuthContext = Depends(get_auth_context),
    service: AuthService = Depends(get_auth_service),
):
    user = await service.update_profile(actor, data)
    return AuthResponse(message="Profile updated", user=UserResponse.model_validate(user))


@router.post("/update-avatar", response_model=AvatarResponse)
async def update_avatar(
    avatar: Optional[UploadFile] = File(None),
    actor: AuthContext = Depends(get_auth_context),
    service: AuthService = Depends(get_auth_service),
):
    user = await service.update_avatar(actor, avatar)
    return AvatarResponse(message="Avatar updated", avatar=user.avatar)
