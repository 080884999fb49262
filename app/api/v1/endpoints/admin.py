from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import (
    clear_session_cookie,
    get_auth_context,
    get_session_store,
    require_admin,
    set_session_cookie,
)
from app.core.auth_context import AuthContext
from app.core.exceptions import AuthenticationError
from app.db.database import get_db
from app.schemas.admin import (
    AddModeratorRequest,
    AdminLogin,
    AdminMeResponse,
    AdminSessionResponse,
    ModeratorUpdateRequest,
    RemoveModeratorRequest,
    SuspendRequest,
    UserActionResponse,
    UserListResponse,
)
from app.schemas.auth import ErrorResponse, MessageResponse, UserResponse
from app.services.admin_service import AdminService
from app.services.auth_service import AuthService
from app.services.session_service import SessionStore

router = APIRouter(tags=["Admin"])


def get_admin_service(db: AsyncSession = Depends(get_db)) -> AdminService:
    return AdminService(db)


# =====================================================
# Admin panel session
# =====================================================
@router.post(
    "/login",
    response_model=MessageResponse,
    responses={401: {"model": ErrorResponse, "description": "Invalid admin credentials"}},
)
async def admin_login(
    login_data: AdminLogin,
    response: Response,
    actor: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
    sessions: SessionStore = Depends(get_session_store),
):
    """Fixed-credential login; stored users cannot log in here."""
    token = await AuthService(db, sessions=sessions).admin_login(
        login_data.email,
        login_data.password,
        previous_session_id=actor.session_id,
    )
    set_session_cookie(response, token)
    return MessageResponse(message="Admin login successful")


@router.post("/logout", response_model=MessageResponse)
async def admin_logout(
    response: Response,
    actor: AuthContext = Depends(get_auth_context),
    sessions: SessionStore = Depends(get_session_store),
):
    await sessions.destroy(actor.session_id)
    clear_session_cookie(response)
    return MessageResponse(message="Logged out")


@router.get("/session", response_model=AdminSessionResponse)
async def admin_session(actor: AuthContext = Depends(get_auth_context)):
    """Route guard check for the admin panel."""
    if actor.is_admin:
        return AdminSessionResponse(logged_in=True)
    return JSONResponse(status_code=status.HTTP_401_UNAUTHORIZED, content={"loggedIn": False})


@router.get("/me", response_model=AdminMeResponse)
async def admin_me(actor: AuthContext = Depends(get_auth_context)):
    if not actor.is_admin:
        raise AuthenticationError("Not logged in as admin")
    return AdminMeResponse(is_admin=True)


# =====================================================
# Users
# =====================================================
@router.get("/users", response_model=UserListResponse)
async def list_users(
    actor: AuthContext = Depends(require_admin),
    service: AdminService = Depends(get_admin_service),
):
    users = await service.list_users(actor)
    return UserListResponse(users=[UserResponse.model_validate(u) for u in users])


@router.delete(
    "/user/{user_id}",
    response_model=MessageResponse,
    responses={404: {"model": ErrorResponse, "description": "User not found"}},
)
async def delete_user(
    user_id: UUID,
    actor: AuthContext = Depends(require_admin),
    service: AdminService = Depends(get_admin_service),
):
    await service.delete_user(actor, user_id)
    return MessageResponse(message="User deleted")


@router.post("/suspend-user/{user_id}", response_model=UserActionResponse)
async def suspend_user(
    user_id: UUID,
    data: SuspendRequest,
    actor: AuthContext = Depends(require_admin),
    service: AdminService = Depends(get_admin_service),
):
    user = await service.set_suspended(actor, user_id, data.suspend)
    return UserActionResponse(
        message="User suspended" if data.suspend else "User unsuspended",
        user=UserResponse.model_validate(user),
    )


# =====================================================
# Moderators
# =====================================================
@router.post("/add-moderator", response_model=UserActionResponse)
async def add_moderator(
    data: AddModeratorRequest,
    actor: AuthContext = Depends(require_admin),
    service: AdminService = Depends(get_admin_service),
):
    """Promote an existing user, or create a new moderator account when a password is given."""
    user = await service.add_moderator(actor, data.email, data.password)
    return UserActionResponse(message="Moderator added", user=UserResponse.model_validate(user))


@router.post("/remove-moderator", response_model=UserActionResponse)
async def remove_moderator(
    data: RemoveModeratorRequest,
    actor: AuthContext = Depends(require_admin),
    service: AdminService = Depends(get_admin_service),
):
    user = await service.remove_moderator(actor, data.user_id)
    return UserActionResponse(message="Moderator privileges removed", user=UserResponse.model_validate(user))


@router.get("/moderators", response_model=UserListResponse)
async def list_moderators(
    actor: AuthContext = Depends(require_admin),
    service: AdminService = Depends(get_admin_service),
):
    moderators = await service.list_moderators(actor)
    return UserListResponse(users=[UserResponse.model_validate(u) for u in moderators])


@router.put(
    "/moderator/{user_id}",
    response_model=UserActionResponse,
    responses={
        404: {"model": ErrorResponse, "description": "Moderator not found"},
        409: {"model": ErrorResponse, "description": "Email already registered"},
    },
)
async def update_moderator(
    user_id: UUID,
    data: ModeratorUpdateRequest,
    actor: AuthContext = Depends(require_admin),
    service: AdminService = Depends(get_admin_service),
):
    user = await service.update_moderator(actor, user_id, data)
    return UserActionResponse(message="Moderator updated", user=UserResponse.model_validate(user))
