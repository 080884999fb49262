from fastapi import APIRouter
from app.api.v1.endpoints import admin, auth, classes, moderator, questions

# ============================================================
# Main API Router
# ============================================================

api_router = APIRouter()

# Registration, login and profile at /auth
api_router.include_router(
    auth.router,
    prefix="/auth"
)

# Questions, with answers nested at /questions/{question_id}/answers
api_router.include_router(
    questions.router,
    prefix="/questions"
)

# Admin panel: fixed-credential session, users and moderators
api_router.include_router(
    admin.router,
    prefix="/admin"
)

# Resources, books and classes curated by moderators
api_router.include_router(
    moderator.router,
    prefix="/moderator"
)

# Public class list for dropdowns
api_router.include_router(
    classes.router,
    prefix="/classes"
)
