from fastapi import APIRouter

from app.modules.auth.router import router as auth_router
from app.modules.registrations.admin_router import router as admin_registrations_router
from app.modules.registrations.router import router as registrations_router
from app.modules.statuses.router import router as admin_statuses_router
from app.modules.users.admin_router import router as admin_users_router

api_router = APIRouter()

api_router.include_router(auth_router, prefix="/auth", tags=["Authentication"])

api_router.include_router(registrations_router, prefix="/registrations", tags=["Registrations"])

api_router.include_router(
    admin_registrations_router,
    prefix="/admin/registrations",
    tags=["Admin - Registrations"],
)

api_router.include_router(
    admin_statuses_router,
    prefix="/admin/statuses",
    tags=["Admin - Statuses"],
)

api_router.include_router(
    admin_users_router,
    prefix="/admin/users",
    tags=["Admin - Users"],
)
