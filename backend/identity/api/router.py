from fastapi import APIRouter

from identity.api.routes.health import router as health_router
from identity.api.routes.session import router as session_router
from identity.api.routes.user import router as user_router

router = APIRouter()

router.include_router(health_router)
router.include_router(session_router)
router.include_router(user_router)
