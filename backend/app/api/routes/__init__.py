# backend/app/api/routes/__init__.py

from .base import router as base_router
from .health import router as health_router
from .auth import router as auth_router
from .journal import router as journal_router
from .public import router as public_router

routers = [
    base_router,
    health_router,
    auth_router,
    journal_router,
    public_router,
]
