# backend/app/main.py

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pymongo.errors import PyMongoError

from app.api.deps import get_session_registry
from app.api.routes import routers
from app.core.errors import InitializationFailure
from app.core.exception_handlers import register_exception_handlers
from app.core.health_checks import validate_backend_config
from app.core.logging_config import get_loggers
from app.core.middleware import MaxBodySizeMiddleware
from app.core.settings import get_settings
from app.db.mongodb import get_database
from app.db.seed_indexes import ensure_indexes

settings = get_settings()
logger_generic, logger_errors, _ = get_loggers()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # --- startup ---
    app.state.init_error = None
    try:
        validate_backend_config(settings)
        ensured = await ensure_indexes(get_database(), settings.app_id)
        logger_generic.info(f"Indexes ensured: {ensured}")
    except InitializationFailure as e:
        app.state.init_error = e
        logger_errors.error(f"Initialization failed: {e.message} {e.details}")
    except PyMongoError as e:
        app.state.init_error = InitializationFailure(
            "Backend config not available. Check environment setup.", reason=str(e)
        )
        logger_errors.error(f"Initialization failed (MongoDB): {e}")

    yield  # l'app tourne ici

    # --- shutdown ---
    closed = await get_session_registry().close_all()
    logger_generic.info(f"Shutdown: {closed} journal session(s) closed")


app = FastAPI(title=f"{settings.app_name} API", version=settings.api_version, lifespan=lifespan)
app.state.init_error = None

# Ordre des middlewares = ordre d'ajout.
app.add_middleware(
    MaxBodySizeMiddleware,
    max_body_size=settings.max_body_bytes,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

for r in routers:
    app.include_router(r)
