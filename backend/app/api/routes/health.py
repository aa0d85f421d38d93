from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from app.core.health_checks import check_completion, check_mongodb
from app.core.settings import get_settings
from app.core.utils import utcnow
from app.models.base.health import HealthCheck

settings = get_settings()

router = APIRouter(tags=["Health"])


def check_initialization(request: Request) -> str:
    """État du démarrage : "ok", ou le message bloquant enregistré par le lifespan."""
    init_error = getattr(request.app.state, "init_error", None)
    return "ok" if init_error is None else f"error: {init_error.message}"


@router.get(
    "/health",
    response_model=HealthCheck,
    summary="Health check de l'API",
    description="Retourne le statut du démarrage, de MongoDB et de la configuration Gemini (503 si dégradé)",
)
async def health(request: Request) -> JSONResponse:
    checks = {
        "initialization": check_initialization(request),
        "database": await check_mongodb(),
        "completion": check_completion(),
    }

    degraded = any(check != "ok" for check in checks.values())
    response = HealthCheck(
        status="degraded" if degraded else "ok",
        timestamp=utcnow(),
        version=settings.api_version,
        checks=checks,
    )
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE if degraded else status.HTTP_200_OK,
        content=response.model_dump(mode="json"),
    )
