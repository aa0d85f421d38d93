import logging
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from app.core.errors import InitializationFailure
from app.core.settings import Settings, get_settings

logger = logging.getLogger(__name__)


def validate_backend_config(settings: Settings | None = None) -> None:
    """
    Vérifie que la configuration backend minimale est présente

    Raises:
        InitializationFailure si un paramètre indispensable est vide
    """
    settings = settings or get_settings()
    missing = [
        name
        for name, value in (
            ("mongodb_uri_tpl", settings.mongodb_uri_tpl),
            ("mongodb_db", settings.mongodb_db),
            ("app_id", settings.app_id),
            ("jwt_secret_key", settings.jwt_secret_key),
            ("gemini_api_url", settings.gemini_api_url),
        )
        if not value
    ]
    if missing:
        raise InitializationFailure(
            "Backend config not available. Check environment setup.", missing=missing
        )

    if settings.challenge_timezone:
        try:
            ZoneInfo(settings.challenge_timezone)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise InitializationFailure(
                "Backend config not available. Check environment setup.",
                invalid=["challenge_timezone"],
            ) from e


async def check_mongodb(db=None) -> str:
    """
    Vérifie la connexion MongoDB

    Returns:
        "ok" si connecté, message d'erreur sinon
    """
    try:
        if db is None:
            from app.db.mongodb import db

        await db.command("ping")
        return "ok"

    except Exception as e:
        logger.error(f"MongoDB health check failed: {e}")
        return f"error: {str(e)}"


def check_completion(settings: Settings | None = None) -> str:
    """
    Vérifie que le endpoint Gemini est configuré (sans l'appeler)

    Returns:
        "ok" si configuré, "not configured" sinon
    """
    settings = settings or get_settings()
    # Une clé vide est admise : elle peut être fournie par l'environnement d'hébergement
    return "ok" if settings.gemini_api_url else "not configured"
