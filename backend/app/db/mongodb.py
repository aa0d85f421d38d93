# backend/app/db/mongodb.py
# Initialise le client MongoDB à partir des settings et expose la base et le nommage des collections.

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from app.core.settings import get_settings

settings = get_settings()

client: AsyncIOMotorClient = AsyncIOMotorClient(settings.mongodb_uri)
db: AsyncIOMotorDatabase = client[settings.mongodb_db]


def get_database() -> AsyncIOMotorDatabase:
    """Retourne la base MongoDB de l'application."""
    return db


def namespaced(name: str, app_id: str | None = None) -> str:
    """Nom de collection préfixé par l'identifiant d'application.

    Description:
        Plusieurs déploiements peuvent partager une base : chaque collection est préfixée
        par `app_id` (ex. `default-app-id.challenge_logs`).

    Args:
        name (str): Nom logique de la collection.
        app_id (str | None): Identifiant d'application (défaut : `settings.app_id`).

    Returns:
        str: Nom de collection complet.
    """
    return f"{app_id or settings.app_id}.{name}"
