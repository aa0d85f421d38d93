# backend/app/core/settings.py
# Configuration de l'application (pydantic-settings) : Mongo, JWT, challenge, Gemini, logs.

import datetime as dt
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict
from rich import print


class Settings(BaseSettings):
    # === App settings ===
    app_name: str = "Lost Kings"
    environment: str = "development"  # or "production"
    api_version: str = "0.1.0"
    app_id: str = "default-app-id"
    cors_origins: list[str] = ["http://localhost:5173"]

    # === MongoDB ===
    mongodb_user: str = ""
    mongodb_password: str = ""
    mongodb_uri_tpl: str = "mongodb://localhost:27017"
    mongodb_db: str = "lost_kings"

    # === JWT ===
    jwt_secret_key: str = "change-me"
    jwt_algorithm: str = "HS256"
    jwt_expiration_minutes: int = 60 * 24 * 31  # toute la durée du challenge

    # === CHALLENGE ===
    challenge_start_date: dt.date = dt.date(2025, 11, 1)
    challenge_length_days: int = 30
    # Fuseau IANA (ex. "Europe/Paris") qui fixe le jour du challenge pour tous les utilisateurs ;
    # vide = heure locale du serveur. Un utilisateur d'un autre fuseau change de jour à un autre moment.
    challenge_timezone: str = ""
    message_ttl_s: float = 5.0

    # === GEMINI ===
    gemini_api_url: str = (
        "https://generativelanguage.googleapis.com/v1beta/models/"
        "gemini-2.5-flash-preview-09-2025:generateContent"
    )
    gemini_api_key: str = ""
    gemini_timeout_s: float = 30.0
    gemini_max_attempts: int = 3
    gemini_backoff_base_s: float = 1.0

    # UPLOAD
    one_kb: int = 1024
    max_body_kb: int = 64

    # === LOGS ===
    logs_dir: str = "logs"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def mongodb_uri(self) -> str:
        """Build the full MongoDB URI from template."""
        return self.mongodb_uri_tpl.replace("[[MONGODB_USER]]", self.mongodb_user)\
                                   .replace("[[MONGODB_PASSWORD]]", self.mongodb_password)

    @property
    def max_body_bytes(self) -> int:
        return self.max_body_kb * self.one_kb


@lru_cache
def get_settings() -> Settings:
    """Instance unique des settings (chargée une fois)."""
    loaded = Settings()
    print("--- Settings loaded ---")
    return loaded


# Instance globale
settings = get_settings()
