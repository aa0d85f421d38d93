# backend/app/api/deps.py
# Dépendances FastAPI : magasin de documents, service du journal, client IA, registre des sessions.

from __future__ import annotations

from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Request

from app.core.errors import InitializationFailure
from app.core.security import CurrentOwnerId
from app.core.settings import get_settings
from app.core.utils import now
from app.db.document_store import DocumentStore
from app.db.mongodb import get_database
from app.services.completion.gemini_client import GeminiClient
from app.services.journal.journal_service import JournalService
from app.services.journal.session import JournalSession, SessionRegistry


@lru_cache
def get_document_store() -> DocumentStore:
    return DocumentStore(get_database())


def get_journal_service() -> JournalService:
    return JournalService(get_document_store(), get_settings().app_id)


@lru_cache
def get_completion_client() -> GeminiClient:
    return GeminiClient.from_settings()


@lru_cache
def get_session_registry() -> SessionRegistry:
    """Registre unique ; chaque session partage le magasin (et donc ses abonnements)."""
    settings = get_settings()

    def _factory(owner_id: str) -> JournalSession:
        return JournalSession(
            owner_id,
            get_journal_service(),
            get_completion_client(),
            start_date=settings.challenge_start_date,
            length=settings.challenge_length_days,
            message_ttl_s=settings.message_ttl_s,
            clock=lambda: now(settings.challenge_timezone),
        )

    return SessionRegistry(_factory)


def require_initialized(request: Request) -> None:
    """Bloque les routes du journal si le démarrage a échoué."""
    init_error = getattr(request.app.state, "init_error", None)
    if init_error is not None:
        raise InitializationFailure(init_error.message, **init_error.details)


async def get_journal_session(
    owner_id: CurrentOwnerId,
    registry: Annotated[SessionRegistry, Depends(get_session_registry)],
) -> JournalSession:
    return await registry.get(owner_id)


CurrentSession = Annotated[JournalSession, Depends(get_journal_session)]
