# backend/app/api/routes/journal.py
# Routes "mon journal" : vues (accueil, saisie, historique), brouillon, soumission du jour,
# coach IA, flux temps réel (SSE) et fin de session.

from __future__ import annotations

import asyncio
import json
from typing import Annotated, Optional, Union

from fastapi import APIRouter, Body, Depends, Path, Request
from fastapi.responses import StreamingResponse
from pydantic import Field

from app.api.deps import CurrentSession, get_journal_service, get_session_registry, require_initialized
from app.core.errors import SubscriptionFailure
from app.core.logging_config import extract_user_data, get_loggers
from app.core.security import CurrentOwnerId
from app.models.journal_view_dto import (
    AiResultOut,
    AiStatusOut,
    ArchetypeIn,
    DailyLogView,
    DraftIn,
    HistoryView,
    HomeView,
    Page,
    SubmitIn,
    SynthesisIn,
)
from app.services.journal.journal_service import JournalService
from app.services.journal.session import SessionRegistry

logger_generic, _, _ = get_loggers()

STREAM_KEEPALIVE_S = 15.0

router = APIRouter(
    prefix="/my/journal",
    tags=["my-journal"],
    dependencies=[Depends(require_initialized)],
)

JournalView = Annotated[Union[HomeView, DailyLogView, HistoryView], Field(discriminator="page")]


@router.get(
    "",
    response_model=JournalView,
    summary="Vue courante",
    description="Retourne la projection de la page courante de la session (accueil par défaut).",
)
async def current_view(session: CurrentSession):
    return session.view()


@router.put(
    "/draft",
    response_model=DailyLogView,
    summary="Mettre à jour le brouillon du jour",
    description="Met à jour tout ou partie des 5 entrées d'archétype du brouillon (non persisté).",
)
async def update_draft(
    payload: Annotated[DraftIn, Body(..., description="Entrées par clé d'archétype.")],
    session: CurrentSession,
):
    session.update_draft({key.value: value for key, value in payload.entries.items()})
    return session.daily_log_view()


@router.post(
    "/submit",
    response_model=HomeView,
    summary="Soumettre la saisie du jour",
    description=(
        "Enregistre la saisie du jour (clé `Day-{day}`) et sa projection publique.\n\n"
        "- 422 si toutes les entrées sont vides ou si le challenge n'est pas actif\n"
        "- No-op si le jour est déjà saisi\n"
        "- 503 si l'écriture échoue"
    ),
)
async def submit(
    request: Request,
    session: CurrentSession,
    payload: Optional[SubmitIn] = None,
):
    """Soumettre la saisie du jour.

    Description:
        Utilise les entrées fournies, ou à défaut le brouillon de la session. Après succès, la
        session revient sur l'accueil avec un message de confirmation.

    Args:
        payload (SubmitIn | None): Entrées optionnelles.

    Returns:
        HomeView: Vue d'accueil après soumission.
    """
    state = await session.submit(payload.entries if payload else None)
    logger_generic.info(
        f"Submit by {session.owner_id}: {state.value}",
        extra={"user_data": extract_user_data(session.owner_id, request)},
    )
    return session.home_view()


@router.post(
    "/synthesis",
    response_model=AiResultOut,
    summary="Synthèse IA du jour",
    description="Demande au coach un titre et un résumé des entrées du jour (brouillon ou entrées fournies).",
)
async def synthesis(
    session: CurrentSession,
    payload: Optional[SynthesisIn] = None,
):
    result = await session.synthesize(payload.entries if payload else None)
    return AiResultOut(result=result, ai=AiStatusOut(pending=session.ai.pending, error=session.ai.error))


@router.put(
    "/analysis/archetype",
    response_model=HistoryView,
    summary="Choisir l'archétype à analyser",
)
async def select_archetype(
    payload: Annotated[ArchetypeIn, Body(...)],
    session: CurrentSession,
):
    session.select_archetype(payload.archetype)
    return session.history_view()


@router.post(
    "/analysis",
    response_model=AiResultOut,
    summary="Analyse IA de progression",
    description=(
        "Analyse l'historique de l'archétype sélectionné (ou fourni).\n\n"
        "- Sans historique ou avec trop peu de texte : message explicatif, sans appel IA"
    ),
)
async def analysis(
    session: CurrentSession,
    payload: Optional[ArchetypeIn] = None,
):
    result = await session.analyze_growth(payload.archetype if payload else None)
    return AiResultOut(result=result, ai=AiStatusOut(pending=session.ai.pending, error=session.ai.error))


@router.delete(
    "/ai-error",
    response_model=AiStatusOut,
    summary="Acquitter l'erreur IA",
)
async def dismiss_ai_error(session: CurrentSession):
    session.dismiss_ai_error()
    return AiStatusOut(pending=session.ai.pending, error=session.ai.error)


@router.get(
    "/stream",
    summary="Flux temps réel des enregistrements (SSE)",
    description=(
        "Émet un événement `snapshot` (liste complète triée par jour) à l'ouverture puis à chaque "
        "écriture ; un événement `error` si le flux échoue. L'abonnement est libéré à la déconnexion."
    ),
)
async def stream(
    request: Request,
    owner_id: CurrentOwnerId,
    journal: Annotated[JournalService, Depends(get_journal_service)],
):
    queue: asyncio.Queue = asyncio.Queue()

    async def _on_records(records) -> None:
        await queue.put(records)

    async def _on_error(failure: SubscriptionFailure) -> None:
        await queue.put(failure)

    subscription = await journal.subscribe_records(owner_id, _on_records, _on_error)

    async def _events():
        try:
            while not await request.is_disconnected():
                try:
                    item = await asyncio.wait_for(queue.get(), timeout=STREAM_KEEPALIVE_S)
                except asyncio.TimeoutError:
                    yield ": keep-alive\n\n"
                    continue
                if isinstance(item, SubscriptionFailure):
                    yield f"event: error\ndata: {json.dumps(item.to_detail())}\n\n"
                    continue
                data = json.dumps([record.model_dump(mode="json", by_alias=True) for record in item])
                yield f"event: snapshot\ndata: {data}\n\n"
        finally:
            subscription.close()

    return StreamingResponse(_events(), media_type="text/event-stream")


@router.delete(
    "/session",
    summary="Terminer la session",
    description="Ferme la session courante et libère son abonnement.",
)
async def end_session(
    owner_id: CurrentOwnerId,
    registry: Annotated[SessionRegistry, Depends(get_session_registry)],
):
    ended = await registry.end(owner_id)
    return {"ended": ended}


@router.get(
    "/{page}",
    response_model=JournalView,
    summary="Naviguer vers une vue",
    description="Change la page courante (`home`, `log`, `history`) et retourne sa projection.",
)
async def navigate(
    page: Annotated[Page, Path(..., description="Page cible.")],
    session: CurrentSession,
):
    session.navigate(page)
    return session.view()
