# backend/app/api/routes/public.py
# Routes de responsabilité publique : statuts "Complete" par jour et reconstruction de la projection.

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_journal_service, require_initialized
from app.api.dto.response_format import SuccessResponse
from app.core.security import CurrentOwnerId, get_current_owner_id
from app.models.challenge_record import PublicStatus
from app.services.journal.journal_service import JournalService

router = APIRouter(
    tags=["public"],
    dependencies=[Depends(get_current_owner_id), Depends(require_initialized)],
)


@router.get(
    "/public/daily-status",
    response_model=list[PublicStatus],
    summary="Statuts publics des jours complétés",
    description=(
        "Liste les statuts `Complete` de tous les membres, triés par jour puis identifiant.\n\n"
        "- Filtre optionnel `day` (1–30)"
    ),
)
async def list_daily_status(
    journal: Annotated[JournalService, Depends(get_journal_service)],
    day: int | None = Query(default=None, ge=1, le=30, description="Jour du challenge."),
):
    """Flux public de responsabilité.

    Args:
        day (int | None): Jour à filtrer.

    Returns:
        list[PublicStatus]: Statuts publics.
    """
    return await journal.list_public_status(day)


@router.post(
    "/my/public-status/rebuild",
    response_model=SuccessResponse[int],
    summary="Reconstruire mes statuts publics",
    description="Réécrit la projection publique à partir de mes enregistrements privés (idempotent).",
)
async def rebuild_my_public_status(
    owner_id: CurrentOwnerId,
    journal: Annotated[JournalService, Depends(get_journal_service)],
):
    written = await journal.rebuild_public_status(owner_id)
    return SuccessResponse[int](data=written, message=f"{written} public status document(s) written")
