# backend/app/api/routes/base.py
# Routes de base (ping, référentiel des archétypes).

from fastapi import APIRouter

from app.shared.constants import ARCHETYPES

router = APIRouter()


@router.get("/archetypes", summary="Get all archetypes")
async def get_archetypes():
    """Get the 5 journal archetypes with their title and writing prompt."""
    return [{"key": key, "title": title, "prompt": prompt} for key, title, prompt in ARCHETYPES]


@router.get(
    "/ping",
    tags=["Health"],
    summary="Vérification de santé de l'API",
    description="Retourne un message 'pong' permettant de tester que l'API répond.",
)
async def ping():
    """Health-check API.

    Returns:
        dict: Statut et message de réponse.
    """
    return {"status": "ok", "message": "pong"}
