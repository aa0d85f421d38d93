# backend/app/api/routes/auth.py
# Routes d'identité :
# - Connexion anonyme (nouvel identifiant opaque)
# - Échange d'un jeton personnalisé contre un jeton d'accès

from __future__ import annotations

from fastapi import APIRouter, Body, HTTPException, status
from jose import JWTError
from pydantic import BaseModel, Field

from app.core.logging_config import get_loggers
from app.core.security import create_access_token, decode_subject, new_owner_id

logger_generic, _, _ = get_loggers()

router = APIRouter(prefix="/auth", tags=["auth"])


class TokenResponse(BaseModel):
    """Réponse avec jeton d'accès.

    Attributes:
        access_token (str): Jeton d'accès.
        token_type (str): 'bearer'.
        owner_id (str): Identifiant opaque de l'utilisateur.
    """

    access_token: str
    token_type: str = "bearer"
    owner_id: str


class CustomTokenRequest(BaseModel):
    token: str = Field(..., description="Jeton personnalisé signé (claim `sub`).")


@router.post(
    "/anonymous",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Connexion anonyme",
    description=(
        "Crée un identifiant utilisateur opaque et stable et retourne un jeton d'accès.\n\n"
        "- Aucun compte ni mot de passe\n"
        "- L'identifiant sert de clé à toutes les données du journal"
    ),
)
async def sign_in_anonymously():
    """Connexion anonyme.

    Returns:
        TokenResponse: Jeton d'accès et identifiant attribué.
    """
    owner_id = new_owner_id()
    logger_generic.info(f"Anonymous sign-in: {owner_id}")
    return TokenResponse(access_token=create_access_token({"sub": owner_id}), owner_id=owner_id)


@router.post(
    "/token",
    response_model=TokenResponse,
    summary="Connexion par jeton personnalisé",
    description="Échange un jeton personnalisé valide contre un jeton d'accès pour le même identifiant.",
)
async def sign_in_with_custom_token(
    payload: CustomTokenRequest = Body(..., description="Jeton personnalisé."),
):
    """Connexion par jeton personnalisé.

    Args:
        payload (CustomTokenRequest): Jeton émis par un tiers de confiance.

    Returns:
        TokenResponse: Nouveau jeton d'accès.

    Raises:
        HTTPException: 401 si le jeton est invalide ou expiré.
    """
    try:
        owner_id = decode_subject(payload.token)
    except JWTError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid custom token") from e
    return TokenResponse(access_token=create_access_token({"sub": owner_id}), owner_id=owner_id)
