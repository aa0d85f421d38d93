# backend/app/core/security.py
# Identité opaque des utilisateurs : émission/validation JWT, dépendance FastAPI `get_current_owner_id`.

import datetime as dt
from typing import Annotated
from uuid import uuid4

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt

from app.core.settings import get_settings
from app.core.utils import utcnow

settings = get_settings()

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/anonymous", scopes={})


def new_owner_id() -> str:
    """Génère un identifiant utilisateur opaque et stable.

    Description:
        Produit un identifiant aléatoire (UUID4 hex) attribué à la connexion anonyme ;
        il devient la clé de toutes les données de l'utilisateur.

    Returns:
        str: Identifiant opaque.
    """
    return uuid4().hex


def create_access_token(data: dict, expires_delta: dt.timedelta | None = None) -> str:
    """Crée un access token JWT.

    Description:
        Encode un JWT signé contenant `data` (ex. `sub`) et une date d'expiration.
        L'expiration par défaut est `settings.jwt_expiration_minutes`.

    Args:
        data (dict): Claims à inclure (ex. `{"sub": "<owner_id>"}`).
        expires_delta (datetime.timedelta | None): Durée de validité.

    Returns:
        str: Jeton JWT signé.
    """
    to_encode = data.copy()
    expire = utcnow() + (expires_delta or dt.timedelta(minutes=settings.jwt_expiration_minutes))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_subject(token: str) -> str:
    """Décode un JWT et retourne son `sub`.

    Raises:
        JWTError: Jeton invalide, expiré, ou sans `sub` exploitable.
    """
    payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    subject = payload.get("sub")
    if not subject or not isinstance(subject, str):
        raise JWTError("Missing subject")
    return subject


async def get_current_owner_id(token: str = Depends(oauth2_scheme)) -> str:
    """Dépendance FastAPI: identifiant de l'utilisateur courant depuis le JWT.

    Description:
        - Décode le JWT reçu via le schéma OAuth2 Bearer
        - Retourne `sub` (identifiant opaque du propriétaire)
        - Lève 401 si le token est invalide

    Args:
        token (str): Jeton d'authentification Bearer (injection via `oauth2_scheme`).

    Returns:
        str: Identifiant du propriétaire.

    Raises:
        HTTPException: 401 si jeton invalide ou expiré.
    """
    try:
        return decode_subject(token)
    except JWTError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e


# Type alias pour faciliter l'usage
CurrentOwnerId = Annotated[str, Depends(get_current_owner_id)]
