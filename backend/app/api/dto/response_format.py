# backend/app/api/dto/response_format.py
# Enveloppes de réponse communes (succès / erreur) partagées par toutes les routes.

from typing import Any, Generic, Optional, TypeVar, Union

from pydantic import BaseModel

from app.core.errors import JournalError

T = TypeVar("T")


class SuccessResponse(BaseModel, Generic[T]):
    """Format standardisé pour les réponses de succès."""

    success: bool = True
    data: Optional[T] = None
    message: Optional[str] = None


class ErrorResponse(BaseModel):
    """Format standardisé pour les réponses d'erreur."""

    success: bool = False
    error: dict[str, Any]

    @classmethod
    def from_detail(cls, detail: Union[str, dict[str, Any]], code: str = "VALIDATION_ERROR"):
        """Créer une réponse d'erreur à partir d'un détail (chaîne ou dict déjà codé)."""
        if isinstance(detail, str):
            return cls(error={"code": code, "message": detail})
        return cls(error={"code": code, **detail})

    @classmethod
    def from_journal_error(cls, exc: JournalError):
        """Créer une réponse d'erreur à partir d'une erreur métier du journal."""
        return cls.from_detail(exc.to_detail(), code=exc.code)
