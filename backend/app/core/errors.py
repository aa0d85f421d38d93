# backend/app/core/errors.py
# Taxonomie des erreurs métier du journal (initialisation, flux, validation, persistance, IA).

from __future__ import annotations

from typing import Any


class JournalError(Exception):
    """Erreur métier de base.

    Description:
        Porte un `code` stable (exposé dans l'enveloppe `ErrorResponse`) et le statut HTTP
        à utiliser quand l'erreur remonte jusqu'à une route.
    """

    code = "JOURNAL_ERROR"
    http_status = 500

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_detail(self) -> dict[str, Any]:
        detail: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            detail["details"] = self.details
        return detail


class InitializationFailure(JournalError):
    """Configuration backend absente ou bootstrap impossible (bloquant)."""

    code = "INITIALIZATION_FAILURE"
    http_status = 503


class SubscriptionFailure(JournalError):
    """Le flux temps réel des enregistrements a échoué (non bloquant)."""

    code = "SUBSCRIPTION_FAILURE"
    http_status = 503


class ValidationFailure(JournalError):
    code = "VALIDATION_FAILURE"
    http_status = 422


class PersistenceFailure(JournalError):
    code = "PERSISTENCE_FAILURE"
    http_status = 503


class CompletionFailure(JournalError):
    """Échec terminal du client de complétion après épuisement des tentatives."""

    code = "COMPLETION_FAILURE"
    http_status = 502

    def __init__(self, attempts: int, last_reason: str | None = None):
        super().__init__(
            f"Gemini feature failed after {attempts} attempts.",
            attempts=attempts,
            last_reason=last_reason,
        )
        self.attempts = attempts
        self.last_reason = last_reason
