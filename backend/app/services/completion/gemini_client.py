# backend/app/services/completion/gemini_client.py
# Client Gemini `generateContent` résilient : tentatives bornées, backoff exponentiel,
# continuation sur 429 et observables `pending` / `error` pour l'appelant.

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Union

import httpx

from app.core.errors import CompletionFailure
from app.core.logging_config import get_loggers
from app.core.settings import Settings, get_settings

logger_generic, logger_errors, _ = get_loggers()

MALFORMED_BODY = "Gemini response was empty or malformed."


# --- Résultat d'une tentative ---
@dataclass(frozen=True)
class Success:
    text: str


@dataclass(frozen=True)
class RateLimited:
    status_code: int = 429


@dataclass(frozen=True)
class Failure:
    reason: str


AttemptOutcome = Union[Success, RateLimited, Failure]


class CompletionState:
    """Observables d'un appel de complétion côté appelant.

    Description:
        `pending` vaut True pendant toute la durée d'un appel. `error` est remis à None au
        début de chaque appel et n'est positionné que sur échec terminal. Seul le cycle de vie
        du client écrit ces champs ; l'appelant peut uniquement acquitter l'erreur.
    """

    def __init__(self) -> None:
        self.pending: bool = False
        self.error: Optional[str] = None

    def dismiss_error(self) -> None:
        self.error = None


class GeminiClient:
    """Client HTTP du endpoint de complétion.

    Description:
        Un appel `complete()` effectue jusqu'à `max_attempts` tentatives séquentielles.
        Avant la tentative n (n ≥ 2), attend `2^(n-2) * backoff_base_s` secondes
        (1 s, 2 s, 4 s... avec la base par défaut) via un `sleep` asynchrone qui ne bloque
        pas la boucle. Chaque tentative produit un résultat typé ; la décision
        continuer/arrêter est prise explicitement par la boucle de `complete()`.
    """

    def __init__(
        self,
        api_url: str,
        api_key: str = "",
        *,
        timeout_s: float = 30.0,
        max_attempts: int = 3,
        backoff_base_s: float = 1.0,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.api_url = api_url
        self.api_key = api_key
        self.timeout_s = timeout_s
        self.max_attempts = max_attempts
        self.backoff_base_s = backoff_base_s
        self._transport = transport
        self._sleep = sleep

    @classmethod
    def from_settings(cls, settings: Settings | None = None, **kwargs: Any) -> "GeminiClient":
        settings = settings or get_settings()
        return cls(
            settings.gemini_api_url,
            settings.gemini_api_key,
            timeout_s=settings.gemini_timeout_s,
            max_attempts=settings.gemini_max_attempts,
            backoff_base_s=settings.gemini_backoff_base_s,
            **kwargs,
        )

    @staticmethod
    def build_payload(system_prompt: str, user_query: str) -> dict[str, Any]:
        return {
            "contents": [{"parts": [{"text": user_query}]}],
            "systemInstruction": {"parts": [{"text": system_prompt}]},
        }

    @staticmethod
    def extract_text(body: Any) -> Optional[str]:
        """Texte de `candidates[0].content.parts[0].text`, ou None si absent/mal formé."""
        try:
            text = body["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError):
            return None
        if not isinstance(text, str) or not text:
            return None
        return text

    def backoff_delay(self, attempt_number: int) -> float:
        """Délai à attendre avant la tentative `attempt_number` (1-based, ≥ 2)."""
        return (2 ** (attempt_number - 2)) * self.backoff_base_s

    async def _attempt(self, client: httpx.AsyncClient, payload: dict[str, Any]) -> AttemptOutcome:
        try:
            resp = await client.post(self.api_url, params={"key": self.api_key}, json=payload)
        except httpx.HTTPError as e:
            return Failure(f"transport error: {e!r}")

        if resp.status_code == 429:
            return RateLimited()
        if not resp.is_success:
            return Failure(f"API error: {resp.status_code} {resp.reason_phrase}")

        try:
            body = resp.json()
        except ValueError:
            return Failure(MALFORMED_BODY)

        text = self.extract_text(body)
        if text is None:
            return Failure(MALFORMED_BODY)
        return Success(text)

    async def complete(
        self,
        system_prompt: str,
        user_query: str,
        max_attempts: int | None = None,
        state: CompletionState | None = None,
    ) -> str:
        """Obtenir une complétion avec tentatives bornées.

        Args:
            system_prompt: Instruction système.
            user_query: Requête utilisateur.
            max_attempts: Nombre maximal de tentatives (défaut : celui du client).
            state: Observables à mettre à jour (pending/error).

        Returns:
            str: Texte de la première réponse bien formée.

        Raises:
            CompletionFailure: Après `max_attempts` tentatives sans succès.
            ValueError: Si `max_attempts` est inférieur à 1.
        """
        attempts = max_attempts if max_attempts is not None else self.max_attempts
        if attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {attempts}")
        payload = self.build_payload(system_prompt, user_query)
        last_reason: str | None = None

        if state is not None:
            state.error = None
            state.pending = True
        try:
            async with httpx.AsyncClient(timeout=self.timeout_s, transport=self._transport) as client:
                for attempt_number in range(1, attempts + 1):
                    if attempt_number > 1:
                        await self._sleep(self.backoff_delay(attempt_number))

                    outcome = await self._attempt(client, payload)

                    if isinstance(outcome, Success):
                        return outcome.text
                    if isinstance(outcome, RateLimited):
                        last_reason = "rate limited (429)"
                        logger_generic.info(f"Gemini attempt {attempt_number} rate limited")
                    else:
                        last_reason = outcome.reason
                        logger_errors.error(f"Gemini API attempt {attempt_number} failed: {outcome.reason}")

            failure = CompletionFailure(attempts, last_reason)
            if state is not None:
                state.error = failure.message
            raise failure
        finally:
            if state is not None:
                state.pending = False
