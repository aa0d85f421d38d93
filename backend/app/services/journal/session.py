# backend/app/services/journal/session.py
# Contrôleur de session du journal : état applicatif explicite d'un utilisateur,
# alimenté par l'abonnement aux enregistrements, et registre des sessions ouvertes.

from __future__ import annotations

import asyncio
import datetime as dt
import time
from dataclasses import dataclass
from typing import Callable, Optional

from pydantic import ValidationError

from app.core.errors import (
    CompletionFailure,
    InitializationFailure,
    PersistenceFailure,
    SubscriptionFailure,
    ValidationFailure,
)
from app.core.logging_config import get_loggers
from app.core.utils import now
from app.db.document_store import Subscription
from app.models.challenge_record import Archetype, ArchetypeEntries, ChallengeRecord
from app.models.journal_view_dto import (
    AiStatusOut,
    ArchetypeField,
    ChallengeDayOut,
    DailyLogView,
    HistoryView,
    HomeView,
    MessageOut,
    Page,
)
from app.services.challenge_day import CHALLENGE_LENGTH_DAYS, ChallengeDay, day_index
from app.services.completion.gemini_client import CompletionState, GeminiClient
from app.services.journal import coach
from app.services.journal.daily_log_state import DailyLogState, DailyLogStateMachine, SubmissionDecision
from app.services.journal.journal_service import JournalService
from app.shared.constants import ARCHETYPES

logger_generic, logger_errors, data_logger = get_loggers()

SAVE_FAILED_MESSAGE = "Failed to save your log. Please try again."
NOT_INITIALIZED_MESSAGE = "App not initialized. Cannot submit."
AI_BUSY_MESSAGE = "An AI request is already in progress."


@dataclass(frozen=True)
class _TransientMessage:
    message: str
    type: str
    expires_at: float


class JournalSession:
    """État applicatif d'un utilisateur et opérations associées.

    Description:
        Un seul contrôleur possède l'état (page courante, brouillon, snapshot des
        enregistrements, messages, observables IA). Les vues reçoivent des projections en
        lecture seule. Le snapshot est remplacé d'un bloc à chaque émission de l'abonnement,
        qui reste la seule source de vérité pour « le jour est-il déjà saisi ».
    """

    def __init__(
        self,
        owner_id: str,
        journal: JournalService,
        completion: GeminiClient,
        *,
        start_date: dt.date,
        length: int = CHALLENGE_LENGTH_DAYS,
        message_ttl_s: float = 5.0,
        clock: Callable[[], dt.datetime] = now,
        monotonic: Callable[[], float] = time.monotonic,
    ):
        self.owner_id = owner_id
        self.journal = journal
        self.completion = completion
        self.start_date = start_date
        self.length = length
        self.message_ttl_s = message_ttl_s
        self._clock = clock
        self._monotonic = monotonic

        self.page = Page.HOME
        self.records: tuple[ChallengeRecord, ...] = ()
        self.draft = ArchetypeEntries()
        self.error: Optional[str] = None
        self.ai = CompletionState()
        self.synthesis_result: Optional[str] = None
        self.analysis_result: Optional[str] = None
        self.selected_archetype = Archetype.KING

        self._message: Optional[_TransientMessage] = None
        self._view_epoch = 0
        self._armed_for: Optional[dt.date] = None
        self._subscription: Optional[Subscription] = None
        self.closed = False

    # --- cycle de vie ---
    async def open(self) -> None:
        """Ouvrir la session : abonnement au flux (snapshot initial inclus)."""
        self._sync_day()
        self._subscription = await self.journal.subscribe_records(
            self.owner_id, self._on_records, self._on_subscription_error
        )

    def close(self) -> None:
        """Fermer la session et libérer l'abonnement."""
        self.closed = True
        if self._subscription is not None:
            self._subscription.close()
            self._subscription = None

    async def _on_records(self, records: tuple[ChallengeRecord, ...]) -> None:
        self.records = records
        if self.daily_state is DailyLogState.RECORD_EXISTS_TODAY:
            self.draft = ArchetypeEntries()

    async def _on_subscription_error(self, failure: SubscriptionFailure) -> None:
        logger_errors.error(f"Record feed failed for {self.owner_id}: {failure.message}")
        self.error = failure.message

    # --- état dérivé ---
    @property
    def challenge_day(self) -> ChallengeDay:
        return day_index(self.start_date, self._clock(), self.length)

    @property
    def daily_state(self) -> DailyLogState:
        return DailyLogStateMachine.derive_state(self.records, self.challenge_day)

    def _sync_day(self) -> None:
        # Réarmement quand la date change dans une session longue
        today = self._clock().date()
        if self._armed_for != today:
            self._armed_for = today
            self.draft = ArchetypeEntries()
            self.synthesis_result = None

    # --- messages transitoires ---
    def show_message(self, message: str, type_: str = "info") -> None:
        self._message = _TransientMessage(message, type_, self._monotonic() + self.message_ttl_s)

    @property
    def message(self) -> Optional[MessageOut]:
        if self._message is None:
            return None
        if self._monotonic() >= self._message.expires_at:
            self._message = None
            return None
        return MessageOut(message=self._message.message, type=self._message.type)

    # --- navigation et brouillon ---
    def navigate(self, page: Page) -> None:
        """Changer de vue ; un résultat IA encore en vol pour l'ancienne vue sera ignoré."""
        self.page = Page(page)
        self._view_epoch += 1

    def update_draft(self, updates: dict[str, str]) -> ArchetypeEntries:
        self._sync_day()
        try:
            self.draft = ArchetypeEntries(**{**self.draft.as_dict(), **{Archetype(k).value: v for k, v in updates.items()}})
        except (ValueError, ValidationError) as e:
            raise ValidationFailure("Unknown archetype in entries.") from e
        return self.draft

    # --- soumission ---
    async def submit(self, entries: ArchetypeEntries | None = None) -> DailyLogState:
        """Soumettre la saisie du jour.

        Description:
            Applique les gardes (entrées vides, challenge inactif, jour déjà saisi), écrit
            l'enregistrement et sa projection publique puis revient à l'accueil. L'état passe à
            `RecordExistsToday` quand l'abonnement livre le snapshot contenant l'écriture.

        Args:
            entries: Entrées à soumettre (défaut : le brouillon courant).

        Returns:
            DailyLogState: État après soumission (inchangé si le jour était déjà saisi).

        Raises:
            InitializationFailure: Session fermée.
            ValidationFailure: Gardes non respectées (aucune écriture).
            PersistenceFailure: Écriture échouée (aucune mutation locale).
        """
        if self.closed:
            raise InitializationFailure(NOT_INITIALIZED_MESSAGE)
        self._sync_day()
        if entries is not None:
            self.draft = entries

        challenge_day = self.challenge_day
        state = self.daily_state
        try:
            decision = DailyLogStateMachine.check_submission(self.draft, challenge_day, state)
        except ValidationFailure as e:
            self.show_message(e.message, "error")
            raise

        if decision is SubmissionDecision.ALREADY_LOGGED:
            return state

        record = DailyLogStateMachine.build_record(
            self.owner_id, self.draft, challenge_day, self._clock().date()
        )
        try:
            await self.journal.save_record(record)
        except PersistenceFailure:
            self.error = SAVE_FAILED_MESSAGE
            raise

        data_logger.log_data("journal_submit", {"day": record.day, "date": record.date}, {"owner_id": self.owner_id})
        self.error = None
        self.show_message(f"Success! Day {challenge_day.raw} logged.", "success")
        self.draft = ArchetypeEntries()
        self.navigate(Page.HOME)
        return self.daily_state

    # --- coach IA ---
    def _ensure_ai_idle(self) -> None:
        if self.ai.pending:
            raise ValidationFailure(AI_BUSY_MESSAGE)

    async def _run_completion(self, kind: str, request: coach.CoachRequest) -> Optional[str]:
        self._ensure_ai_idle()
        epoch = self._view_epoch
        try:
            text = await self.completion.complete(request.system_prompt, request.user_query, state=self.ai)
        except CompletionFailure as e:
            # L'erreur est déjà exposée par `self.ai.error`
            logger_errors.error(f"Completion failed for {self.owner_id}: {e.message} ({e.last_reason})")
            data_logger.log_data(
                f"journal_{kind}",
                {"ok": False, "attempts": e.attempts, "last_reason": e.last_reason},
                {"owner_id": self.owner_id},
            )
            return None

        discarded = self.closed or epoch != self._view_epoch
        data_logger.log_data(
            f"journal_{kind}",
            {"ok": True, "query_chars": len(request.user_query or ""), "result_chars": len(text), "discarded": discarded},
            {"owner_id": self.owner_id},
        )
        if discarded:
            logger_generic.info(f"Discarding late AI result for {self.owner_id}")
            return None
        return text

    async def synthesize(self, entries: ArchetypeEntries | None = None) -> Optional[str]:
        """Synthèse IA du brouillon du jour (titre + résumé)."""
        self._sync_day()
        if entries is not None:
            self.draft = entries
        try:
            request = coach.synthesis_request(self.draft)
        except ValidationFailure as e:
            self.show_message(e.message, "error")
            raise

        self._ensure_ai_idle()
        self.analysis_result = None
        text = await self._run_completion("synthesis", request)
        if text is not None:
            self.synthesis_result = text
        return text

    def select_archetype(self, archetype: Archetype) -> None:
        self.selected_archetype = Archetype(archetype)
        self.analysis_result = None

    async def analyze_growth(self, archetype: Archetype | None = None) -> Optional[str]:
        """Analyse IA de progression pour l'archétype sélectionné."""
        if archetype is not None:
            self.select_archetype(archetype)

        request = coach.growth_request(self.records, self.selected_archetype)
        if request.needs_completion:
            self._ensure_ai_idle()
        if self.records:
            self.synthesis_result = None
        if not request.needs_completion:
            self.analysis_result = request.immediate_result
            return request.immediate_result

        text = await self._run_completion("growth_analysis", request)
        if text is not None:
            self.analysis_result = text
        return text

    def dismiss_ai_error(self) -> None:
        self.ai.dismiss_error()

    # --- projections ---
    def _base(self) -> dict:
        self._sync_day()
        return {
            "owner_id": self.owner_id,
            "challenge": ChallengeDayOut.from_day(self.challenge_day),
            "state": self.daily_state,
            "message": self.message,
            "error": self.error,
        }

    def _ai_status(self) -> AiStatusOut:
        return AiStatusOut(pending=self.ai.pending, error=self.ai.error)

    def home_view(self) -> HomeView:
        base = self._base()
        logged = base["state"] is DailyLogState.RECORD_EXISTS_TODAY
        return HomeView(
            **base,
            status_text="LOGGED & COMPLETE" if logged else "PENDING SUBMISSION",
            can_start_log=not logged and base["challenge"].is_active,
        )

    def daily_log_view(self) -> DailyLogView:
        base = self._base()
        fields = [
            ArchetypeField(key=key, title=title, prompt=prompt, value=self.draft.get(key))
            for key, title, prompt in ARCHETYPES
        ]
        return DailyLogView(**base, fields=fields, ai=self._ai_status(), synthesis_result=self.synthesis_result)

    def history_view(self) -> HistoryView:
        return HistoryView(
            **self._base(),
            records=list(self.records),
            selected_archetype=self.selected_archetype,
            can_analyze=bool(self.records) and not self.ai.pending,
            ai=self._ai_status(),
            analysis_result=self.analysis_result,
        )

    def view(self, page: Page | None = None) -> HomeView | DailyLogView | HistoryView:
        page = Page(page) if page is not None else self.page
        if page is Page.LOG:
            return self.daily_log_view()
        if page is Page.HISTORY:
            return self.history_view()
        return self.home_view()


SessionFactory = Callable[[str], JournalSession]


class SessionRegistry:
    """Registre des sessions ouvertes, une par propriétaire."""

    def __init__(self, factory: SessionFactory):
        self._factory = factory
        self._sessions: dict[str, JournalSession] = {}
        self._lock = asyncio.Lock()

    async def get(self, owner_id: str) -> JournalSession:
        """Session de `owner_id`, ouverte à la première demande."""
        async with self._lock:
            session = self._sessions.get(owner_id)
            if session is None:
                session = self._factory(owner_id)
                await session.open()
                self._sessions[owner_id] = session
            return session

    async def end(self, owner_id: str) -> bool:
        async with self._lock:
            session = self._sessions.pop(owner_id, None)
        if session is None:
            return False
        session.close()
        return True

    async def close_all(self) -> int:
        async with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
        for session in sessions:
            session.close()
        return len(sessions)

    def __len__(self) -> int:
        return len(self._sessions)
