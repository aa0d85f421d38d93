# backend/app/services/journal/daily_log_state.py
# Machine à états de la saisie quotidienne : NoRecordToday -> RecordExistsToday.

from __future__ import annotations

import datetime as dt
from enum import Enum
from typing import Iterable

from app.core.errors import ValidationFailure
from app.core.utils import epoch_ms, format_us_date
from app.models.challenge_record import ArchetypeEntries, ChallengeRecord
from app.services.challenge_day import ChallengeDay

EMPTY_SUBMISSION_MESSAGE = "Please fill out at least one archetype reflection before submitting."
INACTIVE_CHALLENGE_MESSAGE = "Challenge is not currently active."


class DailyLogState(str, Enum):
    NO_RECORD_TODAY = "NoRecordToday"
    RECORD_EXISTS_TODAY = "RecordExistsToday"


class SubmissionDecision(str, Enum):
    ACCEPT = "accept"
    ALREADY_LOGGED = "already_logged"


class DailyLogStateMachine:
    """Règles d'éligibilité de la saisie du jour.

    Description:
        L'état n'est jamais stocké : il est dérivé du dernier snapshot d'enregistrements
        persistés et du jour courant. La transition vers `RecordExistsToday` n'a donc lieu
        qu'une fois l'écriture observée via l'abonnement.
    """

    @staticmethod
    def derive_state(records: Iterable[ChallengeRecord], challenge_day: ChallengeDay) -> DailyLogState:
        """Dériver l'état du jour.

        Args:
            records: Snapshot des enregistrements de l'utilisateur.
            challenge_day: Jour courant (valeur brute utilisée comme clé).

        Returns:
            DailyLogState: `RecordExistsToday` si un enregistrement porte le jour brut courant.
        """
        if any(record.day == challenge_day.raw for record in records):
            return DailyLogState.RECORD_EXISTS_TODAY
        return DailyLogState.NO_RECORD_TODAY

    @staticmethod
    def check_submission(
        entries: ArchetypeEntries,
        challenge_day: ChallengeDay,
        state: DailyLogState,
    ) -> SubmissionDecision:
        """Appliquer les gardes de soumission, dans l'ordre.

        Args:
            entries: Entrées saisies.
            challenge_day: Jour courant.
            state: État dérivé courant.

        Returns:
            SubmissionDecision: `ACCEPT`, ou `ALREADY_LOGGED` (no-op idempotent).

        Raises:
            ValidationFailure: Entrées toutes vides, ou challenge inactif.
        """
        if not entries.has_content():
            raise ValidationFailure(EMPTY_SUBMISSION_MESSAGE)
        if not challenge_day.is_active:
            raise ValidationFailure(
                INACTIVE_CHALLENGE_MESSAGE,
                raw_day=challenge_day.raw,
                phase=challenge_day.phase.value,
            )
        if state is DailyLogState.RECORD_EXISTS_TODAY:
            return SubmissionDecision.ALREADY_LOGGED
        return SubmissionDecision.ACCEPT

    @staticmethod
    def build_record(
        owner_id: str,
        entries: ArchetypeEntries,
        challenge_day: ChallengeDay,
        today: dt.date,
        timestamp: int | None = None,
    ) -> ChallengeRecord:
        return ChallengeRecord(
            day=challenge_day.raw,
            date=format_us_date(today),
            entries=entries,
            timestamp=timestamp if timestamp is not None else epoch_ms(),
            owner_id=owner_id,
        )

    @staticmethod
    def sort_history(records: Iterable[ChallengeRecord]) -> tuple[ChallengeRecord, ...]:
        """Historique trié par jour croissant, quel que soit l'ordre d'arrivée."""
        return tuple(sorted(records, key=lambda record: record.day))
