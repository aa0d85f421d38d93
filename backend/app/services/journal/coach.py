# backend/app/services/journal/coach.py
# Préparation des demandes au coach IA (synthèse du jour, analyse de progression).

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from app.core.errors import ValidationFailure
from app.models.challenge_record import Archetype, ArchetypeEntries, ChallengeRecord
from app.services.completion import prompts
from app.shared.constants import ANALYSIS_ENTRY_SEPARATOR, ANALYSIS_MIN_CHARS, ARCHETYPE_TITLES

EMPTY_SYNTHESIS_MESSAGE = "Please fill out your entries before synthesizing."
NO_HISTORY_MESSAGE = "No history logs available for analysis yet."


@dataclass(frozen=True)
class CoachRequest:
    """Demande prête à envoyer, ou réponse immédiate sans appel IA.

    Attributes:
        system_prompt (str | None): Instruction système.
        user_query (str | None): Requête utilisateur.
        immediate_result (str | None): Résultat à afficher tel quel (pas assez de données).
    """

    system_prompt: Optional[str] = None
    user_query: Optional[str] = None
    immediate_result: Optional[str] = None

    @property
    def needs_completion(self) -> bool:
        return self.immediate_result is None


def synthesis_request(entries: ArchetypeEntries) -> CoachRequest:
    """Demande de synthèse du jour ; refusée si aucune entrée n'est remplie."""
    if not entries.has_content():
        raise ValidationFailure(EMPTY_SYNTHESIS_MESSAGE)
    return CoachRequest(
        system_prompt=prompts.SYNTHESIS_SYSTEM_PROMPT,
        user_query=prompts.synthesis_query(entries),
    )


def growth_request(records: Iterable[ChallengeRecord], archetype: Archetype) -> CoachRequest:
    """Demande d'analyse de progression pour un archétype.

    Description:
        - aucun enregistrement : réponse immédiate `NO_HISTORY_MESSAGE`
        - entrées non vides de l'archétype jointes par `\\n---\\n`
        - moins de 50 caractères au total : réponse immédiate "pas assez de données"

    Args:
        records: Historique de l'utilisateur.
        archetype: Archétype à analyser.

    Returns:
        CoachRequest: Demande IA ou résultat immédiat.
    """
    records = list(records)
    if not records:
        return CoachRequest(immediate_result=NO_HISTORY_MESSAGE)

    title = ARCHETYPE_TITLES[archetype.value]
    history = ANALYSIS_ENTRY_SEPARATOR.join(
        entry
        for entry in (record.entries.get(archetype) for record in records)
        if entry and entry.strip()
    )
    if len(history) < ANALYSIS_MIN_CHARS:
        return CoachRequest(
            immediate_result=f"Not enough data for {title} analysis. Need more log entries."
        )

    return CoachRequest(
        system_prompt=prompts.growth_system_prompt(title),
        user_query=prompts.growth_query(title, history),
    )
