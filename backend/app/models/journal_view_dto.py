# backend/app/models/journal_view_dto.py
# DTOs des vues du journal (accueil, saisie du jour, historique) : projections en lecture seule.

from __future__ import annotations

from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, Field, computed_field

from app.models.challenge_record import Archetype, ArchetypeEntries, ChallengeRecord
from app.services.challenge_day import ChallengeDay, ChallengePhase
from app.services.journal.daily_log_state import DailyLogState


class Page(str, Enum):
    HOME = "home"
    LOG = "log"
    HISTORY = "history"


class MessageOut(BaseModel):
    """Message transitoire (expire après quelques secondes)."""

    message: str
    type: Literal["info", "success", "error"] = "info"


class AiStatusOut(BaseModel):
    pending: bool = False
    error: Optional[str] = None


class ChallengeDayOut(BaseModel):
    """Jour du challenge.

    Attributes:
        raw (int): Valeur brute (sert à décider si le challenge est actif).
        clamped (int): Valeur bornée 1–30, pour l'affichage.
        phase (ChallengePhase): pending | active | complete.
        is_active (bool): Challenge en cours.
        length (int): Durée du challenge.
    """

    raw: int
    clamped: int
    phase: ChallengePhase
    is_active: bool
    length: int

    @classmethod
    def from_day(cls, day: ChallengeDay) -> "ChallengeDayOut":
        return cls(raw=day.raw, clamped=day.clamped, phase=day.phase, is_active=day.is_active, length=day.length)


class ArchetypeField(BaseModel):
    key: Archetype
    title: str
    prompt: str
    value: str = ""


class BaseView(BaseModel):
    owner_id: str
    challenge: ChallengeDayOut
    state: DailyLogState
    message: Optional[MessageOut] = None
    error: Optional[str] = None

    @computed_field
    @property
    def has_logged_today(self) -> bool:
        return self.state is DailyLogState.RECORD_EXISTS_TODAY


class HomeView(BaseView):
    page: Literal[Page.HOME] = Page.HOME
    status_text: str
    can_start_log: bool


class DailyLogView(BaseView):
    page: Literal[Page.LOG] = Page.LOG
    fields: list[ArchetypeField] = Field(default_factory=list)
    ai: AiStatusOut = Field(default_factory=AiStatusOut)
    synthesis_result: Optional[str] = None


class HistoryView(BaseView):
    page: Literal[Page.HISTORY] = Page.HISTORY
    records: list[ChallengeRecord] = Field(default_factory=list)
    selected_archetype: Archetype = Archetype.KING
    can_analyze: bool = False
    ai: AiStatusOut = Field(default_factory=AiStatusOut)
    analysis_result: Optional[str] = None


# --- Entrées ---
class DraftIn(BaseModel):
    """Mise à jour partielle du brouillon (clés d'archétype uniquement)."""

    entries: dict[Archetype, str]


class SubmitIn(BaseModel):
    entries: Optional[ArchetypeEntries] = None


class SynthesisIn(BaseModel):
    entries: Optional[ArchetypeEntries] = None


class ArchetypeIn(BaseModel):
    archetype: Archetype


class AiResultOut(BaseModel):
    result: Optional[str] = None
    ai: AiStatusOut
