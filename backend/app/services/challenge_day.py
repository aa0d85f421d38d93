# backend/app/services/challenge_day.py
# Calcul du jour courant du challenge (valeur brute + valeur bornée pour l'affichage).

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from enum import Enum

CHALLENGE_LENGTH_DAYS = 30


class ChallengePhase(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    COMPLETE = "complete"


@dataclass(frozen=True)
class ChallengeDay:
    """Jour du challenge pour une date donnée.

    Attributes:
        raw (int): Écart en jours + 1, non borné (< 1 avant le début, > length après la fin).
        clamped (int): `raw` borné à [1, length], à n'utiliser que pour l'affichage.
        length (int): Durée du challenge en jours.
    """

    raw: int
    clamped: int
    length: int = CHALLENGE_LENGTH_DAYS

    @property
    def phase(self) -> ChallengePhase:
        if self.raw < 1:
            return ChallengePhase.PENDING
        if self.raw > self.length:
            return ChallengePhase.COMPLETE
        return ChallengePhase.ACTIVE

    @property
    def is_active(self) -> bool:
        return self.phase is ChallengePhase.ACTIVE


def _as_date(value: dt.date | dt.datetime) -> dt.date:
    # datetime hérite de date : tronquer l'heure
    return value.date() if isinstance(value, dt.datetime) else value


def day_index(
    start_date: dt.date | dt.datetime,
    now: dt.date | dt.datetime,
    length: int = CHALLENGE_LENGTH_DAYS,
) -> ChallengeDay:
    """Calculer le jour du challenge.

    Description:
        Tronque `start_date` et `now` à minuit, calcule l'écart en jours calendaires et ajoute 1
        (le jour de départ est le jour 1). L'arithmétique sur `date` évite les jours de 23h/25h
        des changements d'heure. La valeur bornée est ambiguë aux extrémités (jour 1 / pas
        commencé, jour 30 / terminé) : l'activité se décide toujours sur la valeur brute.

    Args:
        start_date: Date de début du challenge.
        now: Date/heure courante (heure murale de l'utilisateur).
        length: Durée du challenge en jours.

    Returns:
        ChallengeDay: Valeurs brute et bornée.
    """
    raw = (_as_date(now) - _as_date(start_date)).days + 1
    return ChallengeDay(raw=raw, clamped=min(max(1, raw), length), length=length)
