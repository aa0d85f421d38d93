# backend/app/models/challenge_record.py
# Schémas du journal : entrées par archétype, enregistrement quotidien et projection publique.

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from app.shared.constants import ARCHETYPE_KEYS, DAY_DOC_PREFIX, PUBLIC_STATUS_COMPLETE


class Archetype(str, Enum):
    KING = "king"
    PRIEST = "priest"
    POET = "poet"
    JESTER = "jester"
    WARRIOR = "warrior"


class ArchetypeEntries(BaseModel):
    """Réflexions du jour, une par archétype.

    Description:
        Contient toujours exactement les 5 clés d'archétype : une clé absente vaut `""`,
        une clé inconnue est refusée (`extra="forbid"`).

    Attributes:
        king (str): Entrée King.
        priest (str): Entrée Priest.
        poet (str): Entrée Poet.
        jester (str): Entrée Jester.
        warrior (str): Entrée Warrior.
    """

    king: str = ""
    priest: str = ""
    poet: str = ""
    jester: str = ""
    warrior: str = ""

    model_config = ConfigDict(extra="forbid")

    def has_content(self) -> bool:
        """True si au moins une entrée n'est pas vide (espaces ignorés)."""
        return any(value.strip() for value in self.as_dict().values())

    def get(self, key: Archetype | str) -> str:
        return getattr(self, Archetype(key).value)

    def as_dict(self) -> dict[str, str]:
        return {key: getattr(self, key) for key in ARCHETYPE_KEYS}


def day_doc_id(day: int) -> str:
    """Identifiant de document d'un jour (`Day-{day}`)."""
    return f"{DAY_DOC_PREFIX}{day}"


def day_from_doc_id(doc_id: str) -> int:
    """Jour encodé dans un identifiant `Day-{day}`.

    Raises:
        ValueError: Si l'identifiant n'est pas au format attendu.
    """
    if not doc_id.startswith(DAY_DOC_PREFIX):
        raise ValueError(f"Invalid day document id: {doc_id!r}")
    return int(doc_id[len(DAY_DOC_PREFIX):])


class ChallengeRecord(BaseModel):
    """Enregistrement quotidien (append-only) d'un utilisateur.

    Attributes:
        day (int): Jour du challenge (1–30), clé d'unicité par utilisateur.
        date (str): Date informative au format `M/D/YYYY`.
        entries (ArchetypeEntries): Réflexions par archétype.
        timestamp (int): Création, en millisecondes epoch.
        owner_id (str): Identifiant opaque du propriétaire (alias `ownerId`).
    """

    day: int = Field(ge=1, le=30)
    date: str
    entries: ArchetypeEntries
    timestamp: int
    owner_id: str = Field(alias="ownerId")

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @property
    def doc_id(self) -> str:
        return day_doc_id(self.day)

    def to_public_status(self) -> PublicStatus:
        """Projection publique (reconstructible à tout moment)."""
        return PublicStatus(
            owner_id=self.owner_id,
            day=self.day,
            date=self.date,
            timestamp=self.timestamp,
        )


class PublicStatus(BaseModel):
    """Statut public d'un jour complété (visibilité entre membres).

    Attributes:
        owner_id (str): Propriétaire (alias `ownerId`).
        day (int): Jour complété.
        date (str): Date informative.
        status (str): Toujours `Complete`.
        timestamp (int): Horodatage de l'enregistrement source.
    """

    owner_id: str = Field(alias="ownerId")
    day: int = Field(ge=1, le=30)
    date: str
    status: str = PUBLIC_STATUS_COMPLETE
    timestamp: int

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @property
    def doc_id(self) -> str:
        return f"{self.owner_id}-{day_doc_id(self.day)}"
