# backend/app/services/journal/journal_service.py
# Persistance du journal : enregistrements privés par utilisateur, projection publique
# et abonnement au flux des enregistrements d'un utilisateur.

from __future__ import annotations

from typing import Any, Awaitable, Callable

from pymongo import ASCENDING

from app.core.errors import SubscriptionFailure
from app.core.logging_config import get_loggers
from app.db.document_store import DocumentStore, Snapshot, Subscription
from app.db.mongodb import namespaced
from app.models.challenge_record import ChallengeRecord, PublicStatus, day_doc_id, day_from_doc_id
from app.services.journal.daily_log_state import DailyLogStateMachine
from app.shared.constants import CHALLENGE_LOGS_COLLECTION, DAILY_STATUS_COLLECTION

logger_generic, _, _ = get_loggers()

RecordsCallback = Callable[[tuple[ChallengeRecord, ...]], Awaitable[None]]


class JournalService:
    """Service de persistance du journal.

    Description:
        - Collection privée `{app_id}.challenge_logs` : un document par jour et par
          utilisateur, `_id = "{ownerId}/Day-{day}"`
        - Collection publique `{app_id}.daily_status` : `_id = "{ownerId}-Day-{day}"`
        - Toutes les écritures sont des upserts par clé déterministe : une double
          soumission pour un même jour écrase, elle ne duplique pas.
    """

    def __init__(self, store: DocumentStore, app_id: str | None = None):
        """Initialiser le service.

        Args:
            store: Magasin de documents.
            app_id: Identifiant d'application (préfixe des collections).
        """
        self.store = store
        self.logs_collection = namespaced(CHALLENGE_LOGS_COLLECTION, app_id)
        self.status_collection = namespaced(DAILY_STATUS_COLLECTION, app_id)

    @staticmethod
    def record_document_id(owner_id: str, day: int) -> str:
        return f"{owner_id}/{day_doc_id(day)}"

    @staticmethod
    def record_from_document(doc: dict[str, Any]) -> ChallengeRecord:
        """Convertir un document Mongo en ChallengeRecord (jour lu depuis `Day-{day}`)."""
        data = {k: v for k, v in doc.items() if k not in ("_id", "doc_id")}
        if doc.get("doc_id"):
            data["day"] = day_from_doc_id(doc["doc_id"])
        return ChallengeRecord.model_validate(data)

    def records_from_snapshot(self, snapshot: Snapshot) -> tuple[ChallengeRecord, ...]:
        return DailyLogStateMachine.sort_history(self.record_from_document(doc) for doc in snapshot)

    async def list_records(self, owner_id: str) -> tuple[ChallengeRecord, ...]:
        """Enregistrements d'un utilisateur, triés par jour croissant."""
        docs = await self.store.list(self.logs_collection, {"ownerId": owner_id})
        return self.records_from_snapshot(tuple(docs))

    async def save_record(self, record: ChallengeRecord) -> PublicStatus:
        """Persister un enregistrement puis sa projection publique.

        Args:
            record: Enregistrement à écrire.

        Returns:
            PublicStatus: Projection publique écrite.

        Raises:
            PersistenceFailure: Si l'une des deux écritures échoue.
        """
        document = {**record.model_dump(by_alias=True), "doc_id": record.doc_id}
        await self.store.put(
            self.logs_collection,
            self.record_document_id(record.owner_id, record.day),
            document,
        )

        status = record.to_public_status()
        await self.store.put(self.status_collection, status.doc_id, status.model_dump(by_alias=True))
        logger_generic.info(f"Day {record.day} logged for {record.owner_id}")
        return status

    async def list_public_status(self, day: int | None = None) -> list[PublicStatus]:
        """Flux public des jours complétés, trié par jour puis propriétaire."""
        filter_query = {"day": day} if day is not None else {}
        docs = await self.store.list(
            self.status_collection,
            filter_query,
            sort=[("day", ASCENDING), ("ownerId", ASCENDING)],
        )
        return [PublicStatus.model_validate({k: v for k, v in doc.items() if k != "_id"}) for doc in docs]

    async def rebuild_public_status(self, owner_id: str) -> int:
        """Réécrire la projection publique depuis les enregistrements privés.

        Returns:
            int: Nombre de statuts publics écrits.
        """
        records = await self.list_records(owner_id)
        for record in records:
            status = record.to_public_status()
            await self.store.put(self.status_collection, status.doc_id, status.model_dump(by_alias=True))
        return len(records)

    async def subscribe_records(
        self,
        owner_id: str,
        on_records: RecordsCallback,
        on_error: Callable[[SubscriptionFailure], Awaitable[None]] | None = None,
    ) -> Subscription:
        """S'abonner aux enregistrements d'un utilisateur (snapshots triés par jour)."""

        async def _on_snapshot(snapshot: Snapshot) -> None:
            await on_records(self.records_from_snapshot(snapshot))

        return await self.store.subscribe(self.logs_collection, {"ownerId": owner_id}, _on_snapshot, on_error)
