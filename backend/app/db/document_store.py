# backend/app/db/document_store.py
# Magasin de documents au-dessus de Motor : lecture ordonnée, upsert par clé déterministe
# et abonnements push (snapshot complet à chaque écriture sur la collection).

from __future__ import annotations

from typing import Any, Awaitable, Callable, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from app.core.errors import PersistenceFailure, SubscriptionFailure
from app.core.logging_config import get_loggers

logger_generic, logger_errors, _ = get_loggers()

Snapshot = tuple[dict[str, Any], ...]
SnapshotCallback = Callable[[Snapshot], Awaitable[None]]
ErrorCallback = Callable[[SubscriptionFailure], Awaitable[None]]
SortSpec = Optional[list[tuple[str, int]]]


class Subscription:
    """Abonnement à un sous-ensemble (filtre d'égalité) d'une collection."""

    def __init__(
        self,
        store: DocumentStore,
        collection: str,
        filter_query: dict[str, Any],
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback | None = None,
        sort: SortSpec = None,
    ):
        self._store = store
        self.collection = collection
        self.filter_query = filter_query
        self.sort = sort
        self.on_snapshot = on_snapshot
        self.on_error = on_error
        self.active = True

    def matches(self, collection: str, document: dict[str, Any]) -> bool:
        if not self.active or collection != self.collection:
            return False
        return all(document.get(field) == value for field, value in self.filter_query.items())

    def close(self) -> None:
        """Libérer l'abonnement (idempotent)."""
        if self.active:
            self.active = False
            self._store._release(self)


class DocumentStore:
    """Accès minimal au stockage documentaire.

    Description:
        - `list(collection)` : documents ordonnés (tri optionnel)
        - `put(collection, id, record)` : upsert par identifiant déterministe ; une seconde
          écriture sur le même identifiant écrase le document, elle n'en crée jamais un autre
        - `subscribe(...)` : notification push ; chaque abonné reçoit un snapshot immuable
          complet à l'abonnement puis après chaque écriture qui le concerne, y compris les
          écritures qu'il a lui-même déclenchées
    """

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self._subscriptions: list[Subscription] = []

    async def list(
        self,
        collection: str,
        filter_query: dict[str, Any] | None = None,
        sort: SortSpec = None,
    ) -> list[dict[str, Any]]:
        """Lister les documents d'une collection.

        Raises:
            PersistenceFailure: Si la lecture échoue côté Mongo.
        """
        try:
            cursor = self.db[collection].find(filter_query or {}, sort=sort)
            return await cursor.to_list(length=None)
        except PyMongoError as e:
            logger_errors.error(f"Read failed on {collection}: {e}")
            raise PersistenceFailure("Failed to read documents.", collection=collection) from e

    async def put(self, collection: str, doc_id: str, record: dict[str, Any]) -> None:
        """Écrire (upsert) un document sous `doc_id` puis notifier les abonnés.

        Raises:
            PersistenceFailure: Si l'écriture échoue ; aucun abonné n'est alors notifié.
        """
        document = {**record, "_id": doc_id}
        try:
            await self.db[collection].replace_one({"_id": doc_id}, document, upsert=True)
        except PyMongoError as e:
            logger_errors.error(f"Write failed on {collection}/{doc_id}: {e}")
            raise PersistenceFailure("Failed to save document.", collection=collection, doc_id=doc_id) from e

        await self._notify(collection, document)

    # TODO: s'appuyer sur les change streams Mongo pour notifier les écritures faites par d'autres workers
    async def subscribe(
        self,
        collection: str,
        filter_query: dict[str, Any],
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback | None = None,
        sort: SortSpec = None,
    ) -> Subscription:
        """S'abonner à une collection filtrée ; émet immédiatement un snapshot initial."""
        subscription = Subscription(self, collection, filter_query, on_snapshot, on_error, sort)
        self._subscriptions.append(subscription)
        await self._emit(subscription)
        return subscription

    @property
    def subscription_count(self) -> int:
        return len(self._subscriptions)

    def _release(self, subscription: Subscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)

    async def _notify(self, collection: str, document: dict[str, Any]) -> None:
        for subscription in list(self._subscriptions):
            if subscription.matches(collection, document):
                await self._emit(subscription)

    async def _emit(self, subscription: Subscription) -> None:
        try:
            docs = await self.list(subscription.collection, subscription.filter_query, subscription.sort)
        except PersistenceFailure as e:
            failure = SubscriptionFailure("Failed to fetch challenge logs.", collection=subscription.collection)
            failure.__cause__ = e
            if subscription.on_error is not None:
                await subscription.on_error(failure)
            return

        if not subscription.active:
            return
        try:
            await subscription.on_snapshot(tuple(docs))
        except Exception as e:
            # Un abonné défaillant ne fait pas échouer l'écriture déjà effectuée
            logger_errors.error(f"Subscriber callback failed on {subscription.collection}: {e!r}")
