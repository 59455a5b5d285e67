"""Änderungs-Feed für Anfragen, Vereinbarungen und Transfers.

Der Feed hängt sich an die Session-Events einer ``sessionmaker``-Instanz:
Änderungen werden pro Session gesammelt, nach dem Commit an die Abonnenten
verteilt und bei einem Rollback verworfen. Die Events enthalten nur Tabelle,
ID, Operation und Status - Abonnenten laden den aktuellen Stand selbst nach.

Zustellung ist best effort: Fehler eines Abonnenten werden geloggt und
beeinflussen weder andere Abonnenten noch den Workflow.
"""
import enum
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

from sqlalchemy import event
from sqlalchemy.orm import Session, sessionmaker

from app.models.equipment_request import EquipmentRequest
from app.models.sharing_agreement import SharingAgreement
from app.models.equipment_transfer import EquipmentTransfer

logger = logging.getLogger(__name__)

PENDING_CHANGES_KEY = "sharing_pending_changes"
WATCHED_MODELS = (EquipmentRequest, SharingAgreement, EquipmentTransfer)


class ChangeOperation(str, enum.Enum):
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True)
class ChangeEvent:
    table: str
    record_id: str
    operation: ChangeOperation
    status: Optional[str] = None


Subscriber = Callable[[ChangeEvent], None]


def record_change(session: Session, change: ChangeEvent) -> None:
    """Merkt eine Änderung bis zum Commit der Session vor."""
    session.info.setdefault(PENDING_CHANGES_KEY, []).append(change)


def _event_for(obj, operation: ChangeOperation) -> ChangeEvent:
    status = getattr(obj, "status", None)
    return ChangeEvent(
        table=obj.__tablename__,
        record_id=obj.id,
        operation=operation,
        status=getattr(status, "value", status),
    )


class ChangeFeed:
    """Verteilt committete Änderungen an Abonnenten.

    ``start()`` registriert die Session-Listener, ``stop()`` entfernt sie
    wieder. Lebt so lange wie die App (siehe Lifespan in ``app.main``).
    """

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory
        self._subscribers: List[Subscriber] = []
        self._active = False

    @property
    def active(self) -> bool:
        return self._active

    def subscribe(self, subscriber: Subscriber) -> None:
        if subscriber not in self._subscribers:
            self._subscribers.append(subscriber)

    def unsubscribe(self, subscriber: Subscriber) -> None:
        if subscriber in self._subscribers:
            self._subscribers.remove(subscriber)

    def start(self) -> None:
        if self._active:
            return
        event.listen(self._session_factory, "after_flush", self._collect_flushed)
        event.listen(self._session_factory, "after_commit", self._publish)
        event.listen(self._session_factory, "after_rollback", self._discard)
        self._active = True
        logger.info("Änderungs-Feed gestartet (%d Abonnenten)", len(self._subscribers))

    def stop(self) -> None:
        if not self._active:
            return
        event.remove(self._session_factory, "after_flush", self._collect_flushed)
        event.remove(self._session_factory, "after_commit", self._publish)
        event.remove(self._session_factory, "after_rollback", self._discard)
        self._active = False
        logger.info("Änderungs-Feed gestoppt")

    # ------------------------------------------------------------ Listener

    def _collect_flushed(self, session: Session, flush_context) -> None:
        # session.new/dirty/deleted zeigen in after_flush noch den Stand vor dem Flush
        for obj in session.new:
            if isinstance(obj, WATCHED_MODELS):
                record_change(session, _event_for(obj, ChangeOperation.INSERT))
        for obj in session.dirty:
            if isinstance(obj, WATCHED_MODELS) and session.is_modified(obj):
                record_change(session, _event_for(obj, ChangeOperation.UPDATE))
        for obj in session.deleted:
            if isinstance(obj, WATCHED_MODELS):
                record_change(session, _event_for(obj, ChangeOperation.DELETE))

    def _publish(self, session: Session) -> None:
        changes = session.info.pop(PENDING_CHANGES_KEY, [])
        for change in changes:
            for subscriber in list(self._subscribers):
                try:
                    subscriber(change)
                except Exception:
                    logger.exception(
                        "Abonnent konnte Änderung %s %s nicht verarbeiten",
                        change.table, change.record_id
                    )

    def _discard(self, session: Session) -> None:
        session.info.pop(PENDING_CHANGES_KEY, None)
