"""Benachrichtigungen über Statusänderungen im Sharing-Workflow.

Fire-and-forget: Ob eine Benachrichtigung ankommt, hat keinen Einfluss auf den
Workflow. Der ``NotificationDispatcher`` hängt am Änderungs-Feed, lädt den
aktuellen Stand nach und schickt ihn an die beteiligten Krankenhäuser.
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, asdict, field
from typing import List, Optional

import httpx
from sqlalchemy.orm import sessionmaker

from app.config import Settings
from app.models.equipment_request import EquipmentRequest
from app.models.sharing_agreement import SharingAgreement
from app.models.equipment_transfer import EquipmentTransfer
from app.services.change_feed import ChangeEvent, ChangeOperation

logger = logging.getLogger(__name__)


@dataclass
class Notification:
    recipient_ids: List[str]
    record_type: str
    record_id: str
    status: Optional[str]
    title: str
    message: str
    metadata: dict = field(default_factory=dict)


class NotificationSink:
    """Schnittstelle für Zustellwege."""

    def send(self, notification: Notification) -> None:
        raise NotImplementedError

    def close(self) -> None:
        pass


class LoggingNotificationSink(NotificationSink):
    """Standard ohne Webhook: schreibt die Benachrichtigung nur ins Log."""

    def send(self, notification: Notification) -> None:
        logger.info(
            "Benachrichtigung an %s: %s - %s",
            ", ".join(notification.recipient_ids), notification.title, notification.message
        )


class WebhookNotificationSink(NotificationSink):
    """Schickt Benachrichtigungen als JSON per POST an einen Webhook.

    Der Versand läuft in einem Thread-Pool, damit der auslösende Request nicht
    wartet. Fehler werden geloggt, nie weitergereicht.
    """

    def __init__(self, url: str, timeout: float = 5.0, client: Optional[httpx.Client] = None):
        self.url = url
        self.client = client or httpx.Client(timeout=timeout)
        self._executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="notify")

    def send(self, notification: Notification) -> None:
        self._executor.submit(self._post, notification)

    def _post(self, notification: Notification) -> None:
        try:
            response = self.client.post(self.url, json=asdict(notification))
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning(
                "Webhook-Zustellung für %s %s fehlgeschlagen: %s",
                notification.record_type, notification.record_id, exc
            )

    def close(self) -> None:
        # Ausstehende Zustellungen noch abarbeiten
        self._executor.shutdown(wait=True)
        self.client.close()


def build_notification_sink(settings: Settings) -> NotificationSink:
    if settings.notification_webhook_url:
        return WebhookNotificationSink(
            settings.notification_webhook_url,
            timeout=settings.notification_timeout_seconds,
        )
    return LoggingNotificationSink()


TITLES = {
    EquipmentRequest.__tablename__: "Geräte-Anfrage",
    SharingAgreement.__tablename__: "Vereinbarung",
    EquipmentTransfer.__tablename__: "Transfer",
}

# Tabelle -> (Modell, Felder mit den beteiligten Mandanten)
PARTIES = {
    EquipmentRequest.__tablename__: (EquipmentRequest, ("requesting_tenant_id", "owning_tenant_id")),
    SharingAgreement.__tablename__: (SharingAgreement, ("lender_tenant_id", "borrower_tenant_id")),
    EquipmentTransfer.__tablename__: (EquipmentTransfer, ("from_tenant_id", "to_tenant_id")),
}


class NotificationDispatcher:
    """Abonnent des Änderungs-Feeds: baut Benachrichtigungen aus dem aktuellen Stand."""

    def __init__(self, session_factory: sessionmaker, sink: NotificationSink):
        self._session_factory = session_factory
        self.sink = sink

    def __call__(self, change: ChangeEvent) -> None:
        if change.operation == ChangeOperation.DELETE or change.table not in PARTIES:
            return

        model, party_fields = PARTIES[change.table]
        # Status aus dem Event ist nur ein Hinweis; maßgeblich ist der nachgeladene Stand
        db = self._session_factory()
        try:
            record = db.get(model, change.record_id)
            if record is None:
                logger.debug("%s %s nicht mehr vorhanden", change.table, change.record_id)
                return
            recipients = [getattr(record, name) for name in party_fields]
            status = record.status.value
        finally:
            db.close()

        title = TITLES[change.table]
        if change.operation == ChangeOperation.INSERT:
            message = f"{title} angelegt (Status: {status})"
        else:
            message = f"{title} jetzt im Status '{status}'"

        self.sink.send(Notification(
            recipient_ids=recipients,
            record_type=change.table,
            record_id=change.record_id,
            status=status,
            title=title,
            message=message,
            metadata={"operation": change.operation.value},
        ))
