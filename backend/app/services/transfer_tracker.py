"""Physischer Gewahrsam: Abholung, Transport, Auslieferung und Rückgabe.

Der Transfer ist die Quelle für den Fortschritt der Anfrage:

- ausgehender Transfer abgeholt/unterwegs  -> Anfrage ``in_transit``
- ausgehender Transfer ausgeliefert        -> Kauf ``completed``, Leihe/Miete ``active``
- Transfer zurückgegeben, keiner mehr offen -> Leihe/Miete ``completed``
  (auch wenn der letzte offene Transfer abgebrochen wird)

Mit der Anfrage wird auch die aktive Vereinbarung abgeschlossen, alles in
derselben Transaktion wie der Transfer-Schritt.
"""
import logging
from typing import Dict, List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.database import utcnow
from app.exceptions import ValidationError, ForbiddenError, InvalidTransitionError, ConflictError
from app.models.equipment_request import EquipmentRequest, RequestStatus, RequestType
from app.models.sharing_agreement import SharingAgreement
from app.models.equipment_transfer import EquipmentTransfer, TransferStatus, TransferType
from app.services.agreement_manager import AgreementManager
from app.services.request_ledger import RequestLedger
from app.services.repository import load, compare_and_set
from app.services.transitions import (
    TRANSFER_TRANSITIONS, TRANSFER_TIMESTAMPS, OPEN_TRANSFER_STATUSES, can_transition,
)

logger = logging.getLogger(__name__)

# Felder, die bei einem Statuswechsel mitgegeben werden dürfen (keine Zeitstempel)
EXTRA_FIELDS = frozenset({
    "condition_on_pickup", "condition_on_delivery", "tracking_number", "carrier", "notes",
})


class TransferTracker:
    """Schreibt den Gewahrsamsstatus eines Transfers entlang des Graphen fort."""

    def __init__(
        self,
        db: Session,
        ledger: Optional[RequestLedger] = None,
        agreements: Optional[AgreementManager] = None,
    ):
        self.db = db
        self.ledger = ledger or RequestLedger(db)
        self.agreements = agreements or AgreementManager(db)

    def schedule_outgoing(self, request: EquipmentRequest, agreement: Optional[SharingAgreement] = None) -> EquipmentTransfer:
        """Legt den ausgehenden Transfer einer gerade freigegebenen Anfrage an.

        Kein Commit - gehört zur Freigabe-Transaktion des ApprovalCoordinator.
        """
        transfer = EquipmentTransfer(
            request_id=request.id,
            agreement_id=agreement.id if agreement else None,
            equipment_id=request.equipment_id,
            from_tenant_id=request.owning_tenant_id,
            to_tenant_id=request.requesting_tenant_id,
            transfer_type=TransferType.OUTGOING,
            status=TransferStatus.SCHEDULED,
            scheduled_date=request.start_date,
            return_scheduled_date=request.end_date,
        )
        self.db.add(transfer)
        return transfer

    def advance(
        self,
        transfer_id: str,
        new_status: TransferStatus,
        caller_tenant_id: str,
        extra: Optional[Dict[str, Optional[str]]] = None,
    ) -> EquipmentTransfer:
        transfer = load(self.db, EquipmentTransfer, transfer_id, "Transfer")

        # Beteiligt sind nur Absender und Empfänger
        if caller_tenant_id not in (transfer.from_tenant_id, transfer.to_tenant_id):
            raise ForbiddenError("Keine Berechtigung für diesen Transfer")

        current = transfer.status
        if not can_transition(TRANSFER_TRANSITIONS, current, new_status):
            raise InvalidTransitionError(
                f"Transfer kann nicht von '{current.value}' auf '{new_status.value}' wechseln"
            )

        extra = extra or {}
        unknown = set(extra) - EXTRA_FIELDS
        if unknown:
            raise ValidationError(f"Unbekannte Felder: {', '.join(sorted(unknown))}")

        values: Dict[str, object] = {"status": new_status}
        timestamp_field = TRANSFER_TIMESTAMPS.get(new_status)
        if timestamp_field and getattr(transfer, timestamp_field) is None:
            values[timestamp_field] = utcnow()
        for field, value in extra.items():
            if value is not None:
                values[field] = value

        if not compare_and_set(self.db, EquipmentTransfer, transfer_id, current, values):
            self.db.rollback()
            raise ConflictError("Transfer wurde zwischenzeitlich geändert")

        try:
            self._propagate(transfer, new_status)
        except ConflictError:
            self.db.rollback()
            raise

        self.db.commit()
        self.db.refresh(transfer)
        logger.info("Transfer %s: %s -> %s", transfer_id, current.value, new_status.value)
        return transfer

    # ------------------------------------------------------------ Lesen

    def get_for_tenant(self, transfer_id: str, tenant_id: str) -> EquipmentTransfer:
        transfer = load(self.db, EquipmentTransfer, transfer_id, "Transfer")
        if tenant_id not in (transfer.from_tenant_id, transfer.to_tenant_id):
            raise ForbiddenError("Keine Berechtigung für diesen Transfer")
        return transfer

    def list_for_tenant(
        self,
        tenant_id: str,
        status: Optional[TransferStatus] = None,
        request_id: Optional[str] = None,
    ) -> List[EquipmentTransfer]:
        query = self.db.query(EquipmentTransfer).filter(or_(
            EquipmentTransfer.from_tenant_id == tenant_id,
            EquipmentTransfer.to_tenant_id == tenant_id,
        ))
        if status:
            query = query.filter(EquipmentTransfer.status == status)
        if request_id:
            query = query.filter(EquipmentTransfer.request_id == request_id)
        return query.order_by(EquipmentTransfer.scheduled_date.desc()).all()

    # ------------------------------------------------------------ Intern

    def _propagate(self, transfer: EquipmentTransfer, new_status: TransferStatus) -> None:
        request = load(self.db, EquipmentRequest, transfer.request_id, "Anfrage")

        if new_status == TransferStatus.CANCELLED:
            # Die Rückgabe kann auf diesen Transfer gewartet haben
            if (
                request.request_type != RequestType.PURCHASE
                and self._has_returned_transfer(request.id)
                and not self._has_open_transfers(request.id, exclude_id=transfer.id)
            ):
                self._complete_request(request)
            else:
                logger.warning(
                    "Transfer %s abgebrochen, Anfrage %s bleibt unverändert",
                    transfer.id, transfer.request_id
                )
            return

        if transfer.transfer_type == TransferType.OUTGOING:
            if new_status in (TransferStatus.PICKED_UP, TransferStatus.IN_TRANSIT):
                self.ledger.advance_progress(request.id, RequestStatus.IN_TRANSIT)
            elif new_status == TransferStatus.DELIVERED:
                if request.request_type == RequestType.PURCHASE:
                    self._complete_request(request)
                else:
                    self.ledger.advance_progress(request.id, RequestStatus.ACTIVE)

        if (
            new_status == TransferStatus.RETURNED
            and request.request_type != RequestType.PURCHASE
            and not self._has_open_transfers(request.id, exclude_id=transfer.id)
        ):
            self._complete_request(request)

    def _complete_request(self, request: EquipmentRequest) -> None:
        if self.ledger.advance_progress(request.id, RequestStatus.COMPLETED):
            self.agreements.complete_for_request(request.id)

    def _has_returned_transfer(self, request_id: str) -> bool:
        return self.db.query(EquipmentTransfer).filter(
            EquipmentTransfer.request_id == request_id,
            EquipmentTransfer.status == TransferStatus.RETURNED,
        ).count() > 0

    def _has_open_transfers(self, request_id: str, exclude_id: str) -> bool:
        return self.db.query(EquipmentTransfer).filter(
            EquipmentTransfer.request_id == request_id,
            EquipmentTransfer.id != exclude_id,
            EquipmentTransfer.status.in_(OPEN_TRANSFER_STATUSES),
        ).count() > 0
