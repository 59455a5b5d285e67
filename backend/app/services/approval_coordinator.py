"""Antwort des Besitzers auf eine Anfrage.

Der kritische Pfad des Workflows: zwei Bearbeiter oder ein doppelt
abgeschickter Request können dieselbe Anfrage gleichzeitig beantworten. Der
Wechsel ``pending -> approved/rejected`` ist deshalb ein einzelnes bedingtes
UPDATE; nur wer es gewinnt, legt Vereinbarung und Transfer an, und zwar in
derselben Transaktion. Der Verlierer bekommt ``ConflictError`` und hinterlässt
nichts.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.database import utcnow
from app.exceptions import ForbiddenError, InvalidStateError, ConflictError
from app.models.equipment_request import EquipmentRequest, RequestStatus, ResponseDecision
from app.models.sharing_agreement import SharingAgreement
from app.models.equipment_transfer import EquipmentTransfer
from app.services.agreement_manager import AgreementManager, AgreementTerms
from app.services.request_ledger import RequestLedger
from app.services.transfer_tracker import TransferTracker
from app.services.repository import load, compare_and_set

logger = logging.getLogger(__name__)


DECISION_STATUS = {
    ResponseDecision.APPROVED: RequestStatus.APPROVED,
    ResponseDecision.REJECTED: RequestStatus.REJECTED,
}


@dataclass
class ResponseResult:
    request: EquipmentRequest
    agreement: Optional[SharingAgreement] = None
    transfer: Optional[EquipmentTransfer] = None


class ApprovalCoordinator:
    """Verarbeitet Freigabe/Ablehnung und leitet Vereinbarung + Transfer ab."""

    def __init__(
        self,
        db: Session,
        ledger: Optional[RequestLedger] = None,
        agreements: Optional[AgreementManager] = None,
        transfers: Optional[TransferTracker] = None,
    ):
        self.db = db
        self.ledger = ledger or RequestLedger(db)
        self.agreements = agreements or AgreementManager(db)
        self.transfers = transfers or TransferTracker(db, ledger=self.ledger, agreements=self.agreements)

    def respond(
        self,
        request_id: str,
        decision: ResponseDecision,
        caller_tenant_id: str,
        response_notes: Optional[str] = None,
        terms: Optional[AgreementTerms] = None,
    ) -> ResponseResult:
        request = load(self.db, EquipmentRequest, request_id, "Anfrage", for_update=True)

        if request.owning_tenant_id != caller_tenant_id:
            raise ForbiddenError("Nur das besitzende Krankenhaus kann die Anfrage beantworten")

        if request.status == RequestStatus.CANCELLED:
            raise InvalidStateError("Anfrage wurde zurückgezogen")

        # Schon beantwortet zählt wie ein verlorener Wettlauf: ConflictError, nicht InvalidStateError
        if request.status != RequestStatus.PENDING:
            raise ConflictError("Anfrage wurde bereits beantwortet")

        target = DECISION_STATUS[decision]
        claimed = compare_and_set(
            self.db, EquipmentRequest, request_id, RequestStatus.PENDING,
            {"status": target, "response_notes": response_notes, "responded_at": utcnow()},
        )
        if not claimed:
            self.db.rollback()
            logger.info("Anfrage %s: parallele Antwort verloren (%s)", request_id, decision.value)
            raise ConflictError("Anfrage wurde bereits beantwortet")

        agreement = None
        transfer = None
        if decision == ResponseDecision.APPROVED:
            overlaps = self.ledger.find_overlaps(request)
            if overlaps:
                logger.warning(
                    "Anfrage %s überschneidet sich mit gebundenen Anfragen %s für Gerät %s",
                    request_id, ", ".join(o.id for o in overlaps), request.equipment_id
                )
            try:
                agreement = self.agreements.draft_for_request(request, terms)
                self.db.flush()
                transfer = self.transfers.schedule_outgoing(request, agreement)
                self.db.flush()
            except IntegrityError:
                # unique(request_id) der Vereinbarung - jemand anderes war schneller
                self.db.rollback()
                raise ConflictError("Anfrage wurde bereits beantwortet")

        self.db.commit()
        self.db.refresh(request)
        if agreement is not None:
            self.db.refresh(agreement)
            self.db.refresh(transfer)

        logger.info(
            "Anfrage %s %s durch %s", request_id, target.value, caller_tenant_id
        )
        return ResponseResult(request=request, agreement=agreement, transfer=transfer)
