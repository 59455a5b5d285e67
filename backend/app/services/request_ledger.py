"""Anfragen anlegen, zurückziehen und entlang des Statusgraphen fortschreiben."""
import enum
import logging
from datetime import date
from typing import Dict, List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.exceptions import ValidationError, ForbiddenError, InvalidStateError, ConflictError
from app.models.equipment_request import EquipmentRequest, RequestStatus, RequestType, Urgency
from app.services.equipment_directory import EquipmentDirectory
from app.services.repository import load, compare_and_set
from app.services.transitions import REQUEST_TRANSITIONS, can_transition

logger = logging.getLogger(__name__)

# Anfragen in diesen Status binden das Gerät bereits
COMMITTED_STATUSES = (RequestStatus.APPROVED, RequestStatus.IN_TRANSIT, RequestStatus.ACTIVE)


class TenantRole(str, enum.Enum):
    REQUESTER = "requester"
    OWNER = "owner"


class RequestLedger:
    """Einstiegspunkt des Workflows: Anfragen anlegen und verwalten."""

    def __init__(self, db: Session, directory: Optional[EquipmentDirectory] = None):
        self.db = db
        self.directory = directory or EquipmentDirectory(db)

    def create(
        self,
        requesting_tenant_id: str,
        equipment_id: str,
        owning_tenant_id: str,
        request_type: RequestType,
        start_date: date,
        end_date: date,
        purpose: Optional[str] = None,
        notes: Optional[str] = None,
        urgency: Urgency = Urgency.NORMAL,
    ) -> EquipmentRequest:
        if start_date >= end_date:
            raise ValidationError("Startdatum muss vor dem Enddatum liegen")

        # Kann nicht beim eigenen Haus anfragen
        if requesting_tenant_id == owning_tenant_id:
            raise ValidationError("Eigene Geräte können nicht angefragt werden")

        self.directory.ensure_owned_by(equipment_id, owning_tenant_id)

        request = EquipmentRequest(
            equipment_id=equipment_id,
            requesting_tenant_id=requesting_tenant_id,
            owning_tenant_id=owning_tenant_id,
            request_type=request_type,
            status=RequestStatus.PENDING,
            start_date=start_date,
            end_date=end_date,
            purpose=purpose,
            notes=notes,
            urgency=urgency,
        )
        self.db.add(request)
        self.db.commit()
        self.db.refresh(request)
        logger.info(
            "Anfrage %s angelegt: %s fragt %s (%s) bei %s an",
            request.id, requesting_tenant_id, equipment_id, request.request_type.value, owning_tenant_id
        )
        return request

    def cancel(self, request_id: str, caller_tenant_id: str) -> EquipmentRequest:
        """Zieht eine Anfrage zurück - nur der Anfragende und nur solange PENDING."""
        request = load(self.db, EquipmentRequest, request_id, "Anfrage")

        if request.requesting_tenant_id != caller_tenant_id:
            raise ForbiddenError("Nur das anfragende Krankenhaus kann die Anfrage zurückziehen")

        if request.status != RequestStatus.PENDING:
            raise InvalidStateError(
                f"Anfrage kann im Status '{request.status.value}' nicht zurückgezogen werden"
            )

        if not compare_and_set(
            self.db, EquipmentRequest, request_id, RequestStatus.PENDING,
            {"status": RequestStatus.CANCELLED},
        ):
            self.db.rollback()
            raise ConflictError("Anfrage wurde zwischenzeitlich bearbeitet")

        self.db.commit()
        self.db.refresh(request)
        logger.info("Anfrage %s zurückgezogen", request_id)
        return request

    def advance_progress(self, request_id: str, target: RequestStatus) -> bool:
        """Schreibt den Status aufgrund von Transfer-Fortschritt fort.

        Passt der Schritt nicht in den Graphen, bleibt die Anfrage unverändert.
        Kein Commit - läuft in der Transaktion des auslösenden Transfers.
        """
        request = load(self.db, EquipmentRequest, request_id, "Anfrage")
        current = request.status
        if current == target:
            return False

        if not can_transition(REQUEST_TRANSITIONS, current, target):
            logger.warning(
                "Anfrage %s: Fortschritt %s -> %s nicht erlaubt, Status bleibt",
                request_id, current.value, target.value
            )
            return False

        if not compare_and_set(self.db, EquipmentRequest, request_id, current, {"status": target}):
            raise ConflictError("Anfrage wurde parallel geändert")

        logger.info("Anfrage %s: %s -> %s", request_id, current.value, target.value)
        return True

    # ------------------------------------------------------------ Lesen

    def get_for_tenant(self, request_id: str, tenant_id: str) -> EquipmentRequest:
        request = load(self.db, EquipmentRequest, request_id, "Anfrage")
        if tenant_id not in (request.requesting_tenant_id, request.owning_tenant_id):
            raise ForbiddenError("Keine Berechtigung für diese Anfrage")
        return request

    def list_for_tenant(
        self,
        tenant_id: str,
        status: Optional[RequestStatus] = None,
        role: Optional[TenantRole] = None,
    ) -> List[EquipmentRequest]:
        """Eigene Anfragen als Anfragender und/oder Besitzer, neueste zuerst."""
        query = self.db.query(EquipmentRequest)

        if role == TenantRole.REQUESTER:
            query = query.filter(EquipmentRequest.requesting_tenant_id == tenant_id)
        elif role == TenantRole.OWNER:
            query = query.filter(EquipmentRequest.owning_tenant_id == tenant_id)
        else:
            query = query.filter(or_(
                EquipmentRequest.requesting_tenant_id == tenant_id,
                EquipmentRequest.owning_tenant_id == tenant_id,
            ))

        if status:
            query = query.filter(EquipmentRequest.status == status)

        return query.order_by(EquipmentRequest.created_at.desc()).all()

    def pending_counts(self, tenant_id: str) -> Dict[str, int]:
        """Zähler für das Benachrichtigungs-Badge."""
        # Als Besitzer: Anfragen, die auf meine Antwort warten
        as_owner_pending = self.db.query(EquipmentRequest).filter(
            EquipmentRequest.owning_tenant_id == tenant_id,
            EquipmentRequest.status == RequestStatus.PENDING
        ).count()

        # Als Besitzer: freigegeben, Gerät muss noch raus
        as_owner_approved = self.db.query(EquipmentRequest).filter(
            EquipmentRequest.owning_tenant_id == tenant_id,
            EquipmentRequest.status == RequestStatus.APPROVED
        ).count()

        # Als Anfragender: warte noch auf Antwort
        as_requester_pending = self.db.query(EquipmentRequest).filter(
            EquipmentRequest.requesting_tenant_id == tenant_id,
            EquipmentRequest.status == RequestStatus.PENDING
        ).count()

        # Als Anfragender: Gerät ist unterwegs zu mir
        as_requester_in_transit = self.db.query(EquipmentRequest).filter(
            EquipmentRequest.requesting_tenant_id == tenant_id,
            EquipmentRequest.status == RequestStatus.IN_TRANSIT
        ).count()

        return {
            "as_owner_pending": as_owner_pending,
            "as_owner_approved": as_owner_approved,
            "as_requester_pending": as_requester_pending,
            "as_requester_in_transit": as_requester_in_transit,
            "total": as_owner_pending + as_owner_approved + as_requester_pending + as_requester_in_transit,
        }

    def find_overlaps(self, request: EquipmentRequest) -> List[EquipmentRequest]:
        """Andere gebundene Anfragen für dasselbe Gerät mit überlappendem Zeitraum.

        Wird nur angezeigt bzw. geloggt; eine Exklusivität wird nicht erzwungen.
        """
        return self.db.query(EquipmentRequest).filter(
            EquipmentRequest.equipment_id == request.equipment_id,
            EquipmentRequest.id != request.id,
            EquipmentRequest.status.in_(COMMITTED_STATUSES),
            EquipmentRequest.start_date < request.end_date,
            EquipmentRequest.end_date > request.start_date,
        ).order_by(EquipmentRequest.start_date).all()
