"""Vereinbarungen: Entwurf bei Freigabe, Unterschriften und Abschluss."""
import logging
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.config import get_settings
from app.exceptions import ValidationError, ForbiddenError, InvalidStateError, ConflictError
from app.models.equipment_request import EquipmentRequest, RequestStatus
from app.models.sharing_agreement import SharingAgreement, AgreementStatus, AgreementParty
from app.services.equipment_directory import EquipmentDirectory
from app.services.repository import load, compare_and_set

logger = logging.getLogger(__name__)

SIGNATURE_FLAGS = {
    AgreementParty.LENDER: "signed_by_lender",
    AgreementParty.BORROWER: "signed_by_borrower",
}


@dataclass
class AgreementTerms:
    """Konditionen, die der Besitzer bei der Freigabe mitgeben kann.

    Nicht gesetzte Werte werden beim Entwurf mit Vorgaben belegt.
    """
    terms: Optional[str] = None
    daily_rate: Optional[float] = None
    deposit_amount: Optional[float] = None
    insurance_required: Optional[bool] = None
    maintenance_responsibility: Optional[str] = None


class AgreementManager:
    """Verwaltet Unterschriften und Lebenszyklus einer Vereinbarung."""

    def __init__(self, db: Session, directory: Optional[EquipmentDirectory] = None):
        self.db = db
        self.directory = directory or EquipmentDirectory(db)

    def draft_for_request(self, request: EquipmentRequest, terms: Optional[AgreementTerms] = None) -> SharingAgreement:
        """Legt den Entwurf zu einer gerade freigegebenen Anfrage an.

        Kein Commit - gehört zur Freigabe-Transaktion des ApprovalCoordinator.
        """
        terms = terms or AgreementTerms()
        daily_rate = terms.daily_rate
        if daily_rate is None:
            daily_rate = self.directory.default_daily_rate(request.equipment_id)

        agreement = SharingAgreement(
            request_id=request.id,
            equipment_id=request.equipment_id,
            lender_tenant_id=request.owning_tenant_id,
            borrower_tenant_id=request.requesting_tenant_id,
            terms=terms.terms,
            daily_rate=daily_rate,
            deposit_amount=terms.deposit_amount or 0.0,
            insurance_required=bool(terms.insurance_required),
            maintenance_responsibility=(
                terms.maintenance_responsibility or get_settings().default_maintenance_responsibility
            ),
            start_date=request.start_date,
            end_date=request.end_date,
            status=AgreementStatus.DRAFT,
            signed_by_lender=False,
            signed_by_borrower=False,
        )
        self.db.add(agreement)
        return agreement

    def sign(self, agreement_id: str, party: AgreementParty, caller_tenant_id: str) -> SharingAgreement:
        """Setzt die Unterschrift einer Seite; mit beiden wird die Vereinbarung aktiv."""
        agreement = load(self.db, SharingAgreement, agreement_id, "Vereinbarung")

        signer = agreement.lender_tenant_id if party == AgreementParty.LENDER else agreement.borrower_tenant_id
        if caller_tenant_id != signer:
            raise ForbiddenError(f"Nur die Seite '{party.value}' kann hier unterschreiben")

        if agreement.status != AgreementStatus.DRAFT:
            raise InvalidStateError("Nur Entwürfe können unterschrieben werden")

        if not compare_and_set(
            self.db, SharingAgreement, agreement_id, AgreementStatus.DRAFT,
            {SIGNATURE_FLAGS[party]: True},
        ):
            self.db.rollback()
            raise ConflictError("Vereinbarung wurde zwischenzeitlich geändert")

        # Aktiv erst, wenn beide Flags in der DB stehen - auch bei parallelem Unterschreiben
        activated = compare_and_set(
            self.db, SharingAgreement, agreement_id, AgreementStatus.DRAFT,
            {"status": AgreementStatus.ACTIVE},
            SharingAgreement.signed_by_lender.is_(True),
            SharingAgreement.signed_by_borrower.is_(True),
        )

        self.db.commit()
        self.db.refresh(agreement)
        if activated:
            logger.info("Vereinbarung %s von beiden Seiten unterschrieben, jetzt aktiv", agreement_id)
        else:
            logger.info("Vereinbarung %s: Unterschrift %s erfasst", agreement_id, party.value)
        return agreement

    def terminate(self, agreement_id: str, reason: str, caller_tenant_id: str) -> SharingAgreement:
        """Beendet eine aktive Vereinbarung vorzeitig (z.B. Rückruf des Geräts)."""
        return self._close(agreement_id, caller_tenant_id, AgreementStatus.TERMINATED, "termination_reason", reason)

    def dispute(self, agreement_id: str, reason: str, caller_tenant_id: str) -> SharingAgreement:
        """Markiert eine aktive Vereinbarung als strittig (Endzustand)."""
        return self._close(agreement_id, caller_tenant_id, AgreementStatus.DISPUTED, "dispute_reason", reason)

    def complete(self, agreement_id: str, caller_tenant_id: str) -> SharingAgreement:
        """Schließt eine aktive Vereinbarung ab, sobald die Anfrage abgeschlossen ist."""
        agreement = load(self.db, SharingAgreement, agreement_id, "Vereinbarung")
        self._check_party(agreement, caller_tenant_id)

        if agreement.status != AgreementStatus.ACTIVE:
            raise InvalidStateError("Nur aktive Vereinbarungen können abgeschlossen werden")

        request = load(self.db, EquipmentRequest, agreement.request_id, "Anfrage")
        if request.status != RequestStatus.COMPLETED:
            raise InvalidStateError("Die zugehörige Anfrage ist noch nicht abgeschlossen")

        if not compare_and_set(
            self.db, SharingAgreement, agreement_id, AgreementStatus.ACTIVE,
            {"status": AgreementStatus.COMPLETED},
        ):
            self.db.rollback()
            raise ConflictError("Vereinbarung wurde zwischenzeitlich geändert")

        self.db.commit()
        self.db.refresh(agreement)
        logger.info("Vereinbarung %s abgeschlossen", agreement_id)
        return agreement

    def complete_for_request(self, request_id: str) -> Optional[SharingAgreement]:
        """Schließt die Vereinbarung einer gerade abgeschlossenen Anfrage ab.

        Kein Commit - läuft in der Transaktion des auslösenden Transfers.
        """
        agreement = self.db.query(SharingAgreement).filter(
            SharingAgreement.request_id == request_id
        ).populate_existing().first()
        if not agreement:
            return None

        if agreement.status != AgreementStatus.ACTIVE:
            logger.warning(
                "Anfrage %s abgeschlossen, Vereinbarung %s bleibt im Status '%s'",
                request_id, agreement.id, agreement.status.value
            )
            return None

        if not compare_and_set(
            self.db, SharingAgreement, agreement.id, AgreementStatus.ACTIVE,
            {"status": AgreementStatus.COMPLETED},
        ):
            raise ConflictError("Vereinbarung wurde parallel geändert")

        logger.info("Vereinbarung %s mit Anfrage %s abgeschlossen", agreement.id, request_id)
        return agreement

    # ------------------------------------------------------------ Lesen

    def get_for_tenant(self, agreement_id: str, tenant_id: str) -> SharingAgreement:
        agreement = load(self.db, SharingAgreement, agreement_id, "Vereinbarung")
        self._check_party(agreement, tenant_id)
        return agreement

    def list_for_tenant(self, tenant_id: str, status: Optional[AgreementStatus] = None) -> List[SharingAgreement]:
        query = self.db.query(SharingAgreement).filter(or_(
            SharingAgreement.lender_tenant_id == tenant_id,
            SharingAgreement.borrower_tenant_id == tenant_id,
        ))
        if status:
            query = query.filter(SharingAgreement.status == status)
        return query.order_by(SharingAgreement.created_at.desc()).all()

    # ------------------------------------------------------------ Intern

    def _check_party(self, agreement: SharingAgreement, tenant_id: str) -> None:
        if tenant_id not in (agreement.lender_tenant_id, agreement.borrower_tenant_id):
            raise ForbiddenError("Keine Berechtigung für diese Vereinbarung")

    def _close(
        self,
        agreement_id: str,
        caller_tenant_id: str,
        target: AgreementStatus,
        reason_field: str,
        reason: str,
    ) -> SharingAgreement:
        # Begründung ist Pflicht
        if not reason or not reason.strip():
            raise ValidationError("Bitte eine Begründung angeben")

        agreement = load(self.db, SharingAgreement, agreement_id, "Vereinbarung")
        self._check_party(agreement, caller_tenant_id)

        if agreement.status != AgreementStatus.ACTIVE:
            raise InvalidStateError(
                f"Vereinbarung im Status '{agreement.status.value}' kann nicht auf '{target.value}' gesetzt werden"
            )

        if not compare_and_set(
            self.db, SharingAgreement, agreement_id, AgreementStatus.ACTIVE,
            {"status": target, reason_field: reason.strip()},
        ):
            self.db.rollback()
            raise ConflictError("Vereinbarung wurde zwischenzeitlich geändert")

        self.db.commit()
        self.db.refresh(agreement)
        logger.info("Vereinbarung %s -> %s (%s)", agreement_id, target.value, reason.strip())
        return agreement
