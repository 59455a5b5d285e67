import logging
import threading
from datetime import date

import pytest

from app.exceptions import ForbiddenError, InvalidStateError, ConflictError, NotFoundError
from app.models import (
    EquipmentRequest, SharingAgreement, EquipmentTransfer,
    RequestStatus, ResponseDecision, AgreementStatus, TransferStatus, TransferType,
)
from app.services import approval_coordinator
from app.services.agreement_manager import AgreementTerms
from app.services.approval_coordinator import ApprovalCoordinator
from app.services.request_ledger import RequestLedger


def _counts(db, request_id):
    agreements = db.query(SharingAgreement).filter(SharingAgreement.request_id == request_id).count()
    transfers = db.query(EquipmentTransfer).filter(EquipmentTransfer.request_id == request_id).count()
    return agreements, transfers


def test_approve_creates_agreement_and_transfer(db, make_request, hospitals):
    request = make_request()
    result = ApprovalCoordinator(db).respond(
        request.id, ResponseDecision.APPROVED, hospitals["owner"], response_notes="Abholung ab 8 Uhr"
    )

    assert result.request.status == RequestStatus.APPROVED
    assert result.request.response_notes == "Abholung ab 8 Uhr"
    assert result.request.responded_at is not None

    agreement = result.agreement
    assert agreement.status == AgreementStatus.DRAFT
    assert agreement.request_id == request.id
    assert agreement.lender_tenant_id == hospitals["owner"]
    assert agreement.borrower_tenant_id == hospitals["requester"]
    assert agreement.signed_by_lender is False
    assert agreement.signed_by_borrower is False
    # Tagessatz aus dem Geräteverzeichnis, Wartung per Vorgabe beim Verleiher
    assert agreement.daily_rate == 120.0
    assert agreement.maintenance_responsibility == "lender"
    assert agreement.start_date == request.start_date
    assert agreement.end_date == request.end_date

    transfer = result.transfer
    assert transfer.status == TransferStatus.SCHEDULED
    assert transfer.transfer_type == TransferType.OUTGOING
    assert transfer.from_tenant_id == hospitals["owner"]
    assert transfer.to_tenant_id == hospitals["requester"]
    assert transfer.agreement_id == agreement.id
    assert transfer.scheduled_date == request.start_date

    assert _counts(db, request.id) == (1, 1)


def test_approve_with_terms(db, make_request, hospitals):
    request = make_request()
    terms = AgreementTerms(
        terms="Rückgabe gereinigt", daily_rate=95.5, deposit_amount=500.0,
        insurance_required=True, maintenance_responsibility="shared",
    )
    result = ApprovalCoordinator(db).respond(
        request.id, ResponseDecision.APPROVED, hospitals["owner"], terms=terms
    )
    assert result.agreement.daily_rate == 95.5
    assert result.agreement.deposit_amount == 500.0
    assert result.agreement.insurance_required is True
    assert result.agreement.maintenance_responsibility == "shared"
    assert result.agreement.terms == "Rückgabe gereinigt"


def test_reject_creates_nothing(db, make_request, hospitals):
    request = make_request()
    result = ApprovalCoordinator(db).respond(request.id, ResponseDecision.REJECTED, hospitals["owner"])

    assert result.request.status == RequestStatus.REJECTED
    assert result.agreement is None
    assert result.transfer is None
    assert _counts(db, request.id) == (0, 0)


def test_only_owner_may_respond(db, make_request, hospitals):
    request = make_request()
    coordinator = ApprovalCoordinator(db)
    for caller in ("requester", "outsider"):
        with pytest.raises(ForbiddenError):
            coordinator.respond(request.id, ResponseDecision.APPROVED, hospitals[caller])

    db.refresh(request)
    assert request.status == RequestStatus.PENDING
    assert _counts(db, request.id) == (0, 0)


def test_respond_unknown_request(db, hospitals):
    with pytest.raises(NotFoundError):
        ApprovalCoordinator(db).respond("gibt-es-nicht", ResponseDecision.APPROVED, hospitals["owner"])


def test_respond_after_cancel_is_invalid_state(db, make_request, hospitals):
    request = make_request()
    RequestLedger(db).cancel(request.id, hospitals["requester"])
    with pytest.raises(InvalidStateError):
        ApprovalCoordinator(db).respond(request.id, ResponseDecision.APPROVED, hospitals["owner"])
    assert _counts(db, request.id) == (0, 0)


def test_second_response_conflicts(db, make_request, hospitals):
    request = make_request()
    coordinator = ApprovalCoordinator(db)
    coordinator.respond(request.id, ResponseDecision.APPROVED, hospitals["owner"])

    with pytest.raises(ConflictError):
        coordinator.respond(request.id, ResponseDecision.REJECTED, hospitals["owner"])

    db.refresh(request)
    assert request.status == RequestStatus.APPROVED
    assert _counts(db, request.id) == (1, 1)


def test_parallel_response_loses_compare_and_set(db, session_factory, make_request, hospitals, monkeypatch):
    """Die zweite Antwort liest noch PENDING, verliert aber das bedingte UPDATE."""
    request = make_request()
    real_compare_and_set = approval_coordinator.compare_and_set
    competitor = {}

    def racing_compare_and_set(session, *args, **kwargs):
        if "result" not in competitor:
            competitor["result"] = None
            other = session_factory()
            try:
                competitor["result"] = ApprovalCoordinator(other).respond(
                    request.id, ResponseDecision.APPROVED, hospitals["owner"]
                )
            finally:
                other.close()
        return real_compare_and_set(session, *args, **kwargs)

    monkeypatch.setattr(approval_coordinator, "compare_and_set", racing_compare_and_set)

    with pytest.raises(ConflictError):
        ApprovalCoordinator(db).respond(request.id, ResponseDecision.REJECTED, hospitals["owner"])

    assert competitor["result"] is not None
    db.expire_all()
    stored = db.get(EquipmentRequest, request.id)
    assert stored.status == RequestStatus.APPROVED
    assert _counts(db, request.id) == (1, 1)


def test_concurrent_approvals_create_exactly_one_agreement(session_factory, db, make_request, hospitals):
    request = make_request()
    barrier = threading.Barrier(2)
    outcomes = []
    lock = threading.Lock()

    def approve():
        session = session_factory()
        try:
            barrier.wait()
            ApprovalCoordinator(session).respond(request.id, ResponseDecision.APPROVED, hospitals["owner"])
            outcome = "ok"
        except ConflictError:
            outcome = "conflict"
        finally:
            session.close()
        with lock:
            outcomes.append(outcome)

    threads = [threading.Thread(target=approve) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)

    assert sorted(outcomes) == ["conflict", "ok"]
    assert _counts(db, request.id) == (1, 1)


def test_overlapping_approval_is_flagged_not_blocked(db, make_request, hospitals, caplog):
    first = make_request()
    second = make_request(requester="outsider", start_date=date(2026, 11, 10), end_date=date(2026, 11, 20))
    coordinator = ApprovalCoordinator(db)
    coordinator.respond(first.id, ResponseDecision.APPROVED, hospitals["owner"])

    with caplog.at_level(logging.WARNING, logger="app.services.approval_coordinator"):
        result = coordinator.respond(second.id, ResponseDecision.APPROVED, hospitals["owner"])

    assert result.request.status == RequestStatus.APPROVED
    assert result.agreement is not None
    assert first.id in caplog.text
