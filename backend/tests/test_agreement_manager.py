import pytest

from app.exceptions import ValidationError, ForbiddenError, InvalidStateError
from app.models import AgreementParty, AgreementStatus, RequestType, ResponseDecision, TransferStatus
from app.services.agreement_manager import AgreementManager
from app.services.approval_coordinator import ApprovalCoordinator
from app.services.transfer_tracker import TransferTracker


@pytest.fixture
def draft(db, make_request, hospitals):
    request = make_request()
    return ApprovalCoordinator(db).respond(request.id, ResponseDecision.APPROVED, hospitals["owner"])


@pytest.fixture
def active(db, draft, hospitals):
    manager = AgreementManager(db)
    manager.sign(draft.agreement.id, AgreementParty.LENDER, hospitals["owner"])
    manager.sign(draft.agreement.id, AgreementParty.BORROWER, hospitals["requester"])
    return draft


def test_single_signature_keeps_draft(db, draft, hospitals):
    agreement = AgreementManager(db).sign(draft.agreement.id, AgreementParty.LENDER, hospitals["owner"])
    assert agreement.signed_by_lender is True
    assert agreement.signed_by_borrower is False
    assert agreement.status == AgreementStatus.DRAFT


def test_both_signatures_activate(db, draft, hospitals):
    manager = AgreementManager(db)
    manager.sign(draft.agreement.id, AgreementParty.BORROWER, hospitals["requester"])
    agreement = manager.sign(draft.agreement.id, AgreementParty.LENDER, hospitals["owner"])
    assert agreement.signed_by_lender is True
    assert agreement.signed_by_borrower is True
    assert agreement.status == AgreementStatus.ACTIVE


def test_sign_requires_matching_party(db, draft, hospitals):
    manager = AgreementManager(db)
    # Anfragender kann nicht als Verleiher unterschreiben
    with pytest.raises(ForbiddenError):
        manager.sign(draft.agreement.id, AgreementParty.LENDER, hospitals["requester"])
    with pytest.raises(ForbiddenError):
        manager.sign(draft.agreement.id, AgreementParty.BORROWER, hospitals["outsider"])


def test_sign_after_activation_is_invalid_state(db, active, hospitals):
    with pytest.raises(InvalidStateError):
        AgreementManager(db).sign(active.agreement.id, AgreementParty.LENDER, hospitals["owner"])


def test_terminate_active_agreement(db, active, hospitals):
    agreement = AgreementManager(db).terminate(active.agreement.id, "  Rückruf durch Hersteller ", hospitals["owner"])
    assert agreement.status == AgreementStatus.TERMINATED
    assert agreement.termination_reason == "Rückruf durch Hersteller"

    # Endzustand
    with pytest.raises(InvalidStateError):
        AgreementManager(db).dispute(active.agreement.id, "Schaden", hospitals["requester"])


def test_terminate_requires_reason(db, active, hospitals):
    with pytest.raises(ValidationError):
        AgreementManager(db).terminate(active.agreement.id, "   ", hospitals["owner"])


def test_terminate_draft_is_invalid_state(db, draft, hospitals):
    with pytest.raises(InvalidStateError):
        AgreementManager(db).terminate(draft.agreement.id, "Kein Bedarf mehr", hospitals["owner"])


def test_dispute_by_borrower(db, active, hospitals):
    agreement = AgreementManager(db).dispute(active.agreement.id, "Gerät defekt geliefert", hospitals["requester"])
    assert agreement.status == AgreementStatus.DISPUTED
    assert agreement.dispute_reason == "Gerät defekt geliefert"


def test_outsider_cannot_dispute(db, active, hospitals):
    with pytest.raises(ForbiddenError):
        AgreementManager(db).dispute(active.agreement.id, "Einspruch", hospitals["outsider"])


def test_complete_requires_completed_request(db, active, hospitals):
    with pytest.raises(InvalidStateError):
        AgreementManager(db).complete(active.agreement.id, hospitals["owner"])


def test_complete_draft_is_invalid_state(db, draft, hospitals):
    with pytest.raises(InvalidStateError):
        AgreementManager(db).complete(draft.agreement.id, hospitals["owner"])


def test_return_completes_agreement(db, active, hospitals):
    tracker = TransferTracker(db)
    for step in (
        TransferStatus.PICKED_UP, TransferStatus.IN_TRANSIT,
        TransferStatus.DELIVERED, TransferStatus.RETURNED,
    ):
        tracker.advance(active.transfer.id, step, hospitals["owner"])

    manager = AgreementManager(db)
    agreement = manager.get_for_tenant(active.agreement.id, hospitals["requester"])
    assert agreement.status == AgreementStatus.COMPLETED

    # Bereits abgeschlossen
    with pytest.raises(InvalidStateError):
        manager.complete(active.agreement.id, hospitals["owner"])


def test_list_for_tenant(db, active, hospitals):
    manager = AgreementManager(db)
    assert len(manager.list_for_tenant(hospitals["owner"])) == 1
    assert len(manager.list_for_tenant(hospitals["requester"], status=AgreementStatus.ACTIVE)) == 1
    assert manager.list_for_tenant(hospitals["requester"], status=AgreementStatus.DRAFT) == []
    assert manager.list_for_tenant(hospitals["outsider"]) == []
    with pytest.raises(ForbiddenError):
        manager.get_for_tenant(active.agreement.id, hospitals["outsider"])


def test_complete_after_late_signatures(db, make_request, hospitals):
    request = make_request(request_type=RequestType.PURCHASE)
    result = ApprovalCoordinator(db).respond(request.id, ResponseDecision.APPROVED, hospitals["owner"])
    tracker = TransferTracker(db)
    for step in (TransferStatus.PICKED_UP, TransferStatus.IN_TRANSIT, TransferStatus.DELIVERED):
        tracker.advance(result.transfer.id, step, hospitals["owner"])

    # Kauf ist ausgeliefert, Vereinbarung wird erst danach unterschrieben
    manager = AgreementManager(db)
    manager.sign(result.agreement.id, AgreementParty.LENDER, hospitals["owner"])
    manager.sign(result.agreement.id, AgreementParty.BORROWER, hospitals["requester"])

    agreement = manager.complete(result.agreement.id, hospitals["requester"])
    assert agreement.status == AgreementStatus.COMPLETED
