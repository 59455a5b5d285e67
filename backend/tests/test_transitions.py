import pytest

from app.models import RequestStatus, AgreementStatus, TransferStatus
from app.services.transitions import (
    REQUEST_TRANSITIONS, AGREEMENT_TRANSITIONS, TRANSFER_TRANSITIONS,
    TRANSFER_TIMESTAMPS, OPEN_TRANSFER_STATUSES, can_transition, is_terminal,
)


@pytest.mark.parametrize("graph, enum_cls", [
    (REQUEST_TRANSITIONS, RequestStatus),
    (AGREEMENT_TRANSITIONS, AgreementStatus),
    (TRANSFER_TRANSITIONS, TransferStatus),
])
def test_graphs_cover_every_status(graph, enum_cls):
    assert set(graph) == set(enum_cls)
    for targets in graph.values():
        assert targets <= set(enum_cls)


def test_transfer_graph():
    assert can_transition(TRANSFER_TRANSITIONS, TransferStatus.SCHEDULED, TransferStatus.PICKED_UP)
    assert can_transition(TRANSFER_TRANSITIONS, TransferStatus.IN_TRANSIT, TransferStatus.CANCELLED)
    assert not can_transition(TRANSFER_TRANSITIONS, TransferStatus.SCHEDULED, TransferStatus.DELIVERED)
    assert not can_transition(TRANSFER_TRANSITIONS, TransferStatus.DELIVERED, TransferStatus.CANCELLED)
    assert is_terminal(TRANSFER_TRANSITIONS, TransferStatus.RETURNED)
    assert is_terminal(TRANSFER_TRANSITIONS, TransferStatus.CANCELLED)


def test_request_terminal_states():
    for status in (RequestStatus.REJECTED, RequestStatus.CANCELLED, RequestStatus.COMPLETED):
        assert is_terminal(REQUEST_TRANSITIONS, status)
    assert not can_transition(REQUEST_TRANSITIONS, RequestStatus.APPROVED, RequestStatus.PENDING)


def test_agreement_closing_only_from_active():
    for target in (AgreementStatus.COMPLETED, AgreementStatus.TERMINATED, AgreementStatus.DISPUTED):
        assert can_transition(AGREEMENT_TRANSITIONS, AgreementStatus.ACTIVE, target)
        assert not can_transition(AGREEMENT_TRANSITIONS, AgreementStatus.DRAFT, target)


def test_timestamp_fields_and_open_states():
    assert TRANSFER_TIMESTAMPS[TransferStatus.PICKED_UP] == "pickup_date"
    assert TRANSFER_TIMESTAMPS[TransferStatus.DELIVERED] == "delivery_date"
    assert TRANSFER_TIMESTAMPS[TransferStatus.RETURNED] == "return_date"
    assert TransferStatus.DELIVERED not in OPEN_TRANSFER_STATUSES
    assert all(not is_terminal(TRANSFER_TRANSITIONS, s) for s in OPEN_TRANSFER_STATUSES)
