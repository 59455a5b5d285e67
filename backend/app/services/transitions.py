"""Erlaubte Statuswechsel für Anfragen, Vereinbarungen und Transfers.

Jeder Graph muss für jeden Enum-Wert einen Eintrag haben; fehlt einer, schlägt
schon der Import fehl, damit ein neuer Status nicht stillschweigend durchrutscht.
"""
import enum
from typing import Dict, FrozenSet, Type

from app.models.equipment_request import RequestStatus
from app.models.sharing_agreement import AgreementStatus
from app.models.equipment_transfer import TransferStatus


REQUEST_TRANSITIONS: Dict[RequestStatus, FrozenSet[RequestStatus]] = {
    RequestStatus.PENDING: frozenset({
        RequestStatus.APPROVED, RequestStatus.REJECTED, RequestStatus.CANCELLED,
    }),
    RequestStatus.APPROVED: frozenset({
        RequestStatus.IN_TRANSIT, RequestStatus.ACTIVE, RequestStatus.COMPLETED,
    }),
    RequestStatus.IN_TRANSIT: frozenset({RequestStatus.ACTIVE, RequestStatus.COMPLETED}),
    RequestStatus.ACTIVE: frozenset({RequestStatus.COMPLETED}),
    RequestStatus.REJECTED: frozenset(),
    RequestStatus.CANCELLED: frozenset(),
    RequestStatus.COMPLETED: frozenset(),
}

AGREEMENT_TRANSITIONS: Dict[AgreementStatus, FrozenSet[AgreementStatus]] = {
    AgreementStatus.DRAFT: frozenset({AgreementStatus.ACTIVE}),
    AgreementStatus.ACTIVE: frozenset({
        AgreementStatus.COMPLETED, AgreementStatus.TERMINATED, AgreementStatus.DISPUTED,
    }),
    AgreementStatus.COMPLETED: frozenset(),
    AgreementStatus.TERMINATED: frozenset(),
    AgreementStatus.DISPUTED: frozenset(),
}

TRANSFER_TRANSITIONS: Dict[TransferStatus, FrozenSet[TransferStatus]] = {
    TransferStatus.SCHEDULED: frozenset({TransferStatus.PICKED_UP, TransferStatus.CANCELLED}),
    TransferStatus.PICKED_UP: frozenset({TransferStatus.IN_TRANSIT, TransferStatus.CANCELLED}),
    TransferStatus.IN_TRANSIT: frozenset({TransferStatus.DELIVERED, TransferStatus.CANCELLED}),
    TransferStatus.DELIVERED: frozenset({TransferStatus.RETURNED}),
    TransferStatus.RETURNED: frozenset(),
    TransferStatus.CANCELLED: frozenset(),
}

# Welcher Zeitstempel beim Erreichen eines Transfer-Status gesetzt wird
TRANSFER_TIMESTAMPS: Dict[TransferStatus, str] = {
    TransferStatus.PICKED_UP: "pickup_date",
    TransferStatus.DELIVERED: "delivery_date",
    TransferStatus.RETURNED: "return_date",
}

# Transfers in diesen Status sind noch nicht abgeschlossen
OPEN_TRANSFER_STATUSES: FrozenSet[TransferStatus] = frozenset({
    TransferStatus.SCHEDULED, TransferStatus.PICKED_UP, TransferStatus.IN_TRANSIT,
})


def _ensure_exhaustive(graph: Dict, enum_cls: Type[enum.Enum]) -> None:
    missing = set(enum_cls) - set(graph)
    if missing:
        names = ", ".join(sorted(m.value for m in missing))
        raise RuntimeError(f"Statusgraph für {enum_cls.__name__} unvollständig: {names}")


_ensure_exhaustive(REQUEST_TRANSITIONS, RequestStatus)
_ensure_exhaustive(AGREEMENT_TRANSITIONS, AgreementStatus)
_ensure_exhaustive(TRANSFER_TRANSITIONS, TransferStatus)


def can_transition(graph: Dict, current, target) -> bool:
    return target in graph[current]


def is_terminal(graph: Dict, current) -> bool:
    return not graph[current]
