from app.models.hospital import Hospital
from app.models.equipment import Equipment
from app.models.equipment_request import EquipmentRequest, RequestType, RequestStatus, ResponseDecision, Urgency
from app.models.sharing_agreement import SharingAgreement, AgreementStatus, AgreementParty
from app.models.equipment_transfer import EquipmentTransfer, TransferType, TransferStatus

__all__ = [
    # Externe Verzeichnisse (nur lesend)
    "Hospital",
    "Equipment",
    # Sharing-Workflow
    "EquipmentRequest",
    "RequestType",
    "RequestStatus",
    "ResponseDecision",
    "Urgency",
    "SharingAgreement",
    "AgreementStatus",
    "AgreementParty",
    "EquipmentTransfer",
    "TransferType",
    "TransferStatus",
]
