from app.schemas.equipment_request import RequestCreate, RequestRespond, RequestResponse, RespondResult, PendingCounts
from app.schemas.sharing_agreement import AgreementTermsInput, AgreementSign, AgreementReason, AgreementResponse
from app.schemas.equipment_transfer import TransferAdvance, TransferResponse

__all__ = [
    "RequestCreate", "RequestRespond", "RequestResponse", "RespondResult", "PendingCounts",
    "AgreementTermsInput", "AgreementSign", "AgreementReason", "AgreementResponse",
    "TransferAdvance", "TransferResponse",
]
