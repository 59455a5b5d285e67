from pydantic import BaseModel
from typing import Optional
from datetime import date, datetime

from app.models.equipment_request import RequestType, RequestStatus, ResponseDecision, Urgency
from app.schemas.sharing_agreement import AgreementResponse, AgreementTermsInput
from app.schemas.equipment_transfer import TransferResponse


class RequestCreate(BaseModel):
    """Anfrage für ein Gerät eines anderen Krankenhauses."""
    equipment_id: str
    owning_tenant_id: str       # Wessen Gerät (Besitzer)
    request_type: RequestType
    start_date: date
    end_date: date
    purpose: Optional[str] = None
    notes: Optional[str] = None
    urgency: Urgency = Urgency.NORMAL


class RequestRespond(BaseModel):
    """Antwort des Besitzers; Konditionen nur bei Freigabe relevant."""
    decision: ResponseDecision
    response_notes: Optional[str] = None
    terms: Optional[AgreementTermsInput] = None


class RequestResponse(BaseModel):
    id: str
    equipment_id: str
    requesting_tenant_id: str   # Wer will haben
    owning_tenant_id: str       # Wessen Gerät
    request_type: RequestType
    status: RequestStatus
    start_date: date
    end_date: date
    purpose: Optional[str]
    notes: Optional[str]
    urgency: Urgency
    response_notes: Optional[str]
    responded_at: Optional[datetime]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True


class RespondResult(BaseModel):
    request: RequestResponse
    agreement: Optional[AgreementResponse] = None
    transfer: Optional[TransferResponse] = None

    class Config:
        from_attributes = True


class PendingCounts(BaseModel):
    as_owner_pending: int
    as_owner_approved: int
    as_requester_pending: int
    as_requester_in_transit: int
    total: int
