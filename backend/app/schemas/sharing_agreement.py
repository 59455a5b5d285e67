from pydantic import BaseModel, Field
from typing import Optional
from datetime import date, datetime

from app.models.sharing_agreement import AgreementStatus, AgreementParty


class AgreementTermsInput(BaseModel):
    """Konditionen bei der Freigabe - nicht gesetzte Werte bekommen Vorgaben."""
    terms: Optional[str] = None
    daily_rate: Optional[float] = Field(default=None, ge=0)
    deposit_amount: Optional[float] = Field(default=None, ge=0)
    insurance_required: Optional[bool] = None
    maintenance_responsibility: Optional[str] = None  # "lender", "borrower", "shared"


class AgreementSign(BaseModel):
    party: AgreementParty


class AgreementReason(BaseModel):
    """Begründung für Beenden oder Streitfall."""
    reason: str


class AgreementResponse(BaseModel):
    id: str
    request_id: str
    equipment_id: str
    lender_tenant_id: str
    borrower_tenant_id: str
    terms: Optional[str]
    daily_rate: float
    deposit_amount: float
    insurance_required: bool
    maintenance_responsibility: str
    start_date: date
    end_date: date
    status: AgreementStatus
    signed_by_lender: bool
    signed_by_borrower: bool
    termination_reason: Optional[str]
    dispute_reason: Optional[str]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True
