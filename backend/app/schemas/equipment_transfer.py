from pydantic import BaseModel
from typing import Optional, Dict
from datetime import date, datetime

from app.models.equipment_transfer import TransferType, TransferStatus


class TransferAdvance(BaseModel):
    """Nächster Gewahrsamsstatus plus optionale Angaben (keine Zeitstempel)."""
    status: TransferStatus
    condition_on_pickup: Optional[str] = None
    condition_on_delivery: Optional[str] = None
    tracking_number: Optional[str] = None
    carrier: Optional[str] = None
    notes: Optional[str] = None

    def extra_fields(self) -> Dict[str, str]:
        return self.model_dump(exclude={"status"}, exclude_none=True)


class TransferResponse(BaseModel):
    id: str
    request_id: str
    agreement_id: Optional[str]
    equipment_id: str
    from_tenant_id: str
    to_tenant_id: str
    transfer_type: TransferType
    status: TransferStatus
    scheduled_date: date
    pickup_date: Optional[datetime]
    delivery_date: Optional[datetime]
    return_scheduled_date: Optional[date]
    return_date: Optional[datetime]
    condition_on_pickup: Optional[str]
    condition_on_delivery: Optional[str]
    tracking_number: Optional[str]
    carrier: Optional[str]
    notes: Optional[str]
    created_at: Optional[datetime]

    class Config:
        from_attributes = True
