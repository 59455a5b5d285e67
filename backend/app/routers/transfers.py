from typing import List, Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.hospital import Hospital
from app.models.equipment_transfer import TransferStatus
from app.schemas.equipment_transfer import TransferAdvance, TransferResponse
from app.auth.jwt import get_current_hospital
from app.auth.dependencies import get_active_hospital
from app.services.transfer_tracker import TransferTracker

router = APIRouter()


@router.get("", response_model=List[TransferResponse])
async def get_transfers(
    status_filter: Optional[TransferStatus] = None,
    request_id: Optional[str] = None,
    db: Session = Depends(get_db),
    current_hospital: Hospital = Depends(get_current_hospital)
):
    """Transfers von oder zum eigenen Krankenhaus, nach Termin sortiert."""
    return TransferTracker(db).list_for_tenant(
        current_hospital.id, status=status_filter, request_id=request_id
    )


@router.get("/{transfer_id}", response_model=TransferResponse)
async def get_transfer(
    transfer_id: str,
    db: Session = Depends(get_db),
    current_hospital: Hospital = Depends(get_current_hospital)
):
    return TransferTracker(db).get_for_tenant(transfer_id, current_hospital.id)


@router.post("/{transfer_id}/advance", response_model=TransferResponse)
async def advance_transfer(
    transfer_id: str,
    step: TransferAdvance,
    db: Session = Depends(get_db),
    current_hospital: Hospital = Depends(get_active_hospital)
):
    """Nächster Schritt im Gewahrsam (abgeholt, unterwegs, ausgeliefert, zurück, abgebrochen).

    Zeitstempel setzt der Server; Zustand, Sendungsnummer usw. können mitgegeben werden.
    """
    return TransferTracker(db).advance(
        transfer_id, step.status, current_hospital.id, extra=step.extra_fields()
    )
