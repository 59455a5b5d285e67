from typing import List, Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.hospital import Hospital
from app.models.sharing_agreement import AgreementStatus
from app.schemas.sharing_agreement import AgreementSign, AgreementReason, AgreementResponse
from app.auth.jwt import get_current_hospital
from app.auth.dependencies import get_active_hospital
from app.services.agreement_manager import AgreementManager

router = APIRouter()


@router.get("", response_model=List[AgreementResponse])
async def get_agreements(
    status_filter: Optional[AgreementStatus] = None,
    db: Session = Depends(get_db),
    current_hospital: Hospital = Depends(get_current_hospital)
):
    """Vereinbarungen, an denen das eigene Krankenhaus beteiligt ist."""
    return AgreementManager(db).list_for_tenant(current_hospital.id, status=status_filter)


@router.get("/{agreement_id}", response_model=AgreementResponse)
async def get_agreement(
    agreement_id: str,
    db: Session = Depends(get_db),
    current_hospital: Hospital = Depends(get_current_hospital)
):
    return AgreementManager(db).get_for_tenant(agreement_id, current_hospital.id)


@router.post("/{agreement_id}/sign", response_model=AgreementResponse)
async def sign_agreement(
    agreement_id: str,
    signature: AgreementSign,
    db: Session = Depends(get_db),
    current_hospital: Hospital = Depends(get_active_hospital)
):
    """Unterschrift als Verleiher oder Entleiher; mit beiden wird die Vereinbarung aktiv."""
    return AgreementManager(db).sign(agreement_id, signature.party, current_hospital.id)


@router.post("/{agreement_id}/terminate", response_model=AgreementResponse)
async def terminate_agreement(
    agreement_id: str,
    body: AgreementReason,
    db: Session = Depends(get_db),
    current_hospital: Hospital = Depends(get_active_hospital)
):
    """Beendet eine aktive Vereinbarung vorzeitig. Begründung ist Pflicht."""
    return AgreementManager(db).terminate(agreement_id, body.reason, current_hospital.id)


@router.post("/{agreement_id}/dispute", response_model=AgreementResponse)
async def dispute_agreement(
    agreement_id: str,
    body: AgreementReason,
    db: Session = Depends(get_db),
    current_hospital: Hospital = Depends(get_active_hospital)
):
    """Meldet einen Streitfall. Die Klärung läuft außerhalb des Systems."""
    return AgreementManager(db).dispute(agreement_id, body.reason, current_hospital.id)


@router.post("/{agreement_id}/complete", response_model=AgreementResponse)
async def complete_agreement(
    agreement_id: str,
    db: Session = Depends(get_db),
    current_hospital: Hospital = Depends(get_active_hospital)
):
    return AgreementManager(db).complete(agreement_id, current_hospital.id)
