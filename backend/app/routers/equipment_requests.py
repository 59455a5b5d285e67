from typing import List, Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.hospital import Hospital
from app.models.equipment_request import RequestStatus
from app.schemas.equipment_request import (
    RequestCreate, RequestRespond, RequestResponse, RespondResult, PendingCounts
)
from app.auth.jwt import get_current_hospital
from app.auth.dependencies import get_active_hospital
from app.services.agreement_manager import AgreementTerms
from app.services.approval_coordinator import ApprovalCoordinator
from app.services.request_ledger import RequestLedger, TenantRole

router = APIRouter()


@router.post("", response_model=RequestResponse)
async def create_request(
    payload: RequestCreate,
    db: Session = Depends(get_db),
    current_hospital: Hospital = Depends(get_active_hospital)
):
    """Stellt eine Anfrage für ein Gerät eines anderen Krankenhauses."""
    return RequestLedger(db).create(
        requesting_tenant_id=current_hospital.id,
        equipment_id=payload.equipment_id,
        owning_tenant_id=payload.owning_tenant_id,
        request_type=payload.request_type,
        start_date=payload.start_date,
        end_date=payload.end_date,
        purpose=payload.purpose,
        notes=payload.notes,
        urgency=payload.urgency,
    )


@router.get("", response_model=List[RequestResponse])
async def get_requests(
    status_filter: Optional[RequestStatus] = None,
    role: Optional[TenantRole] = None,
    db: Session = Depends(get_db),
    current_hospital: Hospital = Depends(get_current_hospital)
):
    """Eigene Anfragen (als Anfragender und/oder Besitzer), neueste zuerst."""
    return RequestLedger(db).list_for_tenant(current_hospital.id, status=status_filter, role=role)


@router.get("/pending/count", response_model=PendingCounts)
async def get_pending_count(
    db: Session = Depends(get_db),
    current_hospital: Hospital = Depends(get_current_hospital)
):
    """Anzahl offener Anfragen (für Benachrichtigungs-Badge)."""
    return RequestLedger(db).pending_counts(current_hospital.id)


@router.get("/{request_id}", response_model=RequestResponse)
async def get_request(
    request_id: str,
    db: Session = Depends(get_db),
    current_hospital: Hospital = Depends(get_current_hospital)
):
    return RequestLedger(db).get_for_tenant(request_id, current_hospital.id)


@router.get("/{request_id}/overlaps", response_model=List[RequestResponse])
async def get_overlapping_requests(
    request_id: str,
    db: Session = Depends(get_db),
    current_hospital: Hospital = Depends(get_current_hospital)
):
    """Gebundene Anfragen für dasselbe Gerät im selben Zeitraum.

    Dient dem Besitzer als Hinweis vor der Freigabe - gesperrt wird nichts.
    """
    ledger = RequestLedger(db)
    request = ledger.get_for_tenant(request_id, current_hospital.id)
    return ledger.find_overlaps(request)


@router.post("/{request_id}/cancel", response_model=RequestResponse)
async def cancel_request(
    request_id: str,
    db: Session = Depends(get_db),
    current_hospital: Hospital = Depends(get_active_hospital)
):
    """Zieht eine eigene, noch offene Anfrage zurück."""
    return RequestLedger(db).cancel(request_id, current_hospital.id)


@router.post("/{request_id}/respond", response_model=RespondResult)
async def respond_to_request(
    request_id: str,
    response: RequestRespond,
    db: Session = Depends(get_db),
    current_hospital: Hospital = Depends(get_active_hospital)
):
    """Freigabe oder Ablehnung durch den Besitzer.

    Bei Freigabe entstehen Vereinbarung (Entwurf) und ausgehender Transfer.
    Eine zweite Antwort auf dieselbe Anfrage liefert 409.
    """
    terms = AgreementTerms(**response.terms.model_dump()) if response.terms else None
    result = ApprovalCoordinator(db).respond(
        request_id,
        response.decision,
        current_hospital.id,
        response_notes=response.response_notes,
        terms=terms,
    )
    return RespondResult.model_validate(result)
