from sqlalchemy import Column, String, Date, ForeignKey, Text, Float, Boolean, Enum as SQLEnum
from sqlalchemy.sql import func
from app.database import Base, generate_uuid, enum_values, UTCDateTime
import enum


class AgreementStatus(str, enum.Enum):
    DRAFT = "draft"              # Angelegt bei Freigabe, Unterschriften fehlen
    ACTIVE = "active"            # Beide Seiten haben unterschrieben
    COMPLETED = "completed"      # Anfrage abgeschlossen
    TERMINATED = "terminated"    # Vorzeitig beendet (z.B. Rückruf)
    DISPUTED = "disputed"        # Streitfall, Klärung außerhalb des Systems


class AgreementParty(str, enum.Enum):
    LENDER = "lender"
    BORROWER = "borrower"


class SharingAgreement(Base):
    """Vereinbarung zu einer freigegebenen Anfrage (1:1).

    Wird nur vom ApprovalCoordinator bei Freigabe angelegt, nie direkt.
    """
    __tablename__ = "sharing_agreements"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    # unique: höchstens eine Vereinbarung pro Anfrage, auch bei parallelen Freigaben
    request_id = Column(String(36), ForeignKey("equipment_requests.id"), nullable=False, unique=True, index=True)
    equipment_id = Column(String(36), ForeignKey("equipment.id"), nullable=False)
    lender_tenant_id = Column(String(36), ForeignKey("hospitals.id"), nullable=False, index=True)
    borrower_tenant_id = Column(String(36), ForeignKey("hospitals.id"), nullable=False, index=True)

    terms = Column(Text, nullable=True)
    daily_rate = Column(Float, default=0, nullable=False)
    deposit_amount = Column(Float, default=0, nullable=False)
    insurance_required = Column(Boolean, default=False, nullable=False)
    maintenance_responsibility = Column(String(50), nullable=False)  # "lender", "borrower", "shared"
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)

    status = Column(
        SQLEnum(AgreementStatus, values_callable=enum_values),
        default=AgreementStatus.DRAFT, nullable=False, index=True
    )
    signed_by_lender = Column(Boolean, default=False, nullable=False)
    signed_by_borrower = Column(Boolean, default=False, nullable=False)

    termination_reason = Column(Text, nullable=True)
    dispute_reason = Column(Text, nullable=True)

    created_at = Column(UTCDateTime(), server_default=func.now())
    updated_at = Column(UTCDateTime(), server_default=func.now(), onupdate=func.now())
