from sqlalchemy import Column, String, Date, ForeignKey, Text, Enum as SQLEnum, CheckConstraint
from sqlalchemy.sql import func
from app.database import Base, generate_uuid, enum_values, UTCDateTime
import enum


class RequestType(str, enum.Enum):
    BORROW = "borrow"        # Leihe, Rückgabe am Ende der Laufzeit
    LEASE = "lease"          # Miete, Rückgabe am Ende der Laufzeit
    PURCHASE = "purchase"    # Kauf, Gerät bleibt beim Anfragenden


class RequestStatus(str, enum.Enum):
    PENDING = "pending"          # Wartet auf Antwort des Besitzers
    APPROVED = "approved"        # Freigegeben, Vereinbarung + Transfer angelegt
    REJECTED = "rejected"        # Vom Besitzer abgelehnt
    CANCELLED = "cancelled"      # Vom Anfragenden zurückgezogen (nur solange PENDING)
    IN_TRANSIT = "in_transit"    # Gerät ist unterwegs zum Anfragenden
    ACTIVE = "active"            # Gerät ist beim Anfragenden im Einsatz
    COMPLETED = "completed"      # Zurückgegeben bzw. Kauf ausgeliefert


class ResponseDecision(str, enum.Enum):
    """Antwort des Besitzers auf eine PENDING-Anfrage."""
    APPROVED = "approved"
    REJECTED = "rejected"


class Urgency(str, enum.Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    CRITICAL = "critical"


class EquipmentRequest(Base):
    """Anfrage eines Krankenhauses für ein Gerät eines anderen Krankenhauses.

    Verknüpfungen zu Vereinbarung und Transfers laufen ausschließlich über IDs.
    """
    __tablename__ = "equipment_requests"
    __table_args__ = (
        CheckConstraint("requesting_tenant_id <> owning_tenant_id", name="ck_request_distinct_tenants"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    equipment_id = Column(String(36), ForeignKey("equipment.id"), nullable=False, index=True)
    # Wer fragt an (will das Gerät haben)
    requesting_tenant_id = Column(String(36), ForeignKey("hospitals.id"), nullable=False, index=True)
    # Wem gehört das Gerät
    owning_tenant_id = Column(String(36), ForeignKey("hospitals.id"), nullable=False, index=True)
    request_type = Column(SQLEnum(RequestType, values_callable=enum_values), nullable=False)
    status = Column(
        SQLEnum(RequestStatus, values_callable=enum_values),
        default=RequestStatus.PENDING, nullable=False, index=True
    )

    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    purpose = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    urgency = Column(SQLEnum(Urgency, values_callable=enum_values), default=Urgency.NORMAL, nullable=False)

    response_notes = Column(Text, nullable=True)  # Anmerkung des Besitzers bei Freigabe/Ablehnung
    responded_at = Column(UTCDateTime(), nullable=True)  # Wird genau einmal gesetzt

    created_at = Column(UTCDateTime(), server_default=func.now())
    updated_at = Column(UTCDateTime(), server_default=func.now(), onupdate=func.now())
