from sqlalchemy import Column, String, Date, ForeignKey, Text, Enum as SQLEnum
from sqlalchemy.sql import func
from app.database import Base, generate_uuid, enum_values, UTCDateTime
import enum


class TransferType(str, enum.Enum):
    OUTGOING = "outgoing"    # Vom Besitzer zum Anfragenden
    INCOMING = "incoming"
    RETURN = "return"        # Zurück zum Besitzer


class TransferStatus(str, enum.Enum):
    SCHEDULED = "scheduled"      # Termin steht, Gerät noch beim Absender
    PICKED_UP = "picked_up"      # Abgeholt
    IN_TRANSIT = "in_transit"    # Unterwegs
    DELIVERED = "delivered"      # Beim Empfänger angekommen
    RETURNED = "returned"        # Zurückgegeben
    CANCELLED = "cancelled"      # Abgebrochen (nur vor Auslieferung)


class EquipmentTransfer(Base):
    """Physische Bewegung eines Geräts, immer an eine Anfrage gebunden."""
    __tablename__ = "equipment_transfers"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    request_id = Column(String(36), ForeignKey("equipment_requests.id"), nullable=False, index=True)
    agreement_id = Column(String(36), ForeignKey("sharing_agreements.id"), nullable=True, index=True)
    equipment_id = Column(String(36), ForeignKey("equipment.id"), nullable=False)
    from_tenant_id = Column(String(36), ForeignKey("hospitals.id"), nullable=False, index=True)
    to_tenant_id = Column(String(36), ForeignKey("hospitals.id"), nullable=False, index=True)
    transfer_type = Column(SQLEnum(TransferType, values_callable=enum_values), nullable=False)
    status = Column(
        SQLEnum(TransferStatus, values_callable=enum_values),
        default=TransferStatus.SCHEDULED, nullable=False, index=True
    )

    # Zeitstempel werden genau beim ersten Erreichen des Status gesetzt
    scheduled_date = Column(Date, nullable=False)
    pickup_date = Column(UTCDateTime(), nullable=True)
    delivery_date = Column(UTCDateTime(), nullable=True)
    return_scheduled_date = Column(Date, nullable=True)
    return_date = Column(UTCDateTime(), nullable=True)

    condition_on_pickup = Column(Text, nullable=True)
    condition_on_delivery = Column(Text, nullable=True)
    tracking_number = Column(String(100), nullable=True)
    carrier = Column(String(100), nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(UTCDateTime(), server_default=func.now())
    updated_at = Column(UTCDateTime(), server_default=func.now(), onupdate=func.now())
