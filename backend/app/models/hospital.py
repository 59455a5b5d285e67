from sqlalchemy import Column, String, Boolean
from sqlalchemy.sql import func
from app.database import Base, generate_uuid, UTCDateTime


class Hospital(Base):
    """Mandant (Krankenhaus) - wird vom Identity Provider verwaltet, hier nur gelesen."""
    __tablename__ = "hospitals"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    name = Column(String(200), nullable=False)
    organization = Column(String(200), nullable=True)  # Träger / Klinikverbund
    is_active = Column(Boolean, default=True, nullable=False)  # Deaktivierte Mandanten dürfen nur lesen

    created_at = Column(UTCDateTime(), server_default=func.now())
