from sqlalchemy import Column, String, Float, ForeignKey
from sqlalchemy.sql import func
from app.database import Base, generate_uuid, UTCDateTime


class Equipment(Base):
    """Geräteverzeichnis - welches Gerät gehört welchem Krankenhaus.

    Pflege des Katalogs ist nicht Teil dieses Dienstes; für den Workflow zählt
    nur die Zuordnung Gerät -> Besitzer und der Tagessatz als Vorgabe.
    """
    __tablename__ = "equipment"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    owner_id = Column(String(36), ForeignKey("hospitals.id"), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    manufacturer = Column(String(200), nullable=True)
    serial_number = Column(String(100), nullable=True)
    location = Column(String(200), nullable=True)  # z.B. "Radiologie, Gebäude C"
    daily_rate = Column(Float, nullable=True)  # Vorgabe für den Tagessatz in Vereinbarungen

    created_at = Column(UTCDateTime(), server_default=func.now())
