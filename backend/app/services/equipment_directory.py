from typing import Optional
from sqlalchemy.orm import Session

from app.exceptions import NotFoundError
from app.models.equipment import Equipment


class EquipmentDirectory:
    """Lesender Zugriff auf das Geräteverzeichnis (Gerät -> Besitzer)."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, equipment_id: str) -> Optional[Equipment]:
        return self.db.get(Equipment, equipment_id)

    def ensure_owned_by(self, equipment_id: str, owning_tenant_id: str) -> Equipment:
        """Prüft, dass das Gerät existiert und dem angegebenen Krankenhaus gehört.

        Ein falscher Besitzer wird wie ein unbekanntes Gerät behandelt, damit
        fremde Geräte-IDs nicht durch Ausprobieren zugeordnet werden können.
        """
        equipment = self.get(equipment_id)
        if not equipment or equipment.owner_id != owning_tenant_id:
            raise NotFoundError("Gerät beim angegebenen Besitzer nicht gefunden")
        return equipment

    def default_daily_rate(self, equipment_id: str) -> float:
        equipment = self.get(equipment_id)
        if equipment and equipment.daily_rate is not None:
            return equipment.daily_rate
        return 0.0
