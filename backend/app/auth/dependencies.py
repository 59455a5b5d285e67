from fastapi import Depends, HTTPException, status

from app.auth.jwt import get_current_hospital
from app.models.hospital import Hospital


def check_active(hospital: Hospital) -> bool:
    """Hilfsfunktion: Deaktivierte Krankenhäuser dürfen nur noch lesen."""
    if not hospital.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Dieses Krankenhaus ist deaktiviert und kann keine Änderungen vornehmen"
        )
    return True


def get_active_hospital(current_hospital: Hospital = Depends(get_current_hospital)) -> Hospital:
    """Dependency für schreibende Endpunkte."""
    check_active(current_hospital)
    return current_hospital
