from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from app.config import get_settings
from app.database import get_db
from app.models.hospital import Hospital

settings = get_settings()
security = HTTPBearer(auto_error=False)


def create_access_token(hospital_id: str, expires_delta: Optional[timedelta] = None) -> str:
    """Erstellt ein Token für einen Mandanten (sub = Krankenhaus-ID).

    Im Betrieb stellt der Identity Provider die Tokens aus; hier für Tests und lokale Entwicklung.
    """
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    payload = {"sub": hospital_id, "exp": expire}
    return jwt.encode(payload, settings.secret_key, algorithm=settings.algorithm)


def get_current_hospital(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> Hospital:
    """Löst das Bearer-Token zum aufrufenden Krankenhaus auf."""
    unauthorized = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Nicht angemeldet oder Token ungültig",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None:
        raise unauthorized

    try:
        payload = jwt.decode(credentials.credentials, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        raise unauthorized

    hospital_id = payload.get("sub")
    if not hospital_id:
        raise unauthorized

    hospital = db.get(Hospital, hospital_id)
    if not hospital:
        raise unauthorized
    return hospital
