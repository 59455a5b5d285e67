from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # Datenbank
    database_url: str = "sqlite:///./data/equipment_sharing.db"

    # JWT (Mandanten-Identität kommt vom Identity Provider)
    secret_key: str = "changeme"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24  # 1 Tag

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False
    log_level: str = "INFO"

    # CORS
    frontend_url: str = "http://localhost:5173"

    # Benachrichtigungen (leer = nur ins Log schreiben)
    notification_webhook_url: str = ""
    notification_timeout_seconds: float = 5.0

    # Vorgabe für neue Vereinbarungen
    default_maintenance_responsibility: str = "lender"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
