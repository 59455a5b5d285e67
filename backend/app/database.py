import uuid
from datetime import datetime, timezone
from pathlib import Path

from sqlalchemy import create_engine, DateTime
from sqlalchemy.types import TypeDecorator
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker, DeclarativeBase
from app.config import get_settings

settings = get_settings()


def _prepare_sqlite(database_url: str) -> dict:
    """Legt bei SQLite-Dateien das Verzeichnis an und liefert die connect_args."""
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite":
        return {}
    if url.database and url.database != ":memory:":
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)
    # SQLite braucht check_same_thread=False für FastAPI
    return {"check_same_thread": False}


engine = create_engine(
    settings.database_url,
    connect_args=_prepare_sqlite(settings.database_url),
    echo=settings.debug
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class Base(DeclarativeBase):
    pass


def generate_uuid() -> str:
    """Primärschlüssel für alle Sharing-Tabellen (UUID als String)."""
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UTCDateTime(TypeDecorator):
    """Zeitstempel immer als UTC mit Offset.

    SQLite speichert keine Zeitzone; ohne Rückwandlung kämen naive Werte
    zurück und die API würde ISO-Strings ohne ``+00:00`` ausliefern.
    """
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None and value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value

    def process_result_value(self, value, dialect):
        if value is None:
            return value
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


def get_db():
    """Dependency für FastAPI - gibt eine Datenbank-Session zurück."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def enum_values(enum_cls) -> list[str]:
    """Enums werden mit ihren Werten ("pending") statt Namen gespeichert."""
    return [member.value for member in enum_cls]
