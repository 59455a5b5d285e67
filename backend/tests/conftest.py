import os

# Vor dem ersten Import von app.* setzen, sonst legt database.py ./data an
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

from datetime import date
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.database import Base
from app.models import Hospital, Equipment, RequestType
from app.services.request_ledger import RequestLedger


@pytest.fixture
def engine(tmp_path: Path):
    # Datei statt :memory:, damit mehrere Sessions/Threads dieselbe DB sehen
    engine = create_engine(
        f"sqlite:///{tmp_path / 'sharing.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def hospitals(db) -> dict[str, str]:
    owner = Hospital(name="Uniklinik Nord", organization="Klinikverbund Nord")
    requester = Hospital(name="Klinikum Süd")
    outsider = Hospital(name="St. Marien")
    db.add_all([owner, requester, outsider])
    db.commit()
    return {"owner": owner.id, "requester": requester.id, "outsider": outsider.id}


@pytest.fixture
def equipment(db, hospitals) -> Equipment:
    device = Equipment(
        owner_id=hospitals["owner"],
        name="Beatmungsgerät V500",
        manufacturer="Dräger",
        serial_number="V500-0042",
        daily_rate=120.0,
    )
    db.add(device)
    db.commit()
    return device


@pytest.fixture
def make_request(db, hospitals, equipment):
    """Legt eine PENDING-Anfrage des Anfragenden beim Besitzer an."""

    def _make(
        request_type: RequestType = RequestType.BORROW,
        start_date: date = date(2026, 11, 2),
        end_date: date = date(2026, 11, 16),
        requester: str = "requester",
    ):
        return RequestLedger(db).create(
            requesting_tenant_id=hospitals[requester],
            equipment_id=equipment.id,
            owning_tenant_id=hospitals["owner"],
            request_type=request_type,
            start_date=start_date,
            end_date=end_date,
            purpose="Engpass Intensivstation",
        )

    return _make
