"""Zugriffs-Primitive für die Sharing-Tabellen.

Alle Statusänderungen laufen über ``compare_and_set``: ein einzelnes
``UPDATE ... WHERE id = :id AND status = :expected``. Verliert ein Aufruf das
Rennen, ändert sich keine Zeile und der Aufrufer entscheidet über den Fehler.
"""
from typing import Any, Dict, Type, TypeVar

from sqlalchemy import update
from sqlalchemy.orm import Session

from app.exceptions import NotFoundError
from app.services.change_feed import ChangeEvent, ChangeOperation, record_change

ModelT = TypeVar("ModelT")


def load(db: Session, model: Type[ModelT], record_id: str, label: str, for_update: bool = False) -> ModelT:
    """Lädt einen Datensatz frisch aus der DB oder wirft NotFoundError."""
    record = db.get(model, record_id, populate_existing=True, with_for_update=for_update or None)
    if record is None:
        raise NotFoundError(f"{label} nicht gefunden")
    return record


def compare_and_set(
    db: Session,
    model: Type[Any],
    record_id: str,
    expected_status: Any,
    values: Dict[str, Any],
    *criteria: Any,
) -> bool:
    """Setzt ``values`` nur, wenn der Datensatz noch ``expected_status`` hat.

    Kein Commit - der Aufrufer bündelt die Änderungen in seiner Transaktion.
    """
    stmt = (
        update(model)
        .where(model.id == record_id, model.status == expected_status, *criteria)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    result = db.execute(stmt)
    if result.rowcount != 1:
        return False

    new_status = values.get("status", expected_status)
    record_change(db, ChangeEvent(
        table=model.__tablename__,
        record_id=record_id,
        operation=ChangeOperation.UPDATE,
        status=getattr(new_status, "value", new_status),
    ))
    return True
