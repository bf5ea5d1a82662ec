from sqlalchemy.orm import Session
from typing import List, Optional

from app.models.assignment import Assignment, OPEN_SLOT_NAME


def get_assignment(
    db: Session, seat_id: str, template_id: int, for_update: bool = False
) -> Optional[Assignment]:
    query = db.query(Assignment).filter(
        Assignment.seat_id == seat_id, Assignment.template_id == template_id
    )
    if for_update:
        query = query.with_for_update(nowait=False)
    return query.first()


def get_assignments(db: Session, template_id: int) -> List[Assignment]:
    return (
        db.query(Assignment)
        .filter(Assignment.template_id == template_id)
        .order_by(Assignment.seat_id)
        .all()
    )


def get_assignments_held_by(
    db: Session, registro_id: int, template_id: int, for_update: bool = False
) -> List[Assignment]:
    query = db.query(Assignment).filter(
        Assignment.registro_id == registro_id, Assignment.template_id == template_id
    )
    if for_update:
        query = query.with_for_update(nowait=False)
    return query.all()


def revert_to_open_slot(row: Assignment) -> Assignment:
    """Convierte un asiento ocupado en un cupo abierto de su misma categoría"""
    row.nombre_invitado = OPEN_SLOT_NAME
    row.registro_id = None
    row.from_slot = False
    return row


def count_held(db: Session, template_id: int, categoria: Optional[str] = None) -> int:
    query = db.query(Assignment).filter(
        Assignment.template_id == template_id, Assignment.registro_id.isnot(None)
    )
    if categoria:
        query = query.filter(Assignment.categoria == categoria)
    return query.count()


def count_assignments(db: Session, template_id: int) -> int:
    return db.query(Assignment).filter(Assignment.template_id == template_id).count()
