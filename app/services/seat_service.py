"""
Ocupación y liberación de asientos.

Cada operación corre en una sola transacción: se bloquea la fila del registro
y la del asiento destino (SELECT ... FOR UPDATE), se decide con las reglas de
app.utils.seat_rules y se aplican las mutaciones. Si otra transacción gana la
carrera, la clave primaria (seat_id, template_id) o la restricción única
(template_id, registro_id) hacen fallar el commit y se responde
SeatUnavailable. No hay reintentos automáticos.
"""
from datetime import datetime
from typing import Optional
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.crud import assignment as assignment_crud
from app.crud import event_quota as quota_crud
from app.crud import registro as registro_crud
from app.enums.actor_type import ActorType
from app.enums.invitation_status import InvitationStatus
from app.models.assignment import Assignment
from app.models.registro import Registro
from app.services.audit import write_audit_log
from app.services.change_feed import change_feed
from app.utils.errors import BadRequest, SeatUnavailable, Unauthorized
from app.utils.seat_layout import is_valid_seat_id
from app.utils.seat_rules import (
    REVERT,
    Requester,
    decide_claim,
    decide_release,
    get_slot_reuse_categories,
    release_mode,
)

logger = logging.getLogger(__name__)

FLOW_COOKIE = "cookie"
FLOW_PUBLIC = "public"


def validate_seat_request(seat_id: Optional[str], template_id) -> str:
    seat_id = seat_id.strip() if isinstance(seat_id, str) else ""
    if not seat_id or not template_id:
        raise BadRequest()
    if not is_valid_seat_id(seat_id):
        raise BadRequest(f"Asiento desconocido: {seat_id}")
    return seat_id


def _requester(registro: Registro) -> Requester:
    return Requester(id=registro.id, nombre=registro.nombre, categoria=registro.categoria)


def _release_rows(db: Session, rows, slot_reuse, skip_seat: Optional[str] = None):
    """Libera los asientos previos del registro. Devuelve [(seat_id, fila|None)]."""
    changes = []
    for row in rows:
        if row.seat_id == skip_seat:
            continue
        if release_mode(row, slot_reuse) == REVERT:
            assignment_crud.revert_to_open_slot(row)
            changes.append((row.seat_id, row))
        else:
            db.delete(row)
            changes.append((row.seat_id, None))
    return changes


def _publish(template_id: int, changes) -> None:
    for seat_id, row in changes:
        change_feed.publish_assignment(
            template_id, seat_id, row.to_dict() if row is not None else None
        )


def claim_seat(
    db: Session,
    registro: Registro,
    seat_id: str,
    template_id: int,
    flow: str = FLOW_COOKIE,
) -> Assignment:
    """
    Asigna el asiento al registro.

    Raises:
        Unauthorized: el registro no pertenece al evento
        SeatUnavailable: el asiento está ocupado, es de otra categoría o se
            perdió la carrera contra otra reserva simultánea
    """
    if registro is None or registro.template_id != template_id:
        raise Unauthorized("No autorizado para este evento")

    slot_reuse = get_slot_reuse_categories()
    try:
        locked = registro_crud.lock_registro(db, registro.id)
        if locked is None:
            raise Unauthorized("No autorizado para este evento")

        existing = assignment_crud.get_assignment(db, seat_id, template_id, for_update=True)
        quota_categories = quota_crud.get_quota_categories(db, template_id)
        plan = decide_claim(existing, _requester(locked), quota_categories)

        # 1. Liberar (o revertir a cupo) el asiento anterior del registro
        previous = assignment_crud.get_assignments_held_by(
            db, locked.id, template_id, for_update=True
        )
        changes = _release_rows(db, previous, slot_reuse, skip_seat=seat_id)
        db.flush()

        # 2. Quitar la fila actual del asiento destino para no chocar con la PK
        if plan.replace_existing and existing is not None:
            db.delete(existing)
            db.flush()

        # 3. Insertar la nueva asignación
        new_row = Assignment(
            seat_id=seat_id,
            template_id=template_id,
            nombre_invitado=locked.nombre,
            categoria=locked.categoria,
            registro_id=locked.id,
            from_slot=plan.from_slot,
            assigned_at=datetime.utcnow(),
        )
        db.add(new_row)

        if flow == FLOW_PUBLIC:
            locked.invitation_status = InvitationStatus.RESERVED.value
            locked.invitation_reserved_at = datetime.utcnow()

        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.warning(
            f"Conflicto al asignar {seat_id} (evento {template_id}) al registro {registro.id}: {e}"
        )
        raise SeatUnavailable()
    except Exception:
        db.rollback()
        raise

    db.refresh(new_row)
    logger.info(f"Asiento {seat_id} asignado al registro {registro.id} (evento {template_id})")

    write_audit_log(
        db,
        actor_type=ActorType.INVITADO.value,
        actor_id=registro.id,
        action="reserve_seat",
        entity="assignments",
        template_id=template_id,
        entity_id=seat_id,
        payload={"categoria": registro.categoria, "flow": flow},
    )
    _publish(template_id, changes + [(seat_id, new_row)])
    return new_row


def release_seat(
    db: Session,
    registro: Registro,
    seat_id: str,
    template_id: int,
    flow: str = FLOW_COOKIE,
) -> Optional[Assignment]:
    """
    Libera el asiento del registro. Devuelve la fila revertida a cupo abierto o
    None si la fila se eliminó.

    Raises:
        Unauthorized, NotAssigned, Forbidden
    """
    if registro is None or registro.template_id != template_id:
        raise Unauthorized()

    try:
        existing = assignment_crud.get_assignment(db, seat_id, template_id, for_update=True)
        mode = decide_release(existing, _requester(registro))

        if mode == REVERT:
            assignment_crud.revert_to_open_slot(existing)
            result = existing
        else:
            db.delete(existing)
            result = None

        if (
            flow == FLOW_PUBLIC
            and registro.invitation_status == InvitationStatus.RESERVED.value
        ):
            registro.invitation_status = InvitationStatus.OPENED.value

        db.commit()
    except Exception:
        db.rollback()
        raise

    if result is not None:
        db.refresh(result)
    logger.info(
        f"Asiento {seat_id} liberado por el registro {registro.id} "
        f"({'cupo abierto' if result is not None else 'eliminado'})"
    )

    write_audit_log(
        db,
        actor_type=ActorType.INVITADO.value,
        actor_id=registro.id,
        action="release_seat",
        entity="assignments",
        template_id=template_id,
        entity_id=seat_id,
        payload={"flow": flow},
    )
    _publish(template_id, [(seat_id, result)])
    return result


def release_all_for_registro(db: Session, registro: Registro) -> int:
    """Libera todos los asientos de un registro (limpieza administrativa). No hace commit."""
    if registro.template_id is None:
        return 0
    rows = assignment_crud.get_assignments_held_by(db, registro.id, registro.template_id)
    changes = _release_rows(db, rows, get_slot_reuse_categories())
    return len(changes)
