"""
Operaciones administrativas sobre el mapa de asientos.
"""
from datetime import datetime
from typing import List, Optional
import io
import logging

import openpyxl
from sqlalchemy.orm import Session

from app.crud import assignment as assignment_crud
from app.crud import registro as registro_crud
from app.crud.registro import name_key
from app.enums.actor_type import ActorType
from app.enums.seat_category import SeatCategory
from app.models.assignment import Assignment, OPEN_SLOT_NAME
from app.models.registro import Registro
from app.models.template import Template
from app.services.audit import write_audit_log
from app.services.change_feed import change_feed
from app.services.seat_service import release_all_for_registro
from app.utils.errors import BadRequest, SeatUnavailable
from app.utils.seat_layout import is_valid_seat_id
from app.utils.seat_rules import Held, classify

logger = logging.getLogger(__name__)

VALID_SEAT_CATEGORIES = {c.value for c in SeatCategory}


def provision_slots(
    db: Session, template_id: int, categoria: str, seat_ids: List[str], admin_id=None
) -> dict:
    """
    Crea cupos abiertos ("Cupo Disponible") de una categoría. Los asientos
    ocupados por un registro no se tocan y se informan en "skipped".
    """
    if categoria not in VALID_SEAT_CATEGORIES or categoria == SeatCategory.BLOQUEADO.value:
        raise BadRequest("Categoría inválida")

    created = []
    skipped = []
    try:
        for seat_id in dict.fromkeys(seat_ids):
            if not is_valid_seat_id(seat_id):
                skipped.append(seat_id)
                continue
            existing = assignment_crud.get_assignment(
                db, seat_id, template_id, for_update=True
            )
            if isinstance(classify(existing), Held):
                skipped.append(seat_id)
                continue
            if existing is None:
                existing = Assignment(seat_id=seat_id, template_id=template_id)
                db.add(existing)
            existing.nombre_invitado = OPEN_SLOT_NAME
            existing.categoria = categoria
            existing.registro_id = None
            existing.from_slot = False
            existing.assigned_at = datetime.utcnow()
            created.append(existing)

        db.commit()
    except Exception:
        db.rollback()
        raise
    for row in created:
        change_feed.publish_assignment(template_id, row.seat_id, row.to_dict())

    write_audit_log(
        db,
        actor_type=ActorType.ADMIN_EVENTO.value,
        actor_id=admin_id,
        action="provision_slots",
        entity="assignments",
        template_id=template_id,
        payload={"categoria": categoria, "created": len(created), "skipped": skipped},
    )
    return {"created": len(created), "skipped": skipped}


def admin_assign_seat(
    db: Session,
    template_id: int,
    seat_id: str,
    nombre_invitado: str,
    categoria: str,
    registro_id: Optional[int] = None,
    admin_id=None,
) -> Assignment:
    """Asignación manual desde el panel. Si se indica registro, se mueve su asiento."""
    if not is_valid_seat_id(seat_id):
        raise BadRequest(f"Asiento desconocido: {seat_id}")
    if categoria not in VALID_SEAT_CATEGORIES:
        raise BadRequest("Categoría inválida")

    existing = assignment_crud.get_assignment(db, seat_id, template_id, for_update=True)
    occupant = classify(existing)
    if isinstance(occupant, Held) and occupant.registro_id != registro_id:
        raise SeatUnavailable("El asiento está ocupado por otro registro; libéralo primero")

    if registro_id is not None:
        registro = registro_crud.get_registro(db, registro_id)
        if registro is None or registro.template_id != template_id:
            raise BadRequest("El registro no pertenece a este evento")
        previous = assignment_crud.get_assignments_held_by(db, registro_id, template_id)
        for row in previous:
            if row.seat_id != seat_id:
                db.delete(row)
        db.flush()

    if existing is None:
        existing = Assignment(seat_id=seat_id, template_id=template_id)
        db.add(existing)
    existing.nombre_invitado = nombre_invitado.strip()
    existing.categoria = categoria
    existing.registro_id = registro_id
    existing.from_slot = False
    existing.assigned_at = datetime.utcnow()

    db.commit()
    db.refresh(existing)
    change_feed.publish_assignment(template_id, seat_id, existing.to_dict())
    write_audit_log(
        db,
        actor_type=ActorType.ADMIN_EVENTO.value,
        actor_id=admin_id,
        action="admin_assign_seat",
        entity="assignments",
        template_id=template_id,
        entity_id=seat_id,
        payload={"categoria": categoria, "registro_id": registro_id},
    )
    return existing


def admin_clear_seat(db: Session, template_id: int, seat_id: str, admin_id=None) -> bool:
    existing = assignment_crud.get_assignment(db, seat_id, template_id)
    if existing is None:
        return False
    db.delete(existing)
    db.commit()
    change_feed.publish_assignment(template_id, seat_id, None)
    write_audit_log(
        db,
        actor_type=ActorType.ADMIN_EVENTO.value,
        actor_id=admin_id,
        action="admin_clear_seat",
        entity="assignments",
        template_id=template_id,
        entity_id=seat_id,
    )
    return True


def clean_duplicate_registros(db: Session, template_id: Optional[int] = None) -> dict:
    """
    Elimina registros con nombre repetido (sin distinguir mayúsculas ni
    espacios) dentro del mismo evento, conservando el más antiguo. Los asientos
    de los eliminados se liberan con las reglas habituales.
    """
    seen = set()
    to_delete: List[Registro] = []
    for registro in registro_crud.get_registros_oldest_first(db, template_id):
        key = (registro.template_id, name_key(registro.nombre))
        if key in seen:
            to_delete.append(registro)
        else:
            seen.add(key)

    if not to_delete:
        return {"message": "No se encontraron duplicados", "eliminados": 0, "ids": []}

    ids = [r.id for r in to_delete]
    try:
        for registro in to_delete:
            release_all_for_registro(db, registro)
        db.flush()
        for registro in to_delete:
            db.delete(registro)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(f"Limpieza de duplicados: {len(ids)} registros eliminados")
    write_audit_log(
        db,
        actor_type=ActorType.SUPER_ADMIN.value,
        action="clean_duplicates",
        entity="registros",
        template_id=template_id,
        payload={"ids": ids},
    )
    return {"message": "Limpieza completada", "eliminados": len(ids), "ids": ids}


def import_seat_roster(db: Session, template_id: int, content: bytes) -> dict:
    """
    Carga un Excel con columnas "Seat ID", "Nombre Invitado" y "Categoría"
    (opcional, por defecto invitado) y hace upsert en las asignaciones del evento.
    Los asientos ocupados por un registro no se sobrescriben.
    """
    try:
        wb = openpyxl.load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    except Exception as e:
        raise BadRequest(f"No se pudo leer el archivo Excel: {e}")

    ws = wb.worksheets[0]
    iterator = ws.iter_rows(values_only=True)
    header_row = next(iterator, None) or []
    headers = [str(h).strip() if h is not None else "" for h in header_row]

    def col(name):
        return headers.index(name) if name in headers else None

    seat_col = col("Seat ID")
    name_col = col("Nombre Invitado")
    cat_col = col("Categoría")
    if cat_col is None:
        cat_col = col("Categoria")
    if seat_col is None or name_col is None:
        wb.close()
        raise BadRequest("El archivo debe tener las columnas 'Seat ID' y 'Nombre Invitado'")

    updated = 0
    skipped = []
    now = datetime.utcnow()
    try:
        for values in iterator:
            if values is None:
                continue
            seat_id = str(values[seat_col] or "").strip() if seat_col < len(values) else ""
            nombre = str(values[name_col] or "").strip() if name_col < len(values) else ""
            categoria = ""
            if cat_col is not None and cat_col < len(values) and values[cat_col]:
                categoria = str(values[cat_col]).strip().lower()
            if not seat_id or not nombre:
                continue
            categoria = categoria or SeatCategory.INVITADO.value
            if not is_valid_seat_id(seat_id) or categoria not in VALID_SEAT_CATEGORIES:
                skipped.append(seat_id)
                continue

            existing = assignment_crud.get_assignment(db, seat_id, template_id)
            if isinstance(classify(existing), Held):
                skipped.append(seat_id)
                continue
            if existing is None:
                existing = Assignment(seat_id=seat_id, template_id=template_id)
                db.add(existing)
            existing.nombre_invitado = nombre
            existing.categoria = categoria
            existing.registro_id = None
            existing.from_slot = False
            existing.assigned_at = now
            # visible si el asiento se repite más abajo; gana la última fila
            db.flush()
            updated += 1

        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        wb.close()

    logger.info(f"Importación de asientos en evento {template_id}: {updated} filas")
    write_audit_log(
        db,
        actor_type=ActorType.ADMIN_EVENTO.value,
        action="import_seats",
        entity="assignments",
        template_id=template_id,
        payload={"updated": updated, "skipped": skipped},
    )
    return {
        "message": f"Successfully updated {updated} assignments",
        "updated": updated,
        "skipped": skipped,
    }


def migrate_orphan_data(db: Session, target_template: Template) -> dict:
    """
    Asocia al evento destino los registros sin evento y materializa el
    snapshot heredado (Template.data) como filas de asignación cuando el
    asiento todavía no tiene fila.
    """
    migrated_registros = (
        db.query(Registro)
        .filter(Registro.template_id.is_(None))
        .update({Registro.template_id: target_template.id}, synchronize_session=False)
    )

    materialized = 0
    for item in target_template.data or []:
        seat_id = item.get("seat_id") if isinstance(item, dict) else None
        nombre = item.get("nombre_invitado") if isinstance(item, dict) else None
        if not seat_id or not nombre or not is_valid_seat_id(seat_id):
            continue
        if assignment_crud.get_assignment(db, seat_id, target_template.id) is not None:
            continue
        categoria = item.get("categoria") or SeatCategory.INVITADO.value
        if categoria not in VALID_SEAT_CATEGORIES:
            continue
        db.add(
            Assignment(
                seat_id=seat_id,
                template_id=target_template.id,
                nombre_invitado=nombre,
                categoria=categoria,
                assigned_at=datetime.utcnow(),
            )
        )
        db.flush()
        materialized += 1

    db.commit()
    return {
        "success": True,
        "message": "Datos migrados correctamente",
        "migrated_assignments": materialized,
        "migrated_registros": migrated_registros,
    }
