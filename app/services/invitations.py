"""
Campañas de invitación: importación de nóminas, envío y validación de enlaces.
"""
from datetime import datetime, timedelta
from typing import List, Optional
import logging
import os

from sqlalchemy.orm import Session

from app.crud import registro as registro_crud
from app.crud.registro import name_key, normalize_name
from app.enums.actor_type import ActorType
from app.enums.invitation_status import InvitationStatus
from app.models.invitation_campaign import InvitationCampaign
from app.models.registro import Registro
from app.models.template import Template
from app.services.audit import write_audit_log
from app.services.auth import generate_registro_token, generate_unique_access_code
from app.services.mail_service import get_mailer
from app.utils.invitation_file import normalize_email, parse_invitations_file

logger = logging.getLogger(__name__)

INVITATION_EXPIRE_DAYS = int(os.getenv("INVITATION_EXPIRE_DAYS", "7"))
DEFAULT_SEND_LIMIT = 500
MAX_SEND_LIMIT = 2000


class InvitationExpired(Exception):
    pass


def preview_import(db: Session, template_id: int, content: bytes, filename: str) -> dict:
    preview = parse_invitations_file(content, filename)
    emails = [row["correo"] for row in preview["rows"]]
    existing = registro_crud.get_registros_by_emails(db, template_id, emails)
    preview["duplicates_in_db"] = len(existing)
    return preview


def confirm_import(db: Session, template_id: int, rows: List[dict]) -> dict:
    """
    Concilia la nómina con los registros del evento.

    - correo nuevo: se inserta con token, código de acceso y estado pending
    - registro ya "reserved": se omite, para no pisar asientos comprometidos
    - resto: se actualizan nombre, categoría, correo y departamento
    """
    emails = [normalize_email(row["correo"]) for row in rows]
    existing = registro_crud.get_registros_by_emails(db, template_id, emails)
    existing_by_email = {normalize_email(r.correo): r for r in existing}

    inserted = 0
    updated = 0
    skipped = 0

    try:
        for row in rows:
            correo = normalize_email(row["correo"])
            nombre = normalize_name(row["nombre"])
            departamento = row.get("departamento") or None
            current = existing_by_email.get(correo)

            if current is None:
                new_registro = registro_crud.create_registro(
                    db,
                    nombre=nombre,
                    categoria=row["categoria"],
                    token=generate_registro_token(),
                    codigo_acceso=generate_unique_access_code(db, template_id, length=8),
                    template_id=template_id,
                    correo=correo,
                    departamento=departamento,
                    invitation_status=InvitationStatus.PENDING.value,
                    commit=False,
                )
                # flush para que el código de acceso cuente en la siguiente fila
                db.flush()
                existing_by_email[correo] = new_registro
                inserted += 1
                continue

            if current.invitation_status == InvitationStatus.RESERVED.value:
                skipped += 1
                continue

            current.nombre = nombre
            current.nombre_normalizado = name_key(nombre)
            current.categoria = row["categoria"]
            current.correo = correo
            current.departamento = departamento
            updated += 1

        db.commit()
    except Exception:
        db.rollback()
        raise

    result = {"inserted": inserted, "updated": updated, "skipped": skipped, "total": len(rows)}
    logger.info(f"Importación confirmada para el evento {template_id}: {result}")
    write_audit_log(
        db,
        actor_type=ActorType.SYSTEM.value,
        action="import_csv_confirm",
        entity="registros",
        template_id=template_id,
        payload=result,
    )
    return result


def build_invite_link(base_url: str, token: str) -> str:
    base = os.getenv("PUBLIC_BASE_URL") or base_url
    return f"{base.rstrip('/')}/invitacion/{token}"


def send_invitations(
    db: Session,
    template: Template,
    base_url: str,
    resend: bool = False,
    limit: Optional[int] = None,
    subject: Optional[str] = None,
) -> dict:
    limit = min(limit or DEFAULT_SEND_LIMIT, MAX_SEND_LIMIT)
    statuses = [InvitationStatus.PENDING.value]
    if resend:
        statuses.append(InvitationStatus.SENT.value)

    recipients = registro_crud.get_invitation_recipients(db, template.id, statuses, limit)
    mailer = get_mailer()
    if not recipients:
        return {"total": 0, "sent": 0, "failed": 0, "mode": mailer.mode, "failures": []}

    result = mailer.send_batch(
        [
            {
                "nombre": r.nombre,
                "correo": r.correo,
                "invite_link": build_invite_link(base_url, r.token),
                "event_name": template.name or "Evento",
            }
            for r in recipients
        ]
    )
    failed_by_email = {f["correo"]: f["error"] for f in result["failures"]}

    now = datetime.utcnow()
    try:
        for registro in recipients:
            error = failed_by_email.get(registro.correo)
            if error:
                registro.invitation_last_error = error
                continue
            registro.invitation_status = InvitationStatus.SENT.value
            registro.invitation_sent_at = now
            registro.invitation_expires_at = now + timedelta(days=INVITATION_EXPIRE_DAYS)
            registro.invitation_last_error = None

        db.add(
            InvitationCampaign(
                template_id=template.id,
                subject=subject,
                mode=mailer.mode,
                status="failed" if result["failed"] > 0 else "completed",
                total=len(recipients),
                sent=result["sent"],
                failed=result["failed"],
                completed_at=now,
            )
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    summary = {
        "total": len(recipients),
        "sent": result["sent"],
        "failed": result["failed"],
        "mode": mailer.mode,
    }
    write_audit_log(
        db,
        actor_type=ActorType.SYSTEM.value,
        action="send_invitations",
        entity="registros",
        template_id=template.id,
        payload=summary,
    )
    summary["failures"] = result["failures"]
    return summary


def validate_invitation(db: Session, token: str) -> Optional[Registro]:
    """
    Resuelve el enlace de invitación.

    Devuelve None si el token no existe. Marca la invitación como expirada y
    lanza InvitationExpired si pasó su vencimiento; si estaba pending o sent
    pasa a opened.
    """
    registro = registro_crud.get_registro_by_token(db, token)
    if registro is None:
        return None

    now = datetime.utcnow()
    if registro.invitation_expires_at and registro.invitation_expires_at < now:
        registro.invitation_status = InvitationStatus.EXPIRED.value
        db.commit()
        raise InvitationExpired()

    if registro.invitation_status in (
        InvitationStatus.PENDING.value,
        InvitationStatus.SENT.value,
    ):
        registro.invitation_status = InvitationStatus.OPENED.value
        registro.invitation_opened_at = now
        db.commit()
        db.refresh(registro)
    return registro
