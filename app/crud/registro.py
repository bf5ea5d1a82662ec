from sqlalchemy.orm import Session
from typing import List, Optional
import logging
import re
import unicodedata

from app.models.registro import Registro

logger = logging.getLogger(__name__)


def normalize_name(nombre: str) -> str:
    """Normaliza a NFC, colapsa espacios internos y recorta los extremos"""
    nombre = unicodedata.normalize("NFC", nombre or "")
    return re.sub(r"\s+", " ", nombre).strip()


def name_key(nombre: str) -> str:
    """Clave de comparación de nombres: sin distinguir mayúsculas ni espacios"""
    return normalize_name(nombre).casefold()


def get_registro(db: Session, registro_id: int) -> Optional[Registro]:
    return db.query(Registro).filter(Registro.id == registro_id).first()


def get_registro_by_token(
    db: Session, token: str, template_id: Optional[int] = None
) -> Optional[Registro]:
    query = db.query(Registro).filter(Registro.token == token)
    if template_id is not None:
        query = query.filter(Registro.template_id == template_id)
    return query.first()


def get_registro_by_access_code(
    db: Session, code: str, template_id: int
) -> Optional[Registro]:
    return (
        db.query(Registro)
        .filter(Registro.codigo_acceso == code.strip().upper())
        .filter(Registro.template_id == template_id)
        .first()
    )


def lock_registro(db: Session, registro_id: int) -> Optional[Registro]:
    """Obtiene el registro con bloqueo de fila (SELECT ... FOR UPDATE)"""
    return (
        db.query(Registro)
        .filter(Registro.id == registro_id)
        .with_for_update(nowait=False)
        .first()
    )


def name_exists(db: Session, nombre: str, template_id: Optional[int]) -> bool:
    query = db.query(Registro.id).filter(Registro.nombre_normalizado == name_key(nombre))
    if template_id is not None:
        query = query.filter(Registro.template_id == template_id)
    return query.first() is not None


def access_code_exists(db: Session, code: str, template_id: Optional[int]) -> bool:
    query = db.query(Registro.id).filter(Registro.codigo_acceso == code)
    if template_id is not None:
        query = query.filter(Registro.template_id == template_id)
    return query.first() is not None


def create_registro(
    db: Session,
    nombre: str,
    categoria: str,
    token: str,
    codigo_acceso: Optional[str],
    template_id: Optional[int],
    correo: Optional[str] = None,
    departamento: Optional[str] = None,
    invitation_status: Optional[str] = None,
    commit: bool = True,
) -> Registro:
    nombre = normalize_name(nombre)
    db_registro = Registro(
        nombre=nombre,
        nombre_normalizado=name_key(nombre),
        categoria=categoria,
        token=token,
        codigo_acceso=codigo_acceso,
        template_id=template_id,
        correo=correo,
        departamento=departamento,
        invitation_status=invitation_status,
    )
    db.add(db_registro)
    if commit:
        db.commit()
        db.refresh(db_registro)
        logger.info(f"Registro creado: {db_registro.id} ({categoria})")
    return db_registro


def get_registros_by_emails(
    db: Session, template_id: int, emails: List[str]
) -> List[Registro]:
    if not emails:
        return []
    return (
        db.query(Registro)
        .filter(Registro.template_id == template_id)
        .filter(Registro.correo.in_(emails))
        .all()
    )


def get_invitation_recipients(
    db: Session, template_id: int, statuses: List[str], limit: int
) -> List[Registro]:
    return (
        db.query(Registro)
        .filter(Registro.template_id == template_id)
        .filter(Registro.invitation_status.in_(statuses))
        .filter(Registro.correo.isnot(None))
        .order_by(Registro.id)
        .limit(limit)
        .all()
    )


def count_by_status(db: Session, template_id: int, status: str) -> int:
    return (
        db.query(Registro)
        .filter(Registro.template_id == template_id)
        .filter(Registro.invitation_status == status)
        .count()
    )


def get_registros_oldest_first(
    db: Session, template_id: Optional[int] = None
) -> List[Registro]:
    query = db.query(Registro)
    if template_id is not None:
        query = query.filter(Registro.template_id == template_id)
    return query.order_by(Registro.created_at.asc(), Registro.id.asc()).all()
