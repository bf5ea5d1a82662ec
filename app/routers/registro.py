from fastapi import APIRouter, Cookie, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session
from typing import Optional
import logging

from app.database import get_db
from app.crud import registro as registro_crud
from app.crud import template as template_crud
from app.enums.seat_category import REGISTRO_CATEGORIES
from app.schemas.registro import RegistroCreate, RegistroLogin, RegistroResponse
from app.services.auth import (
    COOKIE_NAME,
    generate_registro_token,
    generate_unique_access_code,
    get_registro_from_cookie,
    set_registro_cookie,
)
from app.utils.errors import DuplicateName, to_http_exception

router = APIRouter()
logger = logging.getLogger(__name__)

VALID_CATEGORIES = {c.value for c in REGISTRO_CATEGORIES}


@router.post("", response_model=RegistroResponse)
def register(
    data: RegistroCreate,
    response: Response,
    db: Session = Depends(get_db),
):
    """
    Auto-registro de un asistente para un evento.
    Rechaza nombres ya registrados en el evento (sin distinguir mayúsculas ni espacios).
    """
    nombre = registro_crud.normalize_name(data.nombre or "")
    if not nombre or data.categoria not in VALID_CATEGORIES or not data.template_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Nombre, categoría y evento válidos son requeridos",
        )

    if template_crud.get_template(db, data.template_id) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Evento no encontrado"
        )

    # No es un índice único: dos envíos simultáneos idénticos podrían pasar ambos
    if registro_crud.name_exists(db, nombre, data.template_id):
        raise to_http_exception(DuplicateName())

    try:
        registro = registro_crud.create_registro(
            db,
            nombre=nombre,
            categoria=data.categoria,
            token=generate_registro_token(),
            codigo_acceso=generate_unique_access_code(db, data.template_id),
            template_id=data.template_id,
        )
    except Exception as e:
        db.rollback()
        logger.error(f"Error creating registro: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error al registrarse",
        )

    set_registro_cookie(response, registro)
    return registro


@router.post("/login", response_model=RegistroResponse)
def login(
    data: RegistroLogin,
    response: Response,
    db: Session = Depends(get_db),
):
    """Canjea el código de acceso por la cookie de sesión del evento"""
    if not data.code or not data.code.strip() or not data.template_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Código y ID de evento requeridos",
        )

    registro = registro_crud.get_registro_by_access_code(db, data.code, data.template_id)
    if registro is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Código inválido o no encontrado",
        )

    set_registro_cookie(response, registro)
    return registro


@router.get("/me", response_model=Optional[RegistroResponse])
def read_me(
    asiento_registro_token: Optional[str] = Cookie(None, alias=COOKIE_NAME),
    db: Session = Depends(get_db),
):
    registro = get_registro_from_cookie(db, asiento_registro_token)
    if registro is None:
        return None

    # Registros antiguos sin código: se genera uno
    if not registro.codigo_acceso:
        try:
            registro.codigo_acceso = generate_unique_access_code(db, registro.template_id)
            db.commit()
            db.refresh(registro)
        except Exception as e:
            db.rollback()
            logger.warning(f"No se pudo generar código para el registro {registro.id}: {e}")

    return registro
