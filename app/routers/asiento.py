from fastapi import APIRouter, Cookie, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import Optional
import logging

from app.database import get_db
from app.schemas.asiento import SeatRequest
from app.services import seat_service
from app.services.auth import COOKIE_NAME, get_registro_from_cookie
from app.utils.errors import SeatRuleError, Unauthorized, to_http_exception

router = APIRouter()
logger = logging.getLogger(__name__)


def _resolve_requester(db: Session, cookie: Optional[str], template_id: int):
    if not cookie:
        raise Unauthorized()
    registro = get_registro_from_cookie(db, cookie, template_id)
    if registro is None:
        raise Unauthorized("No autorizado para este evento")
    return registro


@router.post("/asignar")
def assign_seat(
    request: SeatRequest,
    asiento_registro_token: Optional[str] = Cookie(None, alias=COOKIE_NAME),
    db: Session = Depends(get_db),
):
    """
    Ocupa un asiento con el registro de la cookie.
    Body: {"seat_id": "R8-L-3", "template_id": 1}
    """
    try:
        if not asiento_registro_token:
            raise Unauthorized()
        seat_id = seat_service.validate_seat_request(request.seat_id, request.template_id)
        registro = _resolve_requester(db, asiento_registro_token, request.template_id)
        seat_service.claim_seat(db, registro, seat_id, request.template_id)
        return {"success": True}
    except SeatRuleError as e:
        raise to_http_exception(e)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error assigning seat: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error al asignar asiento",
        )


@router.post("/liberar")
def release_seat(
    request: SeatRequest,
    asiento_registro_token: Optional[str] = Cookie(None, alias=COOKIE_NAME),
    db: Session = Depends(get_db),
):
    """Libera el asiento propio. Los docentes lo devuelven como cupo disponible."""
    try:
        if not asiento_registro_token:
            raise Unauthorized()
        seat_id = seat_service.validate_seat_request(request.seat_id, request.template_id)
        registro = _resolve_requester(db, asiento_registro_token, request.template_id)
        seat_service.release_seat(db, registro, seat_id, request.template_id)
        return {"success": True}
    except SeatRuleError as e:
        raise to_http_exception(e)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error releasing seat: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error al liberar asiento",
        )
