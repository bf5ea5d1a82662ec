from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
import logging

from app.database import get_db
from app.crud import registro as registro_crud
from app.schemas.asiento import PublicSeatRequest
from app.schemas.registro import InvitationValidationResponse
from app.services import seat_service
from app.services.invitations import InvitationExpired, validate_invitation
from app.utils.errors import BadRequest, SeatRuleError, Unauthorized, to_http_exception

router = APIRouter()
logger = logging.getLogger(__name__)


def _resolve_invitation(db: Session, request: PublicSeatRequest):
    if not request.token or not request.seat_id or not request.template_id:
        raise BadRequest("token, seat_id y template_id son requeridos")
    seat_id = seat_service.validate_seat_request(request.seat_id, request.template_id)
    registro = registro_crud.get_registro_by_token(
        db, request.token.strip(), request.template_id
    )
    if registro is None:
        raise Unauthorized("Invitación inválida")
    return registro, seat_id


@router.post("/reservar")
def reserve_seat(request: PublicSeatRequest, db: Session = Depends(get_db)):
    """
    Reserva desde el enlace de invitación.
    Body: {"token": "...", "seat_id": "R8-L-3", "template_id": 1}
    """
    try:
        registro, seat_id = _resolve_invitation(db, request)
        seat_service.claim_seat(
            db, registro, seat_id, request.template_id, flow=seat_service.FLOW_PUBLIC
        )
        return {"success": True}
    except SeatRuleError as e:
        raise to_http_exception(e)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error reserving seat by token: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error interno del servidor",
        )


@router.post("/liberar")
def release_seat(request: PublicSeatRequest, db: Session = Depends(get_db)):
    try:
        registro, seat_id = _resolve_invitation(db, request)
        seat_service.release_seat(
            db, registro, seat_id, request.template_id, flow=seat_service.FLOW_PUBLIC
        )
        return {"success": True}
    except SeatRuleError as e:
        raise to_http_exception(e)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error releasing seat by token: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error interno del servidor",
        )


@router.get("/invitaciones/validate", response_model=InvitationValidationResponse)
def validate(token: str = Query(""), db: Session = Depends(get_db)):
    """Valida el enlace de invitación y lo marca como abierto"""
    token = token.strip()
    if not token:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Token requerido")

    try:
        registro = validate_invitation(db, token)
    except InvitationExpired:
        raise HTTPException(status_code=status.HTTP_410_GONE, detail="Invitación expirada")

    if registro is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invitación inválida")
    return registro
