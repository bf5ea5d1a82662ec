from fastapi import APIRouter, Depends, HTTPException, Query, WebSocket, WebSocketDisconnect
from sqlalchemy.orm import Session
from typing import List
import logging

from app.database import get_db
from app.crud import assignment as assignment_crud
from app.schemas.asiento import AssignmentResponse
from app.services.change_feed import change_feed

router = APIRouter()
ws_router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("", response_model=List[AssignmentResponse])
def read_assignments(
    template_id: int = Query(None),
    db: Session = Depends(get_db),
):
    """Estado actual del mapa de un evento (fuente de verdad para los clientes)"""
    if not template_id:
        raise HTTPException(status_code=400, detail="template_id requerido")
    return assignment_crud.get_assignments(db, template_id)


@ws_router.websocket("/ws/templates/{template_id}")
async def template_feed(websocket: WebSocket, template_id: int):
    """Cambios de asientos en vivo. Es informativo: ante dudas, volver a consultar."""
    queue = change_feed.subscribe(template_id)
    try:
        await websocket.accept()
        while True:
            event = await queue.get()
            await websocket.send_json(event)
    except WebSocketDisconnect:
        pass
    except Exception as e:
        logger.warning(f"Suscriptor del evento {template_id} desconectado: {e}")
    finally:
        change_feed.unsubscribe(template_id, queue)
