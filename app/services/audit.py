from sqlalchemy.orm import Session
from typing import Optional
import logging

from app.models.audit_log import AuditLog

logger = logging.getLogger(__name__)


def write_audit_log(
    db: Session,
    actor_type: str,
    action: str,
    entity: str,
    template_id: Optional[int] = None,
    actor_id=None,
    entity_id: Optional[str] = None,
    payload: Optional[dict] = None,
) -> bool:
    """
    Registra una acción en audit_logs.

    Nunca interrumpe la operación principal: si la escritura falla se registra
    un warning y se devuelve False.
    """
    try:
        db.add(
            AuditLog(
                template_id=template_id,
                actor_type=actor_type,
                actor_id=str(actor_id) if actor_id is not None else None,
                action=action,
                entity=entity,
                entity_id=entity_id,
                payload=payload or {},
            )
        )
        db.commit()
        return True
    except Exception as e:
        db.rollback()
        logger.warning(f"No se pudo registrar auditoría {action} ({entity}): {e}")
        return False
