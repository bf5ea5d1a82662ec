from sqlalchemy.orm import Session
from typing import Dict, List, Set

from app.models.event_quota import EventQuota


def get_quotas(db: Session, template_id: int) -> List[EventQuota]:
    return (
        db.query(EventQuota)
        .filter(EventQuota.template_id == template_id)
        .order_by(EventQuota.categoria)
        .all()
    )


def get_quota_categories(db: Session, template_id: int) -> Set[str]:
    """Categorías con cupo fijo en el evento"""
    return {quota.categoria for quota in get_quotas(db, template_id)}


def set_quotas(db: Session, template_id: int, totals: Dict[str, int]) -> List[EventQuota]:
    """Reemplaza los cupos del evento. Un total de 0 elimina la restricción."""
    current = {quota.categoria: quota for quota in get_quotas(db, template_id)}
    for categoria, total in totals.items():
        quota = current.get(categoria)
        if total <= 0:
            if quota:
                db.delete(quota)
            continue
        if quota:
            quota.cupo_total = total
        else:
            db.add(
                EventQuota(template_id=template_id, categoria=categoria, cupo_total=total)
            )
    db.commit()
    return get_quotas(db, template_id)
