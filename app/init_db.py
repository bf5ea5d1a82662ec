from sqlalchemy.orm import Session
from app.models.admin_user import AdminUser
from app.services.auth import get_password_hash
import logging
import os

logger = logging.getLogger(__name__)


def create_initial_admins(db: Session):
    """
    Crea el super admin inicial (ADMIN_EMAIL / ADMIN_PASSWORD) si la tabla está vacía.
    """
    if db.query(AdminUser).count() > 0:
        logger.info("Ya existen administradores, no se crea el admin inicial.")
        return None

    email = os.getenv("ADMIN_EMAIL")
    password = os.getenv("ADMIN_PASSWORD")
    if not email or not password:
        logger.warning("ADMIN_EMAIL/ADMIN_PASSWORD no configurados; no se crea admin inicial.")
        return None

    db_admin = AdminUser(
        name=email.split("@")[0],
        email=email,
        hashed_password=get_password_hash(password),
        is_active=True,
        is_super_admin=True,
    )
    db.add(db_admin)
    db.commit()
    logger.info(f"Admin creado: {email}")
    return db_admin
