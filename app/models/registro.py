from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship
from datetime import datetime

from app.database import Base


class Registro(Base):
    __tablename__ = "registros"
    __table_args__ = {"extend_existing": True}

    id = Column(Integer, primary_key=True, index=True)
    template_id = Column(Integer, ForeignKey("templates.id"), nullable=True, index=True)
    nombre = Column(String, nullable=False)
    # Nombre en minúsculas y sin espacios repetidos, para el control de duplicados
    nombre_normalizado = Column(String, nullable=False, index=True)
    categoria = Column(String(20), nullable=False)  # autoridad, docente, invitado, estudiante
    token = Column(String(64), unique=True, index=True, nullable=False)
    codigo_acceso = Column(String(12), index=True, nullable=True)
    correo = Column(String, index=True, nullable=True)
    departamento = Column(String, nullable=True)

    # Ciclo de vida de la invitación (null para auto-registros)
    invitation_status = Column(
        String(20), nullable=True
    )  # pending, sent, opened, reserved, expired, cancelled
    invitation_sent_at = Column(DateTime, nullable=True)
    invitation_opened_at = Column(DateTime, nullable=True)
    invitation_reserved_at = Column(DateTime, nullable=True)
    invitation_expires_at = Column(DateTime, nullable=True)
    invitation_last_error = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    template = relationship("app.models.template.Template", back_populates="registros")
