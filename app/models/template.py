from sqlalchemy import Column, Integer, String, DateTime, JSON
from sqlalchemy.orm import relationship
from datetime import datetime

from app.database import Base


class Template(Base):
    """Un evento (ceremonia). Todos los registros y asientos pertenecen a uno."""

    __tablename__ = "templates"
    __table_args__ = {"extend_existing": True}

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    # Snapshot heredado del mapa; las asignaciones vivas están en "assignments"
    data = Column(JSON, default=list)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    registros = relationship("app.models.registro.Registro", back_populates="template")
    quotas = relationship(
        "app.models.event_quota.EventQuota",
        back_populates="template",
        cascade="all, delete-orphan",
    )
