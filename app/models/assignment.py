from sqlalchemy import (
    Column,
    Integer,
    String,
    DateTime,
    Boolean,
    ForeignKey,
    UniqueConstraint,
)
from datetime import datetime

from app.database import Base

OPEN_SLOT_NAME = "Cupo Disponible"
RESERVED_SLOT_NAME = "Reservado"
SLOT_SENTINELS = (OPEN_SLOT_NAME, RESERVED_SLOT_NAME)


class Assignment(Base):
    """
    Un asiento ocupado o un cupo abierto de una categoría.

    Clave: (seat_id, template_id). Un registro posee como máximo un asiento por
    evento; la restricción única sobre (template_id, registro_id) lo garantiza
    en la base porque los NULL (cupos abiertos) no colisionan entre sí.
    """

    __tablename__ = "assignments"
    __table_args__ = (
        UniqueConstraint(
            "template_id", "registro_id", name="uq_assignments_template_registro"
        ),
        {"extend_existing": True},
    )

    seat_id = Column(String(32), primary_key=True)
    template_id = Column(Integer, ForeignKey("templates.id"), primary_key=True)
    nombre_invitado = Column(String, nullable=False)
    categoria = Column(String(20), nullable=False)
    registro_id = Column(Integer, ForeignKey("registros.id"), nullable=True, index=True)
    # True si el asiento ocupado se tomó desde un cupo abierto
    from_slot = Column(Boolean, default=False, nullable=False)
    assigned_at = Column(DateTime, default=datetime.utcnow)

    def to_dict(self) -> dict:
        return {
            "seat_id": self.seat_id,
            "template_id": self.template_id,
            "nombre_invitado": self.nombre_invitado,
            "categoria": self.categoria,
            "registro_id": self.registro_id,
            "assigned_at": self.assigned_at.isoformat() if self.assigned_at else None,
        }
