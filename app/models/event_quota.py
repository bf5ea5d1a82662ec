from sqlalchemy import Column, Integer, String, ForeignKey
from sqlalchemy.orm import relationship

from app.database import Base


class EventQuota(Base):
    __tablename__ = "event_quotas"
    __table_args__ = {"extend_existing": True}

    template_id = Column(Integer, ForeignKey("templates.id"), primary_key=True)
    categoria = Column(String(20), primary_key=True)
    cupo_total = Column(Integer, nullable=False, default=0)

    template = relationship("app.models.template.Template", back_populates="quotas")
