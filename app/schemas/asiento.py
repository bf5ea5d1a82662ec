from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime


class SeatRequest(BaseModel):
    seat_id: Optional[str] = None
    template_id: Optional[int] = None


class PublicSeatRequest(SeatRequest):
    token: Optional[str] = None


class AssignmentResponse(BaseModel):
    seat_id: str
    template_id: int
    nombre_invitado: str
    categoria: str
    registro_id: Optional[int] = None
    assigned_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AdminSeatAssign(BaseModel):
    nombre_invitado: str
    categoria: str
    registro_id: Optional[int] = None


class SlotProvisionRequest(BaseModel):
    categoria: str
    seat_ids: List[str]
