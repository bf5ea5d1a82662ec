from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class RegistroCreate(BaseModel):
    nombre: Optional[str] = None
    categoria: Optional[str] = None
    template_id: Optional[int] = None


class RegistroLogin(BaseModel):
    code: Optional[str] = None
    template_id: Optional[int] = None


class RegistroResponse(BaseModel):
    id: int
    nombre: str
    categoria: str
    codigo_acceso: Optional[str] = None
    template_id: Optional[int] = None

    class Config:
        from_attributes = True


class InvitationValidationResponse(BaseModel):
    id: int
    nombre: str
    categoria: str
    correo: Optional[str] = None
    template_id: Optional[int] = None
    invitation_status: Optional[str] = None
    invitation_expires_at: Optional[datetime] = None

    class Config:
        from_attributes = True
