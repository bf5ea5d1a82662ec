from pydantic import BaseModel
from typing import Dict, List, Optional
from datetime import datetime


class TemplateCreate(BaseModel):
    name: Optional[str] = None


class TemplateResponse(BaseModel):
    id: int
    name: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TemplatesListResponse(BaseModel):
    events: List[TemplateResponse]


class QuotaResponse(BaseModel):
    categoria: str
    cupo_total: int
    cupo_usado: int


class EventMetrics(BaseModel):
    assigned: int
    pendingInvites: int


class EventDetailResponse(BaseModel):
    event: TemplateResponse
    metrics: EventMetrics
    quotas: List[QuotaResponse]


class QuotasUpdate(BaseModel):
    quotas: Dict[str, int]


class MigrateDataRequest(BaseModel):
    target_template_id: Optional[int] = None
