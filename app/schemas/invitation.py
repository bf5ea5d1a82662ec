from pydantic import BaseModel
from typing import List, Optional


class InviteRow(BaseModel):
    nombre: str
    correo: str
    categoria: str
    departamento: Optional[str] = None


class RowError(BaseModel):
    row: int
    message: str


class ImportPreviewResponse(BaseModel):
    total: int
    valid: int
    invalid: int
    duplicates_in_file: int
    duplicates_in_db: int
    rows: List[InviteRow]
    errors: List[RowError]


class ImportConfirmRequest(BaseModel):
    rows: List[InviteRow] = []


class ImportConfirmResponse(BaseModel):
    inserted: int
    updated: int
    skipped: int
    total: int


class SendInvitationsRequest(BaseModel):
    resend: bool = False
    limit: Optional[int] = None
    subject: Optional[str] = None


class SendFailure(BaseModel):
    correo: str
    error: str


class SendInvitationsResponse(BaseModel):
    total: int
    sent: int
    failed: int
    mode: str
    failures: List[SendFailure] = []
