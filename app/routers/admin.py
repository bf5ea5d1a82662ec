from datetime import datetime, timedelta
from fastapi import (
    APIRouter,
    Depends,
    File,
    HTTPException,
    Query,
    Request,
    Response,
    UploadFile,
    status,
)
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session
import logging

from app.database import get_db
from app.crud import assignment as assignment_crud
from app.crud import event_quota as quota_crud
from app.crud import registro as registro_crud
from app.crud import template as template_crud
from app.enums.invitation_status import InvitationStatus
from app.enums.seat_category import REGISTRO_CATEGORIES
from app.models.admin_user import AdminUser
from app.schemas.asiento import AdminSeatAssign, AssignmentResponse, SlotProvisionRequest
from app.schemas.invitation import (
    ImportConfirmRequest,
    ImportConfirmResponse,
    ImportPreviewResponse,
    SendInvitationsRequest,
    SendInvitationsResponse,
)
from app.schemas.template import (
    EventDetailResponse,
    MigrateDataRequest,
    QuotasUpdate,
    TemplateCreate,
    TemplateResponse,
    TemplatesListResponse,
)
from app.services import invitations as invitation_service
from app.services import seat_admin
from app.services.auth import (
    ACCESS_TOKEN_EXPIRE_MINUTES,
    authenticate_admin,
    create_access_token,
    get_current_admin,
)
from app.services.seat_export import build_export_workbook
from app.utils.errors import SeatRuleError, to_http_exception
from app.utils.invitation_file import InvitationFileError

router = APIRouter()
logger = logging.getLogger(__name__)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
VALID_QUOTA_CATEGORIES = {c.value for c in REGISTRO_CATEGORIES}


def _get_template_or_404(db: Session, template_id: int):
    template = template_crud.get_template(db, template_id)
    if template is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Evento no encontrado")
    return template


@router.post("/token")
def login(
    form_data: OAuth2PasswordRequestForm = Depends(), db: Session = Depends(get_db)
):
    admin = authenticate_admin(db, form_data.username, form_data.password)
    if not admin:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    admin.last_login = datetime.utcnow()
    db.commit()
    access_token = create_access_token(
        data={"sub": admin.email, "type": "admin"},
        expires_delta=timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES),
    )
    return {"access_token": access_token, "token_type": "bearer"}


# --- Eventos ---


@router.get("/events", response_model=TemplatesListResponse)
def list_events(
    db: Session = Depends(get_db), admin: AdminUser = Depends(get_current_admin)
):
    return {"events": template_crud.get_templates(db)}


@router.post("/events", response_model=TemplateResponse, status_code=status.HTTP_201_CREATED)
def create_event(
    data: TemplateCreate,
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin),
):
    name = (data.name or "").strip()
    if not name:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="name requerido")
    template = template_crud.create_template(db, name)
    logger.info(f"Evento creado: {template.id} ({name}) por {admin.email}")
    return template


@router.get("/events/{event_id}", response_model=EventDetailResponse)
def read_event(
    event_id: int,
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin),
):
    template = _get_template_or_404(db, event_id)
    quotas = [
        {
            "categoria": quota.categoria,
            "cupo_total": quota.cupo_total,
            "cupo_usado": assignment_crud.count_held(db, event_id, quota.categoria),
        }
        for quota in quota_crud.get_quotas(db, event_id)
    ]
    return {
        "event": template,
        "metrics": {
            "assigned": assignment_crud.count_assignments(db, event_id),
            "pendingInvites": registro_crud.count_by_status(
                db, event_id, InvitationStatus.PENDING.value
            ),
        },
        "quotas": quotas,
    }


@router.put("/events/{event_id}/quotas")
def update_quotas(
    event_id: int,
    data: QuotasUpdate,
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin),
):
    _get_template_or_404(db, event_id)
    invalid = [c for c in data.quotas if c not in VALID_QUOTA_CATEGORIES]
    if invalid:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Categorías inválidas: {', '.join(invalid)}",
        )
    quotas = quota_crud.set_quotas(db, event_id, data.quotas)
    return {
        "quotas": [
            {"categoria": q.categoria, "cupo_total": q.cupo_total} for q in quotas
        ]
    }


@router.post("/events/{event_id}/slots")
def provision_slots(
    event_id: int,
    data: SlotProvisionRequest,
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin),
):
    _get_template_or_404(db, event_id)
    try:
        return seat_admin.provision_slots(
            db, event_id, data.categoria, data.seat_ids, admin_id=admin.id
        )
    except SeatRuleError as e:
        raise to_http_exception(e)


@router.put("/events/{event_id}/assignments/{seat_id}", response_model=AssignmentResponse)
def assign_seat(
    event_id: int,
    seat_id: str,
    data: AdminSeatAssign,
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin),
):
    _get_template_or_404(db, event_id)
    try:
        return seat_admin.admin_assign_seat(
            db,
            event_id,
            seat_id,
            data.nombre_invitado,
            data.categoria,
            registro_id=data.registro_id,
            admin_id=admin.id,
        )
    except SeatRuleError as e:
        raise to_http_exception(e)


@router.delete("/events/{event_id}/assignments/{seat_id}")
def clear_seat(
    event_id: int,
    seat_id: str,
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin),
):
    if not seat_admin.admin_clear_seat(db, event_id, seat_id, admin_id=admin.id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Asiento no asignado")
    return {"success": True}


# --- Invitaciones ---


@router.post(
    "/events/{event_id}/invitations/import/preview",
    response_model=ImportPreviewResponse,
)
async def import_preview(
    event_id: int,
    file: UploadFile = File(None),
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin),
):
    if file is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Archivo requerido")
    content = await file.read()
    try:
        return invitation_service.preview_import(db, event_id, content, file.filename)
    except InvitationFileError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"Error procesando nómina del evento {event_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="No se pudo procesar el archivo",
        )


@router.post(
    "/events/{event_id}/invitations/import/confirm",
    response_model=ImportConfirmResponse,
)
def import_confirm(
    event_id: int,
    data: ImportConfirmRequest,
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin),
):
    if not data.rows:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="No hay filas para importar"
        )
    _get_template_or_404(db, event_id)
    try:
        return invitation_service.confirm_import(
            db, event_id, [row.model_dump() for row in data.rows]
        )
    except Exception as e:
        logger.error(f"Error confirmando importación del evento {event_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error al confirmar importación",
        )


@router.post(
    "/events/{event_id}/invitations/send", response_model=SendInvitationsResponse
)
def send_invitations(
    event_id: int,
    request: Request,
    data: SendInvitationsRequest = None,
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin),
):
    template = _get_template_or_404(db, event_id)
    data = data or SendInvitationsRequest()
    try:
        return invitation_service.send_invitations(
            db,
            template,
            base_url=str(request.base_url),
            resend=data.resend,
            limit=data.limit,
            subject=data.subject,
        )
    except Exception as e:
        logger.error(f"Error enviando campaña del evento {event_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="No se pudo enviar la campaña",
        )


# --- Mantenimiento ---


@router.post("/clean")
def clean_duplicates(
    template_id: int = Query(None),
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin),
):
    """Elimina registros con nombre duplicado, conservando el más antiguo"""
    try:
        return seat_admin.clean_duplicate_registros(db, template_id)
    except Exception as e:
        logger.error(f"Error limpiando duplicados: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error al eliminar duplicados",
        )


@router.post("/migrate-data")
def migrate_data(
    data: MigrateDataRequest,
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin),
):
    if not data.target_template_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Falta target_template_id"
        )
    template = _get_template_or_404(db, data.target_template_id)
    try:
        return seat_admin.migrate_orphan_data(db, template)
    except Exception as e:
        db.rollback()
        logger.error(f"Error migrando datos: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error migrando datos",
        )


@router.get("/export")
def export_assignments(
    template_id: int = Query(...),
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin),
):
    template = _get_template_or_404(db, template_id)
    content = build_export_workbook(
        template.name, assignment_crud.get_assignments(db, template_id)
    )
    filename = f"asientos-evento-{template_id}.xlsx"
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/import")
async def import_seats(
    template_id: int = Query(...),
    file: UploadFile = File(None),
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin),
):
    if file is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No file uploaded")
    _get_template_or_404(db, template_id)
    content = await file.read()
    try:
        return seat_admin.import_seat_roster(db, template_id, content)
    except SeatRuleError as e:
        raise to_http_exception(e)
    except Exception as e:
        db.rollback()
        logger.error(f"Error processing file: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error processing file",
        )
