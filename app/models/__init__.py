from app.models.template import Template
from app.models.registro import Registro
from app.models.assignment import Assignment
from app.models.event_quota import EventQuota
from app.models.invitation_campaign import InvitationCampaign
from app.models.audit_log import AuditLog
from app.models.admin_user import AdminUser

# This makes the models directory a Python package and ensures all models are loaded
