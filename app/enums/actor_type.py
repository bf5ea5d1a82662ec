from enum import Enum


class ActorType(str, Enum):
    SUPER_ADMIN = "super_admin"
    ADMIN_EVENTO = "admin_evento"
    DELEGADO = "delegado"
    INVITADO = "invitado"
    SYSTEM = "system"
