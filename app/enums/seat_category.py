from enum import Enum


class SeatCategory(str, Enum):
    """Categorías de asistentes a la ceremonia"""

    AUTORIDAD = "autoridad"
    DOCENTE = "docente"
    INVITADO = "invitado"
    ESTUDIANTE = "estudiante"
    # Solo para asientos bloqueados por el administrador, nunca para registros
    BLOQUEADO = "bloqueado"


REGISTRO_CATEGORIES = [
    SeatCategory.AUTORIDAD,
    SeatCategory.DOCENTE,
    SeatCategory.INVITADO,
    SeatCategory.ESTUDIANTE,
]
