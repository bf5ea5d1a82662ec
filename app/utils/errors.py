from fastapi import HTTPException


class SeatRuleError(Exception):
    """Error de negocio con el código HTTP que le corresponde."""

    status_code = 400
    default_message = "Solicitud inválida"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthorized(SeatRuleError):
    status_code = 401
    default_message = "No autorizado"


class BadRequest(SeatRuleError):
    status_code = 400
    default_message = "seat_id y template_id requeridos"


class Forbidden(SeatRuleError):
    status_code = 403
    default_message = "Solo puedes liberar tu propio asiento"


class NotAssigned(SeatRuleError):
    status_code = 404
    default_message = "Asiento no asignado"


class SeatUnavailable(SeatRuleError):
    status_code = 409
    default_message = "El asiento ya está ocupado o no corresponde a tu categoría"


class DuplicateName(SeatRuleError):
    status_code = 400
    default_message = (
        "Este nombre ya se encuentra registrado. "
        "Por favor, añade un segundo apellido para diferenciarte."
    )


def to_http_exception(error: SeatRuleError):
    return HTTPException(status_code=error.status_code, detail=error.message)
